#!/usr/bin/env python3
"""
Unit tests for value_formatter.py
Tests literal rendering for each dialect.
"""

import unittest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from config_values import (
    Dialect, JsonArray, JsonBool, JsonNull, JsonNumber, JsonObject, JsonString,
)
from config_formats import parse_config_text
from value_formatter import ValueFormatError, format_value


class TestScalars(unittest.TestCase):
    """Tests for scalar literals."""

    def test_null(self):
        """Test null in JSON and JSON5."""
        self.assertEqual(format_value(JsonNull(), Dialect.JSON), "null")
        self.assertEqual(format_value(JsonNull(), Dialect.JSON5), "null")

    def test_toml_null_raises(self):
        """Test that TOML null is rejected instead of emitted empty."""
        with self.assertRaises(ValueFormatError):
            format_value(JsonNull(), Dialect.TOML)

    def test_booleans(self):
        for dialect in Dialect:
            self.assertEqual(format_value(JsonBool(True), dialect), "true")
            self.assertEqual(format_value(JsonBool(False), dialect), "false")

    def test_numbers(self):
        """Test that integers and floats keep their kind."""
        self.assertEqual(format_value(JsonNumber(42), Dialect.JSON), "42")
        self.assertEqual(format_value(JsonNumber(-7), Dialect.TOML), "-7")
        self.assertEqual(format_value(JsonNumber(0.5), Dialect.JSON), "0.5")
        self.assertEqual(format_value(JsonNumber(1.0), Dialect.TOML), "1.0")

    def test_non_finite_numbers(self):
        """Test NaN/Infinity per dialect."""
        with self.assertRaises(ValueFormatError):
            format_value(JsonNumber(float("nan")), Dialect.JSON)
        self.assertEqual(format_value(JsonNumber(float("nan")), Dialect.JSON5), "NaN")
        self.assertEqual(format_value(JsonNumber(float("-inf")), Dialect.JSON5), "-Infinity")
        self.assertEqual(format_value(JsonNumber(float("inf")), Dialect.TOML), "inf")

    def test_string_escaping(self):
        """Test quotes, backslashes and newlines are escaped."""
        value = JsonString('say "hi"\\now\n')
        self.assertEqual(format_value(value, Dialect.JSON), '"say \\"hi\\"\\\\now\\n"')

    def test_string_always_double_quoted(self):
        """Test that JSON5 and TOML strings use double quotes."""
        self.assertEqual(format_value(JsonString("it's"), Dialect.JSON5), '"it\'s"')
        self.assertEqual(format_value(JsonString("x"), Dialect.TOML), '"x"')

    def test_delete_character_escaped(self):
        """Test that DEL is written as an escape TOML and JSON both accept."""
        for dialect in Dialect:
            literal = format_value(JsonString("a\x7fb"), dialect)
            self.assertEqual(literal, '"a\\u007fb"')
            if dialect is Dialect.TOML:
                document = f"v = {literal}\n"
            else:
                document = f'{{"v": {literal}}}'
            self.assertEqual(parse_config_text(document, dialect), {"v": "a\x7fb"})

    def test_non_ascii_kept(self):
        self.assertEqual(format_value(JsonString("héllo"), Dialect.JSON), '"héllo"')


class TestContainers(unittest.TestCase):
    """Tests for arrays and objects."""

    def test_array(self):
        value = JsonArray([JsonNumber(1), JsonString("a"), JsonBool(False)])
        self.assertEqual(format_value(value, Dialect.JSON), '[1, "a", false]')
        self.assertEqual(format_value(value, Dialect.TOML), '[1, "a", false]')

    def test_empty_containers(self):
        self.assertEqual(format_value(JsonArray([]), Dialect.JSON), "[]")
        self.assertEqual(format_value(JsonObject({}), Dialect.TOML), "{}")

    def test_json_object(self):
        value = JsonObject({"a": JsonNumber(1), "b": JsonArray([JsonNull()])})
        self.assertEqual(format_value(value, Dialect.JSON), '{"a": 1, "b": [null]}')

    def test_toml_inline_table(self):
        """Test bare keys stay bare and other keys are quoted."""
        value = JsonObject({"a": JsonNumber(1), "my key": JsonString("x")})
        self.assertEqual(format_value(value, Dialect.TOML), '{a = 1, "my key" = "x"}')

    def test_toml_nested_null_raises(self):
        value = JsonObject({"a": JsonArray([JsonNull()])})
        with self.assertRaises(ValueFormatError):
            format_value(value, Dialect.TOML)


if __name__ == "__main__":
    unittest.main()
