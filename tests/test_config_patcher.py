#!/usr/bin/env python3
"""
Unit tests for config_patcher.py
Tests smart replace on JSON, JSON5 and TOML text.
"""

import json
import tomllib
import unittest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

import json5

from config_patcher import Change, PatchStatus, apply_changes, replace_single_value, smart_replace
from config_values import Dialect


JSON_SAMPLE = """{
  // Enable the mod
  "enabled": true,
  "count": 5, // how many
  "nested": {
    "enabled": false,
    "name": "old"
  },
  "list": [1, 2, 3]
}
"""

TOML_SAMPLE = """# Mod settings
title = "Example"

[general]
# Turn everything on or off
enabled = true
max_count = 5 # upper bound

[[servers]]
host = "a.example"
port = 25565

[[servers]]
host = "b.example"
port = 25566
"""


class TestJsonPatching(unittest.TestCase):
    """Tests for patching JSON / JSON5 text."""

    def test_only_changed_literals_rewritten(self):
        """Test that comments and layout survive a patch."""
        changes = [Change.parse("enabled", False), Change.parse("count", 10)]
        result = apply_changes(JSON_SAMPLE, changes, Dialect.JSON5)

        expected = JSON_SAMPLE.replace('"enabled": true', '"enabled": false').replace(
            '"count": 5,', '"count": 10,'
        )
        self.assertEqual(result.text, expected)
        self.assertEqual(len(result.applied), 2)
        self.assertIn("// Enable the mod", result.text)
        self.assertIn("// how many", result.text)

    def test_nested_path_does_not_touch_same_named_key(self):
        result = apply_changes(JSON_SAMPLE, [Change.parse("nested.enabled", True)], Dialect.JSON5)
        self.assertIn('"enabled": true,\n  "count"', result.text)
        self.assertIn('"nested": {\n    "enabled": true,', result.text)

    def test_string_and_array_element(self):
        changes = [Change.parse("nested.name", "new"), Change.parse("list[1]", 99)]
        result = apply_changes(JSON_SAMPLE, changes, Dialect.JSON5)
        self.assertIn('"name": "new"', result.text)
        self.assertIn('"list": [1, 99, 3]', result.text)

    def test_result_still_parses(self):
        text = '{\n  "a": 1,\n  "b": {"c": "x"}\n}\n'
        changes = [Change.parse("a", 2.5), Change.parse("b.c", 'quote " here')]
        patched = smart_replace(text, changes, Dialect.JSON)
        self.assertEqual(json.loads(patched), {"a": 2.5, "b": {"c": 'quote " here'}})

    def test_json5_single_quoted_value(self):
        text = "{name: 'old', other: 1}"
        patched = smart_replace(text, [Change.parse("name", "new")], Dialect.JSON5)
        self.assertEqual(patched, '{name: "new", other: 1}')
        self.assertEqual(json5.loads(patched), {"name": "new", "other": 1})

    def test_container_replacement_spanning_lines(self):
        text = '{\n  "obj": {\n    "x": 1\n  },\n  "y": 2\n}'
        patched = smart_replace(text, [Change.parse("obj", {"x": 2, "z": 3})], Dialect.JSON)
        self.assertEqual(patched, '{\n  "obj": {"x": 2, "z": 3},\n  "y": 2\n}')

    def test_crlf_line_endings_kept(self):
        text = '{\r\n  "a": 1\r\n}\r\n'
        self.assertEqual(smart_replace(text, [Change.parse("a", 2)], Dialect.JSON), '{\r\n  "a": 2\r\n}\r\n')


class TestTomlPatching(unittest.TestCase):
    """Tests for patching TOML text."""

    def test_trailing_comment_kept(self):
        result = apply_changes(TOML_SAMPLE, [Change.parse("general.max_count", 10)], Dialect.TOML)
        self.assertIn("max_count = 10 # upper bound", result.text)
        self.assertEqual(result.text.count("\n"), TOML_SAMPLE.count("\n"))

    def test_array_of_tables_element(self):
        changes = [Change.parse("servers[1].port", 30000), Change.parse("servers[0].host", "c.example")]
        patched = smart_replace(TOML_SAMPLE, changes, Dialect.TOML)
        data = tomllib.loads(patched)
        self.assertEqual(data["servers"][0]["host"], "c.example")
        self.assertEqual(data["servers"][0]["port"], 25565)
        self.assertEqual(data["servers"][1]["port"], 30000)
        self.assertIn("# Turn everything on or off", patched)

    def test_float_stays_float(self):
        text = "speed = 1.5\n"
        patched = smart_replace(text, [Change.parse("speed", 2.0)], Dialect.TOML)
        self.assertEqual(patched, "speed = 2.0\n")
        self.assertIsInstance(tomllib.loads(patched)["speed"], float)

    def test_inline_table_member(self):
        text = "point = { x = 1, y = 2 } # origin\n"
        patched = smart_replace(text, [Change.parse("point.y", 5)], Dialect.TOML)
        self.assertEqual(patched, "point = { x = 1, y = 5 } # origin\n")

    def test_null_is_unsupported(self):
        """Test that TOML null is skipped instead of written as an empty value."""
        result = apply_changes(TOML_SAMPLE, [Change.parse("title", None)], Dialect.TOML)
        self.assertEqual(result.text, TOML_SAMPLE)
        self.assertEqual(result.outcomes[0].status, PatchStatus.SKIPPED_UNSUPPORTED)
        self.assertTrue(result.needs_full_rewrite)


class TestOrchestration(unittest.TestCase):
    """Tests for ordering and outcome reporting."""

    def test_deepest_changes_first(self):
        """Test that a child edit is applied before its parent's replacement."""
        text = '{"a": {"b": 1}}'
        changes = [Change.parse("a", {"b": 3}), Change.parse("a.b", 2)]
        result = apply_changes(text, changes, Dialect.JSON)

        self.assertEqual(result.outcomes[0].change.path_string, "a.b")
        self.assertEqual(result.outcomes[1].change.path_string, "a")
        self.assertEqual(result.text, '{"a": {"b": 3}}')
        self.assertEqual(len(result.applied), 2)

    def test_missing_path_skipped(self):
        result = apply_changes(JSON_SAMPLE, [Change.parse("missing.key", 1)], Dialect.JSON5)
        self.assertEqual(result.text, JSON_SAMPLE)
        self.assertEqual(result.outcomes[0].status, PatchStatus.SKIPPED_NOT_FOUND)
        self.assertFalse(result.needs_full_rewrite)

    def test_empty_path_skipped(self):
        text, outcome = replace_single_value('{"a": 1}', Change((), None), Dialect.JSON)
        self.assertEqual(text, '{"a": 1}')
        self.assertEqual(outcome.status, PatchStatus.SKIPPED_NOT_FOUND)

    def test_deletion_unsupported(self):
        result = apply_changes(JSON_SAMPLE, [Change.parse("count", deleted=True)], Dialect.JSON5)
        self.assertEqual(result.text, JSON_SAMPLE)
        self.assertTrue(result.outcomes[0].change.is_deletion)
        self.assertEqual(result.outcomes[0].status, PatchStatus.SKIPPED_UNSUPPORTED)

    def test_no_changes(self):
        """Test that an empty change list leaves every dialect untouched."""
        samples = [
            ('{"a": 1,  "b": [true, null]}\n', Dialect.JSON),
            (JSON_SAMPLE, Dialect.JSON5),
            (TOML_SAMPLE, Dialect.TOML),
        ]
        for text, dialect in samples:
            with self.subTest(dialect=dialect):
                result = apply_changes(text, [], dialect)
                self.assertEqual(result.text, text)
                self.assertEqual(result.outcomes, [])

    def test_non_numeric_index_skipped(self):
        """Test that a malformed array index is reported, not raised."""
        for text, dialect in [("arr = [1, 2]\n", Dialect.TOML), ('{"arr": [1, 2]}', Dialect.JSON)]:
            with self.subTest(dialect=dialect):
                result = apply_changes(text, [Change.parse("arr[x]", 5)], dialect)
                self.assertEqual(result.text, text)
                self.assertEqual(result.outcomes[0].status, PatchStatus.SKIPPED_NOT_FOUND)

    def test_non_numeric_index_in_inline_table(self):
        text = "point = { xs = [1, 2] }\n"
        result = apply_changes(text, [Change.parse("point.xs[one]", 3)], Dialect.TOML)
        self.assertEqual(result.text, text)
        self.assertEqual(result.outcomes[0].status, PatchStatus.SKIPPED_NOT_FOUND)

    def test_idempotent(self):
        """Test that applying the same change twice gives the same text."""
        changes = [Change.parse("general.enabled", False)]
        once = smart_replace(TOML_SAMPLE, changes, Dialect.TOML)
        twice = smart_replace(once, changes, Dialect.TOML)
        self.assertEqual(once, twice)

    def test_skips_do_not_block_other_changes(self):
        changes = [Change.parse("nope", 1), Change.parse("count", 7)]
        result = apply_changes(JSON_SAMPLE, changes, Dialect.JSON5)
        self.assertEqual(len(result.applied), 1)
        self.assertEqual(len(result.skipped), 1)
        self.assertIn('"count": 7,', result.text)


if __name__ == "__main__":
    unittest.main()
