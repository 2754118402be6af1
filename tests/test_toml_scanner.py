#!/usr/bin/env python3
"""
Unit tests for toml_scanner.py
Tests header parsing, section tracking and value location in TOML text.
"""

import unittest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from key_path import format_path, parse_path
from toml_scanner import (
    SectionContext, find_toml_value_end, find_toml_value_span, iter_toml_sites,
    parse_key_line, parse_section_header,
)


def span_text(text: str, path: str):
    """Text of the located value, or None."""
    result = find_toml_value_span(text, parse_path(path))
    if result is None:
        return None
    return text[result.value_start:result.value_end]


class TestParsing(unittest.TestCase):
    """Tests for header and key line parsing."""

    def test_table_header(self):
        self.assertEqual(parse_section_header("[general]"), (["general"], False))
        self.assertEqual(parse_section_header("  [client.render]  # comment"), (["client", "render"], False))

    def test_array_table_header(self):
        self.assertEqual(parse_section_header("[[servers]]"), (["servers"], True))

    def test_quoted_header(self):
        """Test quoted segments containing spaces and apostrophes."""
        self.assertEqual(
            parse_section_header('["YUNG\'s Better Dungeons".General]'),
            (["YUNG's Better Dungeons", "General"], False)
        )

    def test_not_a_header(self):
        self.assertIsNone(parse_section_header("key = 1"))
        self.assertIsNone(parse_section_header("[a] junk"))
        self.assertIsNone(parse_section_header("[unclosed"))

    def test_key_line(self):
        self.assertEqual(parse_key_line("  max_count = 5"), (["max_count"], 2, 14))
        self.assertEqual(parse_key_line("a.b = 1"), (["a", "b"], 0, 6))
        self.assertEqual(parse_key_line('"quoted key" = true')[0], ["quoted key"])
        self.assertIsNone(parse_key_line("no equals here"))


class TestSectionContext(unittest.TestCase):
    """Tests for header tracking."""

    def test_array_of_tables_counts(self):
        ctx = SectionContext()
        self.assertEqual(format_path(ctx.enter(["servers"], True)), "servers[0]")
        self.assertEqual(format_path(ctx.enter(["servers", "limits"])), "servers[0].limits")
        self.assertEqual(format_path(ctx.enter(["servers"], True)), "servers[1]")
        self.assertEqual(format_path(ctx.enter(["other"])), "other")


class TestFindValueEnd(unittest.TestCase):
    """Tests for the TOML value end scanner."""

    def _value(self, text: str, start_marker: str) -> str:
        start = text.index(start_marker)
        return text[start:find_toml_value_end(text, start)]

    def test_excludes_comment(self):
        self.assertEqual(self._value("key = 5 # comment", "5"), "5")

    def test_hash_inside_string(self):
        self.assertEqual(self._value('key = "a # b" # c', '"'), '"a # b"')

    def test_literal_string(self):
        self.assertEqual(self._value("path = 'C:\\dir\\' # c", "'"), "'C:\\dir\\'")

    def test_multiline_array(self):
        text = "arr = [\n  1, # one\n  2,\n]\nnext = 1"
        self.assertEqual(self._value(text, "["), "[\n  1, # one\n  2,\n]")

    def test_triple_quoted_string(self):
        text = 'desc = """line1\nline2"""\nx = 1'
        self.assertEqual(self._value(text, '"'), '"""line1\nline2"""')


class TestFindValueSpan(unittest.TestCase):
    """Tests for locating values by path."""

    def test_sections(self):
        """Test that the same key in two tables resolves by section."""
        text = "[general]\nenabled = true\n\n[client]\nenabled = false\n"
        self.assertEqual(span_text(text, "general.enabled"), "true")
        self.assertEqual(span_text(text, "client.enabled"), "false")

    def test_root_keys(self):
        text = "title = \"x\"\n\n[general]\ntitle = \"y\"\n"
        self.assertEqual(span_text(text, "title"), '"x"')

    def test_array_of_tables(self):
        text = '[[servers]]\nname = "a"\n\n[[servers]]\nname = "b"\n'
        self.assertEqual(span_text(text, "servers[0].name"), '"a"')
        self.assertEqual(span_text(text, "servers[1].name"), '"b"')
        self.assertIsNone(span_text(text, "servers[2].name"))

    def test_name_only_fallback(self):
        """Test that a path without indices matches the first table of that name."""
        text = '[[servers]]\nname = "a"\n\n[[servers]]\nname = "b"\n'
        self.assertEqual(span_text(text, "servers.name"), '"a"')

    def test_sub_table_of_array_element(self):
        text = '[[servers]]\nname = "a"\n[servers.limits]\nmax = 5\n'
        self.assertEqual(span_text(text, "servers[0].limits.max"), "5")

    def test_inline_array_and_table(self):
        text = "colors = [1, 2, 3]\npoint = { x = 1, y = 2 }\n"
        self.assertEqual(span_text(text, "colors[2]"), "3")
        self.assertEqual(span_text(text, "point.y"), "2")
        self.assertIsNone(span_text(text, "colors[3]"))

    def test_non_numeric_index_not_found(self):
        text = "colors = [1, 2]\npoint = { xs = [4, 5] }\n"
        self.assertIsNone(span_text(text, "colors[x]"))
        self.assertIsNone(span_text(text, "point.xs[y]"))
        self.assertIsNone(span_text(text, "colors[-1]"))

    def test_dotted_key(self):
        self.assertEqual(span_text("physics.gravity = 9.8\n", "physics.gravity"), "9.8")

    def test_quoted_section(self):
        text = '["My Mod".General]\nspeed = 1.5 # blocks per tick\n'
        self.assertEqual(span_text(text, "My Mod.General.speed"), "1.5")

    def test_multiline_string_content_not_scanned(self):
        """Test that text inside a triple-quoted value is never a header or key."""
        text = 'text = """\n[fake]\nkey = 1\n"""\nreal = 2\n'
        self.assertIsNone(span_text(text, "key"))
        self.assertIsNone(span_text(text, "fake.key"))
        self.assertEqual(span_text(text, "real"), "2")

    def test_line_index(self):
        text = "[a]\nx = 1\ny = 2\n"
        self.assertEqual(find_toml_value_span(text, parse_path("a.y")).line_index, 2)

    def test_missing(self):
        self.assertIsNone(span_text("a = 1\n", "b"))
        self.assertIsNone(find_toml_value_span("a = 1\n", ()))

    def test_sites_in_order(self):
        text = "top = 1\n[sec]\nk = 2\n"
        paths = [(format_path(s.path), s.is_header) for s in iter_toml_sites(text)]
        self.assertEqual(paths, [("top", False), ("sec", True), ("sec.k", False)])


if __name__ == "__main__":
    unittest.main()
