"""
Locate values inside TOML source text.

The document is read line by line while a SectionContext follows the
``[table]`` and ``[[array.of.tables]]`` headers. A key line belongs to
the most recent header (or to the root before any header). Values that
continue over several lines (multi-line arrays, triple-quoted strings)
are skipped as a whole so their contents are never mistaken for headers
or keys.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Iterator, Optional

from key_path import KeyPath, PathSegment
from json_scanner import ScanResult, ScanState


# Bare key characters, read leniently
_BARE_KEY = re.compile(r"[^\s.=\[\]#\"',{}]+")


@dataclass
class SectionContext:
    """
    Header segments in scope while scanning top to bottom.

    Array-of-tables headers add an index segment counting how many times
    that header has been seen, so ``[[servers]]`` twice gives
    ``servers[0]`` then ``servers[1]``. Sub-tables of an array element
    (``[servers.limits]``) resolve to the latest element.
    """
    segments: KeyPath = ()
    _array_counts: dict = field(default_factory=dict)

    def enter(self, names: list[str], is_array_table: bool = False) -> KeyPath:
        segments: list[PathSegment] = []
        for depth, name in enumerate(names):
            prefix = tuple(names[:depth + 1])
            segments.append(PathSegment(name))
            if is_array_table and depth == len(names) - 1:
                count = self._array_counts.get(prefix, 0)
                self._array_counts[prefix] = count + 1
                # A new element starts fresh nested arrays of tables
                for other in list(self._array_counts):
                    if len(other) > len(prefix) and other[:len(prefix)] == prefix:
                        del self._array_counts[other]
                segments.append(PathSegment(str(count), is_array_index=True))
            elif prefix in self._array_counts:
                latest = self._array_counts[prefix] - 1
                segments.append(PathSegment(str(latest), is_array_index=True))
        self.segments = tuple(segments)
        return self.segments


@dataclass(frozen=True)
class TomlSite:
    """A key/value line or a table header found in the document."""
    path: KeyPath
    key_offset: int
    value_offset: int
    value_end: int
    is_header: bool = False


def _skip_spaces(text: str, i: int) -> int:
    while i < len(text) and text[i] in ' \t':
        i += 1
    return i


def _skip_blank(text: str, i: int) -> int:
    """Skip whitespace, newlines and '#' comments."""
    n = len(text)
    while i < n:
        if text[i].isspace():
            i += 1
        elif text[i] == '#':
            nl = text.find('\n', i)
            i = n if nl == -1 else nl + 1
        else:
            break
    return i


def _read_dotted_key(text: str, i: int) -> tuple[list[str], int]:
    """
    Read a possibly dotted, possibly quoted key starting at ``i``.

    Returns the unquoted names and the offset after the key; the list
    is empty when no key could be read.
    """
    names: list[str] = []
    n = len(text)

    while True:
        i = _skip_spaces(text, i)
        if i >= n:
            return [], i

        ch = text[i]
        if ch == '"':
            j = i + 1
            while j < n and text[j] != '"' and text[j] != '\n':
                j += 2 if text[j] == '\\' else 1
            if j >= n or text[j] != '"':
                return [], i
            raw = text[i + 1:j]
            try:
                names.append(json.loads(f'"{raw}"'))
            except ValueError:
                names.append(raw)
            i = j + 1
        elif ch == "'":
            j = text.find("'", i + 1)
            if j == -1 or '\n' in text[i:j]:
                return [], i
            names.append(text[i + 1:j])
            i = j + 1
        else:
            match = _BARE_KEY.match(text, i)
            if not match:
                return [], i
            names.append(match.group())
            i = match.end()

        j = _skip_spaces(text, i)
        if j < n and text[j] == '.':
            i = j + 1
            continue
        return names, i


def parse_section_header(line: str) -> Optional[tuple[list[str], bool]]:
    """
    Parse a ``[a.b]`` / ``[[a.b]]`` header line.

    Quoted segments may contain dots, spaces or apostrophes
    (``["YUNG's Better Dungeons".General]``). Returns (names,
    is_array_table) or None when the line is not a header.
    """
    stripped = line.strip()
    if not stripped.startswith('['):
        return None

    is_array_table = stripped.startswith('[[')
    names, i = _read_dotted_key(stripped, 2 if is_array_table else 1)
    if not names:
        return None

    i = _skip_spaces(stripped, i)
    closing = ']]' if is_array_table else ']'
    if not stripped.startswith(closing, i):
        return None

    rest = stripped[i + len(closing):].strip()
    if rest and not rest.startswith('#'):
        return None
    return names, is_array_table


def parse_key_line(line: str) -> Optional[tuple[list[str], int, int]]:
    """
    Match ``key = ``, ``"key" = ``, ``'key' = `` (or dotted ``a.b = ``).

    Returns (names, key_column, value_column) or None.
    """
    indent = len(line) - len(line.lstrip())
    names, i = _read_dotted_key(line, indent)
    if not names:
        return None
    i = _skip_spaces(line, i)
    if i >= len(line) or line[i] != '=':
        return None
    return names, indent, _skip_spaces(line, i + 1)


def find_toml_value_end(text: str, start: int) -> int:
    """
    Return the exclusive end offset of the TOML value starting at ``start``.

    Strings (basic, literal and triple-quoted), array brackets and
    inline-table braces are tracked; outside them the value ends at ',',
    '#', a closing '}' or ']', or the end of the line. A triple-quoted
    string left open on the line runs to the end of the given text.
    Trailing whitespace is excluded.
    """
    state = ScanState.NORMAL
    quote = ""
    triple = False
    brackets = 0
    braces = 0
    last = start
    i = start
    n = len(text)

    while i < n:
        ch = text[i]

        if state is ScanState.IN_LINE_COMMENT:
            if ch == '\n':
                state = ScanState.NORMAL
            i += 1
            continue

        if state is ScanState.IN_STRING:
            if quote == '"' and ch == '\\':
                i = min(i + 2, n)
                last = i
                continue
            if triple:
                if text.startswith(quote * 3, i):
                    i += 3
                    # Up to two quotes may directly precede the closing delimiter
                    while i < n and text[i] == quote:
                        i += 1
                    state = ScanState.NORMAL
                else:
                    i += 1
                last = i
                continue
            if ch == '\n':
                break
            if ch == quote:
                state = ScanState.NORMAL
            i += 1
            last = i
            continue

        depth = brackets + braces
        if ch == '#':
            if depth == 0:
                break
            state = ScanState.IN_LINE_COMMENT
            i += 1
            continue
        if ch == '\n' and depth == 0:
            break

        if ch in ('"', "'"):
            state = ScanState.IN_STRING
            quote = ch
            triple = text.startswith(ch * 3, i)
            i += 3 if triple else 1
            last = i
            continue

        if ch == '[':
            brackets += 1
        elif ch == '{':
            braces += 1
        elif ch == ']':
            if brackets == 0:
                break
            brackets -= 1
        elif ch == '}':
            if braces == 0:
                break
            braces -= 1
        elif ch == ',' and depth == 0:
            break

        if not ch.isspace():
            last = i + 1
        i += 1

    return last


def iter_toml_sites(text: str) -> Iterator[TomlSite]:
    """Yield every table header and key/value line, top to bottom."""
    context = SectionContext()
    n = len(text)
    pos = 0

    while pos < n:
        eol = text.find('\n', pos)
        if eol == -1:
            eol = n
        line = text[pos:eol]
        stripped = line.strip()

        if not stripped or stripped.startswith('#'):
            pos = eol + 1
            continue

        indent = len(line) - len(line.lstrip())
        header = parse_section_header(line)
        if header:
            names, is_array_table = header
            section = context.enter(names, is_array_table)
            yield TomlSite(section, pos + indent, pos + indent, pos + len(line.rstrip()), is_header=True)
            pos = eol + 1
            continue

        parsed = parse_key_line(line)
        if parsed:
            names, key_col, value_col = parsed
            start = pos + value_col
            end = find_toml_value_end(text, start)
            if end > start:
                path = context.segments + tuple(PathSegment(name) for name in names)
                yield TomlSite(path, pos + key_col, start, end)
                # Resume after the line holding the end of the value
                nl = text.find('\n', end)
                pos = n if nl == -1 else nl + 1
                continue

        pos = eol + 1


def _nth_element(text: str, open_pos: int, index: int) -> Optional[int]:
    """Offset of element ``index`` of the array opening at ``open_pos``."""
    n = len(text)
    i = open_pos + 1
    current = 0
    while True:
        i = _skip_blank(text, i)
        if i >= n or text[i] == ']':
            return None
        if current == index:
            return i
        j = _skip_blank(text, find_toml_value_end(text, i))
        if j >= n or text[j] != ',':
            return None
        i = j + 1
        current += 1


def _inline_table_value(text: str, open_pos: int, key: str) -> Optional[int]:
    """Offset of ``key``'s value in the inline table opening at ``open_pos``."""
    n = len(text)
    i = open_pos + 1
    while True:
        i = _skip_blank(text, i)
        if i >= n or text[i] == '}':
            return None
        names, j = _read_dotted_key(text, i)
        if not names:
            return None
        j = _skip_spaces(text, j)
        if j >= n or text[j] != '=':
            return None
        value_pos = _skip_spaces(text, j + 1)
        if names == [key]:
            return value_pos
        j = _skip_blank(text, find_toml_value_end(text, value_pos))
        if j >= n or text[j] != ',':
            return None
        i = j + 1


def _descend_inline(text: str, start: int, remaining: KeyPath) -> Optional[tuple[int, int]]:
    """Follow the remaining segments into inline arrays and tables."""
    pos = start
    for segment in remaining:
        opener = text[pos] if pos < len(text) else ""
        if segment.has_index and opener == '[':
            found = _nth_element(text, pos, segment.index)
        elif not segment.is_array_index and opener == '{':
            found = _inline_table_value(text, pos, segment.key)
        else:
            return None
        if found is None:
            return None
        pos = found
    end = find_toml_value_end(text, pos)
    return (pos, end) if end > pos else None


def _names(path: KeyPath) -> tuple[str, ...]:
    return tuple(segment.key for segment in path if not segment.is_array_index)


def _result(text: str, start: int, end: int) -> ScanResult:
    return ScanResult(start, end, line_index=text.count('\n', 0, start))


def find_toml_value_span(text: str, path: KeyPath) -> Optional[ScanResult]:
    """
    Find the span of the value at ``path``.

    Array-of-tables elements are matched by position. A path without any
    index (``servers.host``) that has no exact match falls back to
    name-only matching, which picks the first table of that name.
    """
    if not path:
        return None
    path = tuple(path)

    key_sites = [site for site in iter_toml_sites(text) if not site.is_header]

    for site in key_sites:
        if site.path == path:
            return _result(text, site.value_offset, site.value_end)
        depth = len(site.path)
        if depth < len(path) and path[:depth] == site.path:
            span = _descend_inline(text, site.value_offset, path[depth:])
            if span:
                return _result(text, *span)

    if any(segment.is_array_index for segment in path):
        return None
    target_names = _names(path)
    for site in key_sites:
        if _names(site.path) == target_names:
            return _result(text, site.value_offset, site.value_end)

    return None
