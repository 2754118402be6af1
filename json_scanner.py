"""
Locate values inside JSON / JSON5 source text.

Nothing here builds a document tree. The scanner walks the raw text
once, keeping only the current container path (object keys and array
indices), and reports where each value starts. The end of a value is
found by a small character state machine that skips strings, escapes
and comments and tracks bracket depth.

Malformed text never raises: the walk just ends early or yields fewer
sites, and the caller treats a missing site as "not found".
"""

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from key_path import KeyPath, child_key, child_index


class ScanState(Enum):
    """Lexical state of the character scanner."""
    NORMAL = "normal"
    IN_STRING = "in_string"
    IN_LINE_COMMENT = "in_line_comment"
    IN_BLOCK_COMMENT = "in_block_comment"


@dataclass(frozen=True)
class ScanResult:
    """
    Span of an existing literal, as absolute offsets into the text.

    ``value_end`` is exclusive. A scalar's span never crosses a newline;
    a container written over several lines spans all of them.
    """
    value_start: int
    value_end: int
    line_index: int = 0

    @property
    def found(self) -> bool:
        return self.value_end > self.value_start


@dataclass(frozen=True)
class ValueSite:
    """Where a value (and the key introducing it) starts in the text."""
    path: KeyPath
    key_offset: int
    value_offset: int


class _Expect(Enum):
    KEY = "key"
    COLON = "colon"
    VALUE = "value"
    COMMA = "comma"


@dataclass
class _Frame:
    path: KeyPath
    is_array: bool
    index: int = 0
    key: str = ""
    key_offset: int = 0


# JSON5 identifier keys (lenient: digits and '-' accepted too)
_BARE_KEY = re.compile(r"[\w$-]+")
# Unquoted literal: number, true/false/null, Infinity, NaN, hex...
_SCALAR = re.compile(r"[^\s,\]\}/]+")


def find_value_end(text: str, start: int) -> int:
    """
    Return the exclusive end offset of the value starting at ``start``.

    The value ends at the first ',' '}' or ']' outside strings at nesting
    depth 0, at a '//' comment, or at the end of the line, with trailing
    whitespace and block comments excluded. A closing bracket met at
    depth 0 belongs to the parent container. Returns ``start`` when no
    value is present.
    """
    state = ScanState.NORMAL
    quote = ""
    depth = 0
    last = start
    i = start
    n = len(text)

    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if state is ScanState.IN_BLOCK_COMMENT:
            if ch == '*' and nxt == '/':
                state = ScanState.NORMAL
                i += 2
            else:
                i += 1
            continue

        if state is ScanState.IN_LINE_COMMENT:
            if ch == '\n':
                state = ScanState.NORMAL
            i += 1
            continue

        if state is ScanState.IN_STRING:
            if ch == '\\':
                i = min(i + 2, n)
                last = i
                continue
            if ch == '\n':
                # Unterminated string: give up at the line end
                break
            if ch == quote:
                state = ScanState.NORMAL
            i += 1
            last = i
            continue

        if ch == '/' and nxt == '/':
            if depth == 0:
                break
            state = ScanState.IN_LINE_COMMENT
            i += 2
            continue
        if ch == '/' and nxt == '*':
            state = ScanState.IN_BLOCK_COMMENT
            i += 2
            continue
        if ch == '\n' and depth == 0:
            break

        if ch in ('"', "'"):
            state = ScanState.IN_STRING
            quote = ch
            i += 1
            last = i
            continue

        if ch in '{[':
            depth += 1
        elif ch in '}]':
            if depth == 0:
                break
            depth -= 1
        elif ch == ',' and depth == 0:
            break

        if not ch.isspace():
            last = i + 1
        i += 1

    return last


def _decode_key(raw: str, quote: str) -> str:
    if '\\' not in raw:
        return raw
    if quote == "'":
        raw = raw.replace("\\'", "'").replace('"', '\\"')
    try:
        return json.loads(f'"{raw}"')
    except ValueError:
        return raw


def _value_path(stack: list[_Frame], offset: int) -> tuple[KeyPath, int]:
    if not stack:
        return (), offset
    top = stack[-1]
    if top.is_array:
        return child_index(top.path, top.index), offset
    return child_key(top.path, top.key), top.key_offset


def iter_value_sites(text: str) -> Iterator[ValueSite]:
    """
    Yield a ValueSite for every value in the document, in text order.

    Containers are reported before their children. Duplicate keys are
    reported once per occurrence.
    """
    stack: list[_Frame] = []
    expect = _Expect.VALUE
    state = ScanState.NORMAL
    quote = ""
    string_start = 0
    i = 0
    n = len(text)

    def close() -> _Expect:
        if stack:
            stack.pop()
        return _Expect.COMMA

    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if state is ScanState.IN_LINE_COMMENT:
            if ch == '\n':
                state = ScanState.NORMAL
            i += 1
            continue

        if state is ScanState.IN_BLOCK_COMMENT:
            if ch == '*' and nxt == '/':
                state = ScanState.NORMAL
                i += 2
            else:
                i += 1
            continue

        if state is ScanState.IN_STRING:
            if ch == '\\':
                i += 2
                continue
            if ch == quote or ch == '\n':
                state = ScanState.NORMAL
                if expect is _Expect.KEY:
                    stack[-1].key = _decode_key(text[string_start + 1:i], quote)
                    expect = _Expect.COLON
                else:
                    expect = _Expect.COMMA
            i += 1
            continue

        if ch.isspace():
            i += 1
            continue
        if ch == '/' and nxt == '/':
            state = ScanState.IN_LINE_COMMENT
            i += 2
            continue
        if ch == '/' and nxt == '*':
            state = ScanState.IN_BLOCK_COMMENT
            i += 2
            continue

        if expect is _Expect.KEY:
            if ch in '}]':
                expect = close()
                i += 1
            elif ch in ('"', "'"):
                stack[-1].key_offset = i
                state = ScanState.IN_STRING
                quote = ch
                string_start = i
                i += 1
            else:
                match = _BARE_KEY.match(text, i)
                if match:
                    stack[-1].key = match.group()
                    stack[-1].key_offset = i
                    expect = _Expect.COLON
                    i = match.end()
                else:
                    i += 1
            continue

        if expect is _Expect.COLON:
            if ch == ':':
                expect = _Expect.VALUE
            elif ch in '}]':
                expect = close()
            i += 1
            continue

        if expect is _Expect.VALUE:
            if stack and ch in '}]':
                expect = close()
                i += 1
                continue

            path, key_offset = _value_path(stack, i)
            yield ValueSite(path, key_offset, i)

            if ch == '{':
                stack.append(_Frame(path, is_array=False))
                expect = _Expect.KEY
                i += 1
            elif ch == '[':
                stack.append(_Frame(path, is_array=True))
                i += 1
            elif ch in ('"', "'"):
                state = ScanState.IN_STRING
                quote = ch
                string_start = i
                i += 1
            else:
                match = _SCALAR.match(text, i)
                i = match.end() if match else i + 1
                expect = _Expect.COMMA
            continue

        # Expecting ',' or the end of the current container
        if ch == ',' and stack:
            top = stack[-1]
            if top.is_array:
                top.index += 1
                expect = _Expect.VALUE
            else:
                expect = _Expect.KEY
        elif ch in '}]':
            expect = close()
        i += 1


def find_value_span(text: str, path: KeyPath) -> Optional[ScanResult]:
    """
    Find the span of the value at ``path``.

    The full reconstructed path must equal the target, so keys with the
    same name at different depths are never confused. Returns None when
    the path is empty or not present.
    """
    if not path:
        return None
    path = tuple(path)

    for site in iter_value_sites(text):
        if site.path != path:
            continue
        end = find_value_end(text, site.value_offset)
        if end <= site.value_offset:
            return None
        return ScanResult(
            value_start=site.value_offset,
            value_end=end,
            line_index=text.count('\n', 0, site.value_offset),
        )

    return None
