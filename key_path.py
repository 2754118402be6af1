"""
Key paths for config values.

A path such as ``parent.child[2].key`` names one value inside a parsed
JSON/JSON5/TOML document. Parsing is deliberately lenient: unbalanced
brackets never raise, the scanner just keeps whatever segments it could
read, and an empty path string gives an empty path (which callers treat
as "not found").
"""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class PathSegment:
    """One step of a key path: an object key or an array index."""
    key: str
    is_array_index: bool = False

    @property
    def has_index(self) -> bool:
        """True for an array-index segment whose text is a plain number."""
        return self.is_array_index and self.key.isdigit()

    @property
    def index(self) -> int:
        """Integer value of an array-index segment."""
        return int(self.key)

    def __str__(self) -> str:
        return f"[{self.key}]" if self.is_array_index else self.key


KeyPath = tuple[PathSegment, ...]


def parse_path(path_str: str) -> KeyPath:
    """
    Split a dotted/bracketed path string into segments.

    '.' outside brackets ends a bare key, '[' flushes a pending bare key
    and opens an index, ']' closes the index. Empty buffers are dropped,
    so "a..b" and "a[]" do not produce empty segments.
    """
    segments: list[PathSegment] = []
    current = ""
    in_bracket = False

    for char in path_str:
        if char == '[':
            if current:
                segments.append(PathSegment(current))
                current = ""
            in_bracket = True
        elif char == ']':
            if current:
                segments.append(PathSegment(current, is_array_index=True))
                current = ""
            in_bracket = False
        elif char == '.' and not in_bracket:
            if current:
                segments.append(PathSegment(current))
                current = ""
        else:
            current += char

    if current:
        segments.append(PathSegment(current))

    return tuple(segments)


def format_path(segments: Iterable[PathSegment]) -> str:
    """Render segments back into the ``a.b[0].c`` form."""
    out = ""
    for segment in segments:
        if segment.is_array_index:
            out += f"[{segment.key}]"
        elif out:
            out += f".{segment.key}"
        else:
            out = segment.key
    return out


def path_depth(path) -> int:
    """Number of segments in a path given as a string or a segment sequence."""
    if isinstance(path, str):
        return len(parse_path(path))
    return len(path)


def child_key(parent: KeyPath, key: str) -> KeyPath:
    return parent + (PathSegment(key),)


def child_index(parent: KeyPath, index: int) -> KeyPath:
    return parent + (PathSegment(str(index), is_array_index=True),)

