"""
Comment extraction for the config editor.

Each key's description is the block of comment lines directly above its
definition plus any comment trailing on the same line. Descriptions are
derived from the raw text every time it is loaded and never written
back.
"""

from dataclasses import dataclass
from typing import Optional, Union

from config_values import Dialect, JsonArray, JsonObject, JsonValue, from_python, type_name
from json_scanner import ScanState, iter_value_sites
from key_path import KeyPath, PathSegment, child_index, child_key, format_path, parse_path
from toml_scanner import iter_toml_sites


# Decorative separator comments are not documentation
SEPARATOR_PREFIXES = ("===", "---")


@dataclass
class ConfigEntry:
    """One editable row: a key or array element with its value and description."""
    key: str
    value: JsonValue
    type: str
    path: KeyPath
    depth: int
    description: Optional[str] = None

    @property
    def path_string(self) -> str:
        return format_path(self.path)


def comment_line_text(stripped: str, dialect: Dialect) -> Optional[str]:
    """
    Text of a whole-line comment with its markers removed.

    Returns None when the line is not a comment in this dialect.
    """
    if dialect is Dialect.TOML:
        if not stripped.startswith('#'):
            return None
        return stripped.lstrip('#').strip()

    if stripped.startswith('//'):
        body = stripped.lstrip('/')
    elif stripped.startswith('/*'):
        # "/**" openers carry no text of their own
        body = stripped[2:].lstrip('*')
    elif stripped.startswith('*/'):
        body = stripped[2:]
    elif stripped.startswith('*'):
        body = stripped[1:]
    else:
        return None
    if body.endswith('*/'):
        body = body[:-2]
    return body.strip()


def find_trailing_comment(line: str, start: int, dialect: Dialect) -> Optional[str]:
    """
    Comment text following the value on a key line.

    Scanning starts at ``start`` (the key column) so quoted keys and
    string values containing comment markers are skipped. JSON block
    comments only count when closed on the same line.
    """
    state = ScanState.NORMAL
    quote = ""
    i = start
    n = len(line)

    while i < n:
        ch = line[i]
        if state is ScanState.IN_STRING:
            if ch == '\\' and not (dialect is Dialect.TOML and quote == "'"):
                i += 2
                continue
            if ch == quote:
                state = ScanState.NORMAL
            i += 1
            continue

        if ch in ('"', "'"):
            state = ScanState.IN_STRING
            quote = ch
        elif dialect is Dialect.TOML and ch == '#':
            return line[i:].lstrip('#').strip() or None
        elif dialect is not Dialect.TOML and line.startswith('//', i):
            return line[i:].lstrip('/').strip() or None
        elif dialect is not Dialect.TOML and line.startswith('/*', i):
            close = line.find('*/', i + 2)
            if close == -1:
                return None
            return line[i + 2:close].strip() or None
        i += 1

    return None


def _leading_comments(lines: list[str], line_index: int, dialect: Dialect) -> list[str]:
    collected: list[str] = []
    j = line_index - 1
    while j >= 0:
        stripped = lines[j].strip()
        # A blank line separates this key from the comments above it
        if not stripped:
            break
        text = comment_line_text(stripped, dialect)
        if text is None:
            break
        if text and not text.startswith(SEPARATOR_PREFIXES):
            collected.append(text)
        j -= 1
    collected.reverse()
    return collected


def _describe(lines: list[str], line_index: int, column: int, dialect: Dialect) -> Optional[str]:
    parts = _leading_comments(lines, line_index, dialect)
    trailing = find_trailing_comment(lines[line_index], column, dialect)
    if trailing:
        parts.append(trailing)
    return "\n".join(parts) if parts else None


def _iter_definitions(text: str, dialect: Dialect):
    """(path, offset of the defining key) for every key/element with its own text."""
    if dialect is Dialect.TOML:
        for site in iter_toml_sites(text):
            yield site.path, site.key_offset
            # [[servers]] also documents the array "servers" itself
            if site.is_header and site.path and site.path[-1].is_array_index:
                yield site.path[:-1], site.key_offset
    else:
        for site in iter_value_sites(text):
            yield site.path, site.key_offset


def _position(text: str, offset: int) -> tuple[int, int]:
    line_index = text.count('\n', 0, offset)
    line_start = text.rfind('\n', 0, offset) + 1
    return line_index, offset - line_start


def extract_description(full_text: str, key: Union[str, PathSegment],
                        parent_path: Union[str, KeyPath], dialect: Dialect) -> Optional[str]:
    """
    Description of ``parent_path`` + ``key``, or None when it has no comments.

    Leading comments must sit directly above the definition; a blank
    line in between means they belong to something else.
    """
    if isinstance(parent_path, str):
        parent_path = parse_path(parent_path)
    segment = key if isinstance(key, PathSegment) else PathSegment(key)
    target = tuple(parent_path) + (segment,)

    for path, offset in _iter_definitions(full_text, dialect):
        if path == target:
            line_index, column = _position(full_text, offset)
            return _describe(full_text.split('\n'), line_index, column, dialect)
    return None


def collect_descriptions(full_text: str, dialect: Dialect) -> dict:
    """Descriptions for every documented path, computed in one pass."""
    lines = full_text.split('\n')
    descriptions: dict = {}
    for path, offset in _iter_definitions(full_text, dialect):
        if not path or path in descriptions:
            continue
        line_index, column = _position(full_text, offset)
        description = _describe(lines, line_index, column, dialect)
        if description:
            descriptions[path] = description
    return descriptions


def extract_config_entries(parsed, full_text: str, dialect: Dialect) -> list[ConfigEntry]:
    """
    Flatten a parsed config into editor rows, parents before children.

    Object keys and array elements each get a row; depth counts from 0
    for top-level keys.
    """
    descriptions = collect_descriptions(full_text, dialect)
    entries: list[ConfigEntry] = []
    _collect_entries(from_python(parsed), (), 0, descriptions, entries)
    return entries


def _collect_entries(value: JsonValue, path: KeyPath, depth: int,
                     descriptions: dict, out: list[ConfigEntry]) -> None:
    if isinstance(value, JsonObject):
        children = [(key, child_key(path, key), item) for key, item in value.entries.items()]
    elif isinstance(value, JsonArray):
        children = [(f"[{i}]", child_index(path, i), item) for i, item in enumerate(value.items)]
    else:
        return

    for label, child_path, item in children:
        out.append(ConfigEntry(
            key=label,
            value=item,
            type=type_name(item),
            path=child_path,
            depth=depth,
            description=descriptions.get(child_path),
        ))
        _collect_entries(item, child_path, depth + 1, descriptions, out)
