"""
Value model shared by the patcher, the diff producer and the editor.

Parsed config data is converted into a closed set of tagged value classes
so formatting and diffing can dispatch on the variant instead of probing
arbitrary Python objects.
"""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class Dialect(Enum):
    """Structured-text grammars supported by the editor."""
    JSON = "json"
    JSON5 = "json5"
    TOML = "toml"

    @classmethod
    def from_extension(cls, extension: str) -> Optional['Dialect']:
        """Map '.json' / 'json5' / '.TOML' style extensions to a dialect."""
        ext = extension.lower().lstrip('.')
        for dialect in cls:
            if dialect.value == ext:
                return dialect
        return None

    @classmethod
    def from_path(cls, path) -> Optional['Dialect']:
        return cls.from_extension(Path(path).suffix)

    @property
    def is_json_family(self) -> bool:
        return self is not Dialect.TOML


@dataclass
class JsonNull:
    pass


@dataclass
class JsonBool:
    value: bool


@dataclass
class JsonNumber:
    value: Union[int, float]


@dataclass
class JsonString:
    value: str


@dataclass
class JsonArray:
    items: list = field(default_factory=list)


@dataclass
class JsonObject:
    # Insertion order is the document order
    entries: dict = field(default_factory=dict)


JsonValue = Union[JsonNull, JsonBool, JsonNumber, JsonString, JsonArray, JsonObject]


def type_name(value: JsonValue) -> str:
    """Short type label used by the editor ("string", "number", ...)."""
    if isinstance(value, JsonNull):
        return "null"
    if isinstance(value, JsonBool):
        return "boolean"
    if isinstance(value, JsonNumber):
        return "number"
    if isinstance(value, JsonString):
        return "string"
    if isinstance(value, JsonArray):
        return "array"
    if isinstance(value, JsonObject):
        return "object"
    raise TypeError(f"Not a config value: {value!r}")


def from_python(data) -> JsonValue:
    """
    Convert the output of json/json5/tomllib into tagged values.

    TOML date and time values have no counterpart in the value union and
    are carried as their ISO-8601 text.
    """
    if isinstance(data, (JsonNull, JsonBool, JsonNumber, JsonString, JsonArray, JsonObject)):
        return data
    if data is None:
        return JsonNull()
    # bool before int: bool is an int subclass
    if isinstance(data, bool):
        return JsonBool(data)
    if isinstance(data, (int, float)):
        return JsonNumber(data)
    if isinstance(data, str):
        return JsonString(data)
    if isinstance(data, (datetime.datetime, datetime.date, datetime.time)):
        return JsonString(data.isoformat())
    if isinstance(data, dict):
        return JsonObject({str(k): from_python(v) for k, v in data.items()})
    if isinstance(data, (list, tuple)):
        return JsonArray([from_python(v) for v in data])
    raise TypeError(f"Unsupported config value type: {type(data).__name__}")


def to_python(value: JsonValue):
    """Inverse of from_python, used before handing data to a serializer."""
    if isinstance(value, JsonNull):
        return None
    if isinstance(value, (JsonBool, JsonNumber, JsonString)):
        return value.value
    if isinstance(value, JsonArray):
        return [to_python(v) for v in value.items]
    if isinstance(value, JsonObject):
        return {k: to_python(v) for k, v in value.entries.items()}
    raise TypeError(f"Not a config value: {value!r}")


def scalar_from_text(text: str, like: JsonValue) -> JsonValue:
    """
    Read an edited scalar back, keeping the type of the value it replaces.

    Raises:
        ValueError: the text is not a valid value of that type
    """
    if isinstance(like, JsonString):
        return JsonString(text)
    text = text.strip()
    if isinstance(like, JsonBool):
        lowered = text.lower()
        if lowered not in ("true", "false"):
            raise ValueError(f"Expected true or false, got {text!r}")
        return JsonBool(lowered == "true")
    if isinstance(like, JsonNumber):
        # 1.0 stays a float when edited to "2"
        if isinstance(like.value, float):
            return JsonNumber(float(text))
        try:
            return JsonNumber(int(text))
        except ValueError:
            return JsonNumber(float(text))
    if isinstance(like, JsonNull):
        if text in ("", "null"):
            return JsonNull()
        if text in ("true", "false"):
            return JsonBool(text == "true")
        try:
            return JsonNumber(int(text))
        except ValueError:
            pass
        try:
            return JsonNumber(float(text))
        except ValueError:
            return JsonString(text)
    raise ValueError(f"Cannot edit a {type_name(like)} as text")


def _container_for(root: JsonValue, path) -> JsonValue:
    node = root
    for segment in path[:-1]:
        if isinstance(node, JsonObject) and not segment.is_array_index:
            node = node.entries[segment.key]
        elif isinstance(node, JsonArray) and segment.has_index and segment.index < len(node.items):
            node = node.items[segment.index]
        else:
            raise KeyError(str(segment))
    return node


def set_value_at(root: JsonValue, path, value: JsonValue) -> None:
    """
    Replace the value at ``path`` inside ``root`` in place.

    Raises:
        KeyError: the path does not exist in the tree
    """
    if not path:
        raise KeyError("empty path")
    parent = _container_for(root, path)
    last = path[-1]
    if isinstance(parent, JsonObject) and not last.is_array_index:
        parent.entries[last.key] = value
    elif isinstance(parent, JsonArray) and last.has_index and last.index < len(parent.items):
        parent.items[last.index] = value
    else:
        raise KeyError(str(last))


def remove_value_at(root: JsonValue, path) -> None:
    """
    Remove a key or array element from ``root`` in place.

    Raises:
        KeyError: the path does not exist in the tree
    """
    if not path:
        raise KeyError("empty path")
    parent = _container_for(root, path)
    last = path[-1]
    if isinstance(parent, JsonObject) and not last.is_array_index and last.key in parent.entries:
        del parent.entries[last.key]
    elif isinstance(parent, JsonArray) and last.has_index and last.index < len(parent.items):
        del parent.items[last.index]
    else:
        raise KeyError(str(last))
