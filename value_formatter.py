"""
Render config values as literal text for JSON, JSON5 and TOML.

Output is always a single-line literal that can be spliced over an
existing value. Strings are always double-quoted with JSON escaping,
whatever the dialect, so the output does not depend on how the replaced
value was written.
"""

import json
import math
import re

from config_values import (
    Dialect, JsonValue, JsonNull, JsonBool, JsonNumber, JsonString,
    JsonArray, JsonObject,
)


_TOML_BARE_KEY = re.compile(r"^[A-Za-z0-9_-]+$")


class ValueFormatError(ValueError):
    """The value has no literal representation in the target dialect."""


def format_value(value: JsonValue, dialect: Dialect) -> str:
    """
    Format a value as a literal of the given dialect.

    Raises:
        ValueFormatError: for null in TOML and for NaN/Infinity in strict JSON
    """
    if isinstance(value, JsonNull):
        if dialect is Dialect.TOML:
            raise ValueFormatError("TOML has no null literal")
        return "null"

    if isinstance(value, JsonBool):
        return "true" if value.value else "false"

    if isinstance(value, JsonNumber):
        return _format_number(value.value, dialect)

    if isinstance(value, JsonString):
        return _quote(value.value)

    if isinstance(value, JsonArray):
        items = ", ".join(format_value(item, dialect) for item in value.items)
        return f"[{items}]"

    if isinstance(value, JsonObject):
        if dialect is Dialect.TOML:
            pairs = [
                f"{_toml_key(k)} = {format_value(v, dialect)}"
                for k, v in value.entries.items()
            ]
        else:
            pairs = [
                f"{_quote(k)}: {format_value(v, dialect)}"
                for k, v in value.entries.items()
            ]
        return "{" + ", ".join(pairs) + "}"

    raise TypeError(f"Not a config value: {value!r}")


def _quote(text: str) -> str:
    # TOML basic strings reject a raw DEL; the escape is valid JSON too
    return json.dumps(text, ensure_ascii=False).replace('\x7f', '\\u007f')


def _toml_key(key: str) -> str:
    # Inline-table keys stay bare unless TOML would reject them
    return key if _TOML_BARE_KEY.match(key) else _quote(key)


def _format_number(number, dialect: Dialect) -> str:
    if isinstance(number, float) and not math.isfinite(number):
        if dialect is Dialect.JSON:
            raise ValueFormatError(f"JSON cannot represent {number}")
        if math.isnan(number):
            return "nan" if dialect is Dialect.TOML else "NaN"
        if dialect is Dialect.TOML:
            return "inf" if number > 0 else "-inf"
        return "Infinity" if number > 0 else "-Infinity"
    # repr keeps the float/int distinction (1.0 stays a float in TOML)
    return repr(number)
