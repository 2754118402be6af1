"""
Parsing and full serialization of config files.

json, json5 and tomllib do the parsing; this module only maps each
dialect to its library and turns library errors into ConfigParseError.
Full serialization is the fallback used when an edit cannot be
expressed as a value replacement, and it loses comments.
"""

import datetime
import json
import tomllib
from pathlib import Path
from typing import Optional

import json5
import toml

from config_values import Dialect


SUPPORTED_EXTENSIONS = ('.json', '.json5', '.toml')

_DATE_TYPES = (datetime.datetime, datetime.date, datetime.time)


class ConfigParseError(ValueError):
    """Config text is not valid in its dialect."""

    def __init__(self, message: str, dialect: Dialect):
        super().__init__(message)
        self.dialect = dialect


def detect_dialect(path) -> Optional[Dialect]:
    """Dialect from the file extension, or None for unsupported files."""
    return Dialect.from_path(Path(path))


def parse_config_text(text: str, dialect: Dialect):
    """
    Parse config text into plain Python data.

    Raises:
        ConfigParseError: with the parser's own message
    """
    try:
        if dialect is Dialect.JSON:
            return json.loads(text)
        if dialect is Dialect.JSON5:
            return json5.loads(text)
        return tomllib.loads(text)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, ValueError) as e:
        raise ConfigParseError(str(e), dialect) from e


def validate_config_text(text: str, dialect: Dialect) -> Optional[str]:
    """Return the parse error message, or None when the text is valid."""
    try:
        parse_config_text(text, dialect)
    except ConfigParseError as e:
        return str(e)
    return None


def restore_dates(data, original):
    """
    Put TOML date/time objects back where the editor carried them as text.

    ``original`` is the document as the parser returned it. A string in
    ``data`` that still equals the ISO text of the date at the same spot
    in ``original`` becomes that date object again; edited strings stay
    strings.
    """
    if isinstance(data, str):
        if isinstance(original, _DATE_TYPES) and original.isoformat() == data:
            return original
        return data
    if isinstance(data, dict):
        if not isinstance(original, dict):
            return data
        return {key: restore_dates(value, original.get(key)) for key, value in data.items()}
    if isinstance(data, list):
        if not isinstance(original, list):
            return data
        # removed elements shift indexes, so match array dates by their text
        dates = {item.isoformat(): item for item in original if isinstance(item, _DATE_TYPES)}
        restored = []
        for index, value in enumerate(data):
            if isinstance(value, str) and value in dates:
                restored.append(dates[value])
            elif index < len(original):
                restored.append(restore_dates(value, original[index]))
            else:
                restored.append(value)
        return restored
    return data


def serialize_config(data, dialect: Dialect) -> str:
    """
    Render a whole document. Comments and original layout are not kept.

    TOML has no null: keys holding None are left out by the toml writer.
    """
    if dialect is Dialect.JSON:
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    if dialect is Dialect.JSON5:
        return json5.dumps(data, indent=2, ensure_ascii=False) + "\n"
    if not isinstance(data, dict):
        raise ConfigParseError("A TOML document must be a table", dialect)
    return toml.dumps(data)
