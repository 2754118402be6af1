"""
Structural diff between the loaded and the edited config tree.

Produces the Change list fed to the patcher: one entry per differing
leaf, per added key/element (with its new value) and per removed
key/element (a deletion).
"""

from config_patcher import Change
from config_values import JsonArray, JsonObject, JsonValue, from_python
from key_path import KeyPath, child_index, child_key


def diff_values(before, after, path: KeyPath = ()) -> list[Change]:
    """
    Compare two value trees and list the changes from ``before`` to ``after``.

    Plain Python data (as returned by json/json5/tomllib) is accepted as
    well as tagged values. A container whose type changed is reported
    as a single replacement at its own path.
    """
    before = from_python(before)
    after = from_python(after)
    changes: list[Change] = []
    _diff(before, after, tuple(path), changes)
    return changes


def _diff(before: JsonValue, after: JsonValue, path: KeyPath, out: list[Change]) -> None:
    if isinstance(before, JsonObject) and isinstance(after, JsonObject):
        for key, new_value in after.entries.items():
            if key not in before.entries:
                out.append(Change(child_key(path, key), new_value))
            else:
                _diff(before.entries[key], new_value, child_key(path, key), out)
        for key in before.entries:
            if key not in after.entries:
                out.append(Change(child_key(path, key)))
        return

    if isinstance(before, JsonArray) and isinstance(after, JsonArray):
        for index in range(max(len(before.items), len(after.items))):
            if index >= len(before.items):
                out.append(Change(child_index(path, index), after.items[index]))
            elif index >= len(after.items):
                out.append(Change(child_index(path, index)))
            else:
                _diff(before.items[index], after.items[index], child_index(path, index), out)
        return

    if type(before) is not type(after) or before != after:
        out.append(Change(path, after))
