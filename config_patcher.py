"""
Smart replace: apply value changes to config source text.

Only the characters of each changed literal are rewritten; comments,
spacing, key order and untouched sections stay byte-for-byte the same.
Changes are applied one at a time against the running text, deepest
paths first, and each one reports whether it landed.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from config_values import Dialect, JsonValue, from_python
from json_scanner import ScanResult, find_value_span
from key_path import KeyPath, format_path, parse_path, path_depth
from toml_scanner import find_toml_value_span
from value_formatter import ValueFormatError, format_value

# Module logger
log = logging.getLogger("modconfigpatcher.config_patcher")


@dataclass
class Change:
    """
    New value for one path. ``value`` None means the key or element was
    removed (a JSON null is ``JsonNull()``).
    """
    path: KeyPath
    value: Optional[JsonValue] = None

    @classmethod
    def parse(cls, path: str, value=None, deleted: bool = False) -> 'Change':
        """Build a change from a path string and a plain Python value."""
        return cls(parse_path(path), None if deleted else from_python(value))

    @property
    def is_deletion(self) -> bool:
        return self.value is None

    @property
    def path_string(self) -> str:
        return format_path(self.path)


class PatchStatus(Enum):
    """What happened to a single change."""
    APPLIED = "applied"
    SKIPPED_NOT_FOUND = "skipped-not-found"
    SKIPPED_UNSUPPORTED = "skipped-unsupported"


@dataclass
class ChangeOutcome:
    change: Change
    status: PatchStatus
    detail: str = ""


@dataclass
class PatchResult:
    """Patched text plus one outcome per change, in application order."""
    text: str
    outcomes: list[ChangeOutcome] = field(default_factory=list)

    @property
    def applied(self) -> list[ChangeOutcome]:
        return [o for o in self.outcomes if o.status is PatchStatus.APPLIED]

    @property
    def skipped(self) -> list[ChangeOutcome]:
        return [o for o in self.outcomes if o.status is not PatchStatus.APPLIED]

    @property
    def needs_full_rewrite(self) -> bool:
        """True when some change cannot be expressed as a value replacement."""
        return any(o.status is PatchStatus.SKIPPED_UNSUPPORTED for o in self.outcomes)


def locate_value(text: str, path: KeyPath, dialect: Dialect) -> Optional[ScanResult]:
    """Dispatch to the scanner for the dialect."""
    if dialect is Dialect.TOML:
        return find_toml_value_span(text, path)
    return find_value_span(text, path)


def replace_single_value(text: str, change: Change, dialect: Dialect) -> tuple[str, ChangeOutcome]:
    """Apply one change. The text comes back unchanged when it is skipped."""
    if not change.path:
        return text, ChangeOutcome(change, PatchStatus.SKIPPED_NOT_FOUND, "empty path")

    if change.is_deletion:
        return text, ChangeOutcome(
            change, PatchStatus.SKIPPED_UNSUPPORTED, "removal needs a full rewrite"
        )

    try:
        literal = format_value(change.value, dialect)
    except ValueFormatError as e:
        return text, ChangeOutcome(change, PatchStatus.SKIPPED_UNSUPPORTED, str(e))

    span = locate_value(text, change.path, dialect)
    if span is None or not span.found:
        return text, ChangeOutcome(change, PatchStatus.SKIPPED_NOT_FOUND)

    patched = text[:span.value_start] + literal + text[span.value_end:]
    return patched, ChangeOutcome(change, PatchStatus.APPLIED, f"line {span.line_index + 1}")


def apply_changes(original_text: str, changes: list[Change], dialect: Dialect) -> PatchResult:
    """
    Apply changes to ``original_text`` and return the new text.

    Deeper paths go first so a parent replacement never runs before the
    child edits it would swallow; ties keep their input order. Changes
    whose path is not in the text are skipped, not treated as errors.
    """
    ordered = sorted(changes, key=lambda c: path_depth(c.path), reverse=True)
    text = original_text
    outcomes: list[ChangeOutcome] = []

    for change in ordered:
        text, outcome = replace_single_value(text, change, dialect)
        outcomes.append(outcome)
        if outcome.status is PatchStatus.APPLIED:
            log.debug(f"Patched {change.path_string} ({outcome.detail})")
        else:
            log.debug(f"Skipped {change.path_string}: {outcome.status.value} {outcome.detail}".rstrip())

    return PatchResult(text, outcomes)


def smart_replace(original_text: str, changes: list[Change], dialect: Dialect) -> str:
    """Text-only variant of apply_changes."""
    return apply_changes(original_text, changes, dialect).text
