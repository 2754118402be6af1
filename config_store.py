"""
Config file store for a Minecraft server directory.

Reads and writes the files under ``<server>/config``. Saving tries a
smart replace first (only changed literals are rewritten), re-parses
the result, backs up the previous version and then swaps the new text
in with an atomic rename.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from config_backups import ConfigBackup, ConfigBackupManager
from config_diff import diff_values
from config_formats import (
    SUPPORTED_EXTENSIONS, ConfigParseError, detect_dialect, parse_config_text, restore_dates,
    serialize_config, validate_config_text,
)
from config_patcher import Change, PatchResult, apply_changes
from config_values import Dialect, from_python, to_python

# Module logger
log = logging.getLogger("modconfigpatcher.config_store")


class ConfigStoreError(Exception):
    """A config file could not be read or written."""


class ConfigPathError(ConfigStoreError):
    """The path is outside the config directory, unsupported or missing."""


class ConfigValidationError(ConfigStoreError):
    """The text about to be written does not parse; nothing was written."""

    def __init__(self, message: str, relative_path: str):
        super().__init__(f"{relative_path}: {message}")
        self.parser_message = message
        self.relative_path = relative_path


@dataclass
class ConfigFileInfo:
    """A config file found under the config directory."""
    path: str
    name: str
    dialect: Dialect
    size: int
    modified_at: str


@dataclass
class LoadedConfig:
    """Raw text of a config file plus its parsed data, if it parses."""
    path: str
    dialect: Dialect
    content: str
    parsed: object = None
    parse_error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.parse_error is None


@dataclass
class SaveResult:
    """What a save did."""
    path: str
    mode: str  # "smart", "overwrite", "text" or "restore"
    written: bool
    content: str
    patch: Optional[PatchResult] = None
    backup: Optional[ConfigBackup] = None
    notes: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not self.written:
            return "No changes to save"
        if self.patch is not None and self.mode == "smart":
            applied = len(self.patch.applied)
            skipped = len(self.patch.skipped)
            text = f"Saved {self.path}: {applied} value(s) updated"
            if skipped:
                text += f", {skipped} skipped"
            return text
        if self.mode == "overwrite":
            return f"Saved {self.path} (file rewritten, comments not kept)"
        return f"Saved {self.path}"


class ConfigFileStore:
    """Access to the config files of one server."""

    CONFIG_DIR_NAME = "config"

    def __init__(self, server_path: Path, backups_dir: Path, max_backups: int = 10):
        self.server_path = Path(server_path)
        self.backups = ConfigBackupManager(backups_dir, max_backups=max_backups)

    @property
    def config_dir(self) -> Path:
        return self.server_path / self.CONFIG_DIR_NAME

    def resolve(self, relative_path: str) -> Path:
        """
        Absolute path of a file inside the config directory.

        Raises:
            ConfigPathError: if the path escapes the config directory
        """
        root = self.config_dir.resolve()
        full = (root / relative_path).resolve()
        if full == root or not full.is_relative_to(root):
            raise ConfigPathError(f"Invalid file path: {relative_path}")
        return full

    def _dialect_for(self, path: Path) -> Dialect:
        dialect = detect_dialect(path)
        if dialect is None:
            raise ConfigPathError(f"Unsupported config file type: {path.name}")
        return dialect

    def list_files(self) -> list[ConfigFileInfo]:
        """All JSON/JSON5/TOML files under the config directory, by folder then name."""
        if not self.config_dir.is_dir():
            return []

        files = []
        for path in self.config_dir.rglob("*"):
            if not path.is_file() or path.name.startswith('.'):
                continue
            if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
                continue
            try:
                stat = path.stat()
            except OSError as e:
                log.warning(f"Skipping unreadable config file {path}: {e}")
                continue
            relative = path.relative_to(self.config_dir).as_posix()
            files.append(ConfigFileInfo(
                path=relative,
                name=path.name,
                dialect=detect_dialect(path),
                size=stat.st_size,
                modified_at=datetime.fromtimestamp(stat.st_mtime).isoformat(timespec="seconds"),
            ))

        files.sort(key=lambda f: (str(Path(f.path).parent).lower(), f.name.lower()))
        return files

    def _read(self, path: Path, relative_path: str) -> str:
        if not path.is_file():
            raise ConfigPathError(f"File not found: {relative_path}")
        try:
            # newline='' keeps CRLF files byte-identical
            with open(path, 'r', encoding='utf-8', newline='') as f:
                return f.read()
        except (IOError, PermissionError, UnicodeDecodeError) as e:
            raise ConfigStoreError(f"Failed to read {relative_path}: {e}") from e

    def load(self, relative_path: str) -> LoadedConfig:
        """Read a config file. Parse errors are reported, not raised."""
        path = self.resolve(relative_path)
        dialect = self._dialect_for(path)
        content = self._read(path, relative_path)

        loaded = LoadedConfig(path=relative_path, dialect=dialect, content=content)
        try:
            loaded.parsed = parse_config_text(content, dialect)
        except ConfigParseError as e:
            loaded.parse_error = str(e)
            log.info(f"{relative_path} does not parse: {e}")
        return loaded

    def save_changes(self, relative_path: str, changes: list[Change],
                     edited=None, smart: bool = True) -> SaveResult:
        """
        Apply changes to a config file.

        Value replacements are patched into the existing text. If some
        change cannot be patched that way (a removed key or element, a
        TOML null) and the full edited tree is given, the file is
        re-serialized from ``edited`` instead; paths that are simply not
        in the file are skipped. ``smart=False`` always re-serializes.

        Raises:
            ConfigValidationError: the resulting text does not parse
            ConfigStoreError: reading or writing failed
        """
        path = self.resolve(relative_path)
        dialect = self._dialect_for(path)
        original = self._read(path, relative_path)

        patch = apply_changes(original, changes, dialect)
        notes = [
            f"{o.change.path_string}: {o.status.value}" + (f" ({o.detail})" if o.detail else "")
            for o in patch.skipped
        ]

        if edited is not None and (not smart or patch.needs_full_rewrite):
            log.warning(f"{relative_path}: falling back to full rewrite, comments will be lost")
            data = to_python(from_python(edited))
            if dialect is Dialect.TOML:
                try:
                    data = restore_dates(data, parse_config_text(original, dialect))
                except ConfigParseError as e:
                    log.info(f"{relative_path}: current text does not parse, dates written as edited: {e}")
            new_text = serialize_config(data, dialect)
            mode = "overwrite"
        else:
            new_text = patch.text
            mode = "smart"

        if new_text == original:
            return SaveResult(relative_path, mode, False, original, patch, notes=notes)

        backup = self._commit(path, relative_path, new_text, original, dialect, reason=f"before {mode} save")
        log.info(f"Saved {relative_path} ({mode}, {len(patch.applied)}/{len(changes)} patched)")
        return SaveResult(relative_path, mode, True, new_text, patch, backup, notes)

    def save_edited(self, relative_path: str, original, edited, smart: bool = True) -> SaveResult:
        """Diff the loaded and edited trees and save the differences."""
        changes = diff_values(original, edited)
        if not changes:
            path = self.resolve(relative_path)
            content = self._read(path, relative_path)
            return SaveResult(relative_path, "smart", False, content)
        return self.save_changes(relative_path, changes, edited=edited, smart=smart)

    def save_text(self, relative_path: str, content: str) -> SaveResult:
        """Write raw text (from the code view) after checking it parses."""
        path = self.resolve(relative_path)
        dialect = self._dialect_for(path)
        original = self._read(path, relative_path) if path.exists() else None
        if original == content:
            return SaveResult(relative_path, "text", False, content)
        backup = self._commit(path, relative_path, content, original, dialect, reason="before text save")
        return SaveResult(relative_path, "text", True, content, backup=backup)

    def restore_backup(self, backup: ConfigBackup) -> SaveResult:
        """Write a stored version back; the current version is backed up first."""
        content = self.backups.read_backup(backup)
        if content is None:
            raise ConfigStoreError(f"Backup {backup.filename} is missing")
        path = self.resolve(backup.relative_path)
        dialect = self._dialect_for(path)
        original = self._read(path, backup.relative_path) if path.exists() else None
        new_backup = self._commit(path, backup.relative_path, content, original, dialect,
                                  reason=f"before restoring {backup.timestamp}")
        return SaveResult(backup.relative_path, "restore", True, content, backup=new_backup)

    def _commit(self, path: Path, relative_path: str, new_text: str,
                old_text: Optional[str], dialect: Dialect, reason: str) -> Optional[ConfigBackup]:
        error = validate_config_text(new_text, dialect)
        if error:
            log.error(f"Refusing to write {relative_path}: {error}")
            raise ConfigValidationError(error, relative_path)

        backup = None
        if old_text is not None:
            backup = self.backups.create_backup(relative_path, old_text, reason)

        self._write_atomic(path, relative_path, new_text)
        return backup

    @staticmethod
    def _write_atomic(path: Path, relative_path: str, text: str) -> None:
        """Write to a temp file next to the target, then rename over it."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(suffix=path.suffix, prefix=f".{path.stem}_", dir=path.parent)
            try:
                with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
                    f.write(text)
                Path(temp_path).replace(path)
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise
        except (IOError, PermissionError, OSError) as e:
            log.error(f"Failed to write {relative_path}: {e}")
            raise ConfigStoreError(f"Failed to write {relative_path}: {e}") from e
