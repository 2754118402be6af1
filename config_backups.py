"""
Rolling backups of config files.

Every save copies the previous version of the file here first, so the
last few versions of each config can be restored by hand.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

# Module logger
log = logging.getLogger("modconfigpatcher.config_backups")


@dataclass
class ConfigBackup:
    """One stored version of a config file."""
    relative_path: str
    timestamp: str
    filename: str
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "relative_path": self.relative_path,
            "timestamp": self.timestamp,
            "filename": self.filename,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ConfigBackup':
        return cls(
            relative_path=data.get("relative_path", ""),
            timestamp=data.get("timestamp", ""),
            filename=data.get("filename", ""),
            reason=data.get("reason", ""),
        )


class ConfigBackupManager:
    """Keeps the newest ``max_backups`` versions of each config file."""

    INDEX_FILE = "backups.json"

    def __init__(self, backups_dir: Path, max_backups: int = 10):
        self.backups_dir = backups_dir
        self.backups_dir.mkdir(parents=True, exist_ok=True)
        self.max_backups = max(1, max_backups)
        self.backups: list[ConfigBackup] = []
        self._load_index()

    def _load_index(self) -> None:
        index_file = self.backups_dir / self.INDEX_FILE
        if index_file.exists():
            try:
                with open(index_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                self.backups = [ConfigBackup.from_dict(b) for b in data.get("backups", [])]
            except (json.JSONDecodeError, IOError, AttributeError) as e:
                log.warning(f"Backup index unreadable, starting empty: {e}")
                self.backups = []

    def _save_index(self) -> None:
        index_file = self.backups_dir / self.INDEX_FILE
        try:
            with open(index_file, 'w', encoding='utf-8') as f:
                json.dump({"backups": [b.to_dict() for b in self.backups]}, f, indent=2)
        except IOError as e:
            log.error(f"Failed to save backup index: {e}")

    @staticmethod
    def _storage_name(relative_path: str) -> str:
        # Flatten "sub/dir/file.toml" into one safe directory name
        return re.sub(r"[^\w.-]", "_", relative_path.replace("\\", "/").replace("/", "__"))

    def _file_for(self, backup: ConfigBackup) -> Path:
        return self.backups_dir / self._storage_name(backup.relative_path) / backup.filename

    def create_backup(self, relative_path: str, content: str, reason: str = "") -> Optional[ConfigBackup]:
        """Store ``content`` as the newest version of ``relative_path``."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        suffix = Path(relative_path).suffix
        folder = self.backups_dir / self._storage_name(relative_path)

        filename = f"{timestamp}{suffix}"
        counter = 1
        while (folder / filename).exists():
            filename = f"{timestamp}_{counter}{suffix}"
            counter += 1

        backup = ConfigBackup(
            relative_path=relative_path,
            timestamp=timestamp,
            filename=filename,
            reason=reason,
        )

        target = folder / filename
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding='utf-8')
        except (IOError, PermissionError) as e:
            log.error(f"Failed to back up {relative_path}: {e}")
            return None

        self.backups.insert(0, backup)
        self._cleanup(relative_path)
        self._save_index()
        log.debug(f"Backed up {relative_path} as {backup.filename}")
        return backup

    def _cleanup(self, relative_path: str) -> None:
        """Remove versions of a file beyond the limit."""
        for old in self.list_backups(relative_path)[self.max_backups:]:
            self.backups.remove(old)
            try:
                self._file_for(old).unlink()
            except (IOError, PermissionError, FileNotFoundError):
                pass

    def read_backup(self, backup: ConfigBackup) -> Optional[str]:
        """Content of a stored version, or None if it is gone."""
        try:
            return self._file_for(backup).read_text(encoding='utf-8')
        except (IOError, PermissionError, FileNotFoundError) as e:
            log.error(f"Failed to read backup {backup.filename}: {e}")
            return None

    def delete_backup(self, backup: ConfigBackup) -> bool:
        if backup not in self.backups:
            return False
        self.backups.remove(backup)
        try:
            self._file_for(backup).unlink()
        except (IOError, PermissionError, FileNotFoundError):
            pass
        self._save_index()
        return True

    def list_backups(self, relative_path: Optional[str] = None) -> list[ConfigBackup]:
        """Backups, newest first, optionally only those of one file."""
        if relative_path is None:
            return self.backups.copy()
        return [b for b in self.backups if b.relative_path == relative_path]

    def get_latest_backup(self, relative_path: str) -> Optional[ConfigBackup]:
        backups = self.list_backups(relative_path)
        return backups[0] if backups else None
