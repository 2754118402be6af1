"""
Settings handler for ModConfigPatcher
Cross-platform settings storage.
- Windows: %APPDATA%/ModConfigPatcher/
- macOS: ~/Library/Application Support/ModConfigPatcher/
- Linux: ~/.config/modconfigpatcher/
"""

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional
from dataclasses import dataclass, field, asdict

# Module logger
log = logging.getLogger("modconfigpatcher.config_handler")


def get_platform() -> str:
    """Get current platform: 'windows', 'macos', or 'linux'."""
    system = platform.system().lower()
    if system == 'darwin':
        return 'macos'
    elif system == 'windows':
        return 'windows'
    else:
        return 'linux'


PLATFORM = get_platform()

MAX_RECENT_FILES = 10


@dataclass
class AppConfig:
    """Application settings data class."""
    # Minecraft server directory (the one containing config/)
    server_path: str = ""

    # Backups kept per config file
    max_backups: int = 10

    # Recently opened config files, relative to config/, newest first
    recent_files: list[str] = field(default_factory=list)
    last_opened_file: str = ""

    # Window geometry
    window_width: int = 1200
    window_height: int = 800
    window_x: int = -1
    window_y: int = -1

    # File list / editor / details
    splitter_sizes: list[int] = field(default_factory=lambda: [280, 640, 280])

    # Dark mode preference (None = system, True = dark, False = light)
    dark_mode: Optional[bool] = None

    # Patch only changed values instead of re-serializing the whole file
    prefer_smart_replace: bool = True


class ConfigHandler:
    """
    Handles loading, saving, and accessing application settings.
    Cross-platform settings directory support.
    """

    CONFIG_DIR_NAME = "ModConfigPatcher" if PLATFORM in ('windows', 'macos') else "modconfigpatcher"
    CONFIG_FILE_NAME = "settings.json"
    BACKUPS_DIR_NAME = "backups"

    # Fields that must keep their container type when loaded
    _LIST_FIELDS = ('recent_files', 'splitter_sizes')

    def __init__(self):
        self._config_dir = self._get_config_dir()
        self._config_file = self._config_dir / self.CONFIG_FILE_NAME
        self._backups_dir = self._config_dir / self.BACKUPS_DIR_NAME
        self._config: AppConfig = AppConfig()

        self._ensure_directories()
        self.load()

    def _get_config_dir(self) -> Path:
        """Get platform-specific settings directory."""
        if PLATFORM == 'windows':
            appdata = os.environ.get('APPDATA')
            if appdata:
                return Path(appdata) / self.CONFIG_DIR_NAME
            return Path.home() / 'AppData' / 'Roaming' / self.CONFIG_DIR_NAME

        elif PLATFORM == 'macos':
            return Path.home() / 'Library' / 'Application Support' / self.CONFIG_DIR_NAME

        else:
            # Linux: XDG config directory
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
            if xdg_config_home:
                base = Path(xdg_config_home)
            else:
                base = Path.home() / ".config"
            return base / self.CONFIG_DIR_NAME

    def _ensure_directories(self) -> None:
        self._config_dir.mkdir(parents=True, exist_ok=True)
        self._backups_dir.mkdir(parents=True, exist_ok=True)

    @property
    def config_dir(self) -> Path:
        """Return the settings directory path."""
        return self._config_dir

    @property
    def backups_dir(self) -> Path:
        """Return the directory holding config file backups."""
        return self._backups_dir

    @property
    def config(self) -> AppConfig:
        return self._config

    def load(self) -> bool:
        """
        Load settings from file.
        Returns True if loaded successfully, False otherwise.
        """
        if not self._config_file.exists():
            return False

        try:
            with open(self._config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)

            if not isinstance(data, dict):
                log.warning("Settings file is not a JSON object, using defaults")
                return False

            # Keep defaults for missing keys, ignore unknown ones
            for key, value in data.items():
                if not hasattr(self._config, key):
                    continue
                if key in self._LIST_FIELDS and not isinstance(value, list):
                    continue
                if key == 'max_backups' and (not isinstance(value, int) or isinstance(value, bool) or value < 1):
                    continue
                setattr(self._config, key, value)

            return True
        except (json.JSONDecodeError, IOError, PermissionError, TypeError) as e:
            log.warning(f"Failed to load settings: {e}")
            return False

    def save(self) -> bool:
        """
        Save settings to file using atomic write.
        Returns True if saved successfully, False otherwise.
        """
        try:
            fd, temp_path = tempfile.mkstemp(
                suffix='.json',
                prefix='settings_',
                dir=self._config_dir
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(asdict(self._config), f, indent=2)

                # Atomic rename (works on POSIX, best-effort on Windows)
                Path(temp_path).replace(self._config_file)
                return True
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise
        except (IOError, PermissionError, OSError) as e:
            log.error(f"Failed to save settings: {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """Get a settings value by key."""
        return getattr(self._config, key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a settings value and save."""
        if hasattr(self._config, key):
            setattr(self._config, key, value)
            self.save()

    def set_server_path(self, path: str) -> None:
        """Switch to another server; recent files belong to the old one."""
        if path == self._config.server_path:
            return
        self._config.server_path = path
        self._config.recent_files = []
        self._config.last_opened_file = ""
        self.save()

    def add_recent_file(self, relative_path: str) -> None:
        """Move a config file to the top of the recent list."""
        if not relative_path:
            return
        recent = [p for p in self._config.recent_files if p != relative_path]
        recent.insert(0, relative_path)
        self._config.recent_files = recent[:MAX_RECENT_FILES]
        self._config.last_opened_file = relative_path
        self.save()

    def remove_recent_file(self, relative_path: str) -> bool:
        if relative_path in self._config.recent_files:
            self._config.recent_files.remove(relative_path)
            if self._config.last_opened_file == relative_path:
                self._config.last_opened_file = ""
            self.save()
            return True
        return False

    def get_server_path(self) -> Optional[Path]:
        """Configured server directory, or None when unset."""
        if not self._config.server_path:
            return None
        return Path(self._config.server_path)
