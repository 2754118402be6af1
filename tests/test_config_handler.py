#!/usr/bin/env python3
"""
Unit tests for config_handler.py
Tests settings save/load and the recent files list.
"""

import unittest
import tempfile
import shutil
import json
from pathlib import Path
from unittest.mock import patch

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from config_handler import MAX_RECENT_FILES, AppConfig, ConfigHandler


class TestConfigHandler(unittest.TestCase):
    """Tests for ConfigHandler class."""

    def setUp(self):
        """Set up test fixtures with mocked settings directory."""
        self.temp_dir = Path(tempfile.mkdtemp())
        # Patch _get_config_dir to use temp directory
        self.patcher = patch.object(ConfigHandler, '_get_config_dir', return_value=self.temp_dir)
        self.patcher.start()
        self.config_handler = ConfigHandler()

    def tearDown(self):
        """Clean up test fixtures."""
        self.patcher.stop()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_default_config_created(self):
        """Test that default settings are created on init."""
        self.assertIsInstance(self.config_handler.config, AppConfig)
        self.assertTrue(self.config_handler.config.prefer_smart_replace)
        self.assertEqual(self.config_handler.config.max_backups, 10)
        self.assertTrue(self.config_handler.backups_dir.is_dir())

    def test_save_and_load_config(self):
        """Test saving and loading settings."""
        self.config_handler.config.window_width = 1920
        self.config_handler.config.server_path = "/srv/minecraft"
        self.config_handler.config.prefer_smart_replace = False

        self.assertTrue(self.config_handler.save())

        new_handler = ConfigHandler()
        self.assertEqual(new_handler.config.window_width, 1920)
        self.assertEqual(new_handler.config.server_path, "/srv/minecraft")
        self.assertFalse(new_handler.config.prefer_smart_replace)

    def test_invalid_values_ignored(self):
        """Test that wrong types and unknown keys keep the defaults."""
        settings_file = self.temp_dir / ConfigHandler.CONFIG_FILE_NAME
        settings_file.write_text(json.dumps({
            "recent_files": "not-a-list",
            "max_backups": 0,
            "unknown_key": 1,
            "window_height": 600,
        }), encoding="utf-8")

        handler = ConfigHandler()
        self.assertEqual(handler.config.recent_files, [])
        self.assertEqual(handler.config.max_backups, 10)
        self.assertFalse(hasattr(handler.config, "unknown_key"))
        self.assertEqual(handler.config.window_height, 600)

    def test_corrupt_file(self):
        (self.temp_dir / ConfigHandler.CONFIG_FILE_NAME).write_text("{not json", encoding="utf-8")
        handler = ConfigHandler()
        self.assertFalse(handler.load())
        self.assertEqual(handler.config.server_path, "")

    def test_set(self):
        self.config_handler.set("max_backups", 3)
        self.assertEqual(ConfigHandler().config.max_backups, 3)


class TestRecentFiles(unittest.TestCase):
    """Tests for the recent files list."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.patcher = patch.object(ConfigHandler, '_get_config_dir', return_value=self.temp_dir)
        self.patcher.start()
        self.config_handler = ConfigHandler()

    def tearDown(self):
        self.patcher.stop()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_add_recent_file(self):
        """Test that the newest file goes first without duplicates."""
        self.config_handler.add_recent_file("a.toml")
        self.config_handler.add_recent_file("b.json")
        self.config_handler.add_recent_file("a.toml")

        self.assertEqual(self.config_handler.config.recent_files, ["a.toml", "b.json"])
        self.assertEqual(self.config_handler.config.last_opened_file, "a.toml")

    def test_recent_files_capped(self):
        for i in range(MAX_RECENT_FILES + 3):
            self.config_handler.add_recent_file(f"f{i}.json")
        self.assertEqual(len(self.config_handler.config.recent_files), MAX_RECENT_FILES)
        self.assertEqual(self.config_handler.config.recent_files[0], f"f{MAX_RECENT_FILES + 2}.json")

    def test_remove_recent_file(self):
        self.config_handler.add_recent_file("a.toml")
        self.assertTrue(self.config_handler.remove_recent_file("a.toml"))
        self.assertFalse(self.config_handler.remove_recent_file("a.toml"))
        self.assertEqual(self.config_handler.config.last_opened_file, "")

    def test_switching_server_clears_recent(self):
        self.config_handler.set_server_path("/srv/one")
        self.config_handler.add_recent_file("a.toml")
        self.config_handler.set_server_path("/srv/two")

        self.assertEqual(self.config_handler.config.recent_files, [])
        self.assertEqual(self.config_handler.get_server_path(), Path("/srv/two"))


if __name__ == "__main__":
    unittest.main()
