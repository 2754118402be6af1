#!/usr/bin/env python3
"""
Unit tests for logger.py
Tests log setup and old log cleanup.
"""

import logging
import unittest
import tempfile
import shutil
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from logger import LOGGER_NAME, _cleanup_old_logs, current_log_file, get_log_dir, setup_logging


class TestLogging(unittest.TestCase):
    """Tests for setup_logging and helpers."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self._reset_handlers()

    def tearDown(self):
        self._reset_handlers()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _reset_handlers(self):
        logger = logging.getLogger(LOGGER_NAME)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def test_setup_creates_log_file(self):
        logger = setup_logging(self.temp_dir, debug=True)
        logging.getLogger(f"{LOGGER_NAME}.config_store").debug("hello from the store")
        for handler in logger.handlers:
            handler.flush()

        log_file = current_log_file(self.temp_dir)
        self.assertTrue(log_file.exists())
        self.assertIn("hello from the store", log_file.read_text(encoding="utf-8"))
        self.assertIn(f"{LOGGER_NAME}.config_store", log_file.read_text(encoding="utf-8"))

    def test_setup_is_idempotent(self):
        first = setup_logging(self.temp_dir)
        count = len(first.handlers)
        second = setup_logging(self.temp_dir)
        self.assertIs(first, second)
        self.assertEqual(len(second.handlers), count)

    def test_console_only(self):
        logger = setup_logging()
        self.assertEqual(len(logger.handlers), 1)
        self.assertFalse(get_log_dir(self.temp_dir).exists())

    def test_cleanup_keeps_newest(self):
        log_dir = get_log_dir(self.temp_dir)
        log_dir.mkdir(parents=True)
        for day in range(1, 8):
            (log_dir / f"{LOGGER_NAME}_2024010{day}.log").write_text("x", encoding="utf-8")

        _cleanup_old_logs(log_dir, keep=5)

        remaining = sorted(p.name for p in log_dir.glob("*.log"))
        self.assertEqual(len(remaining), 5)
        self.assertEqual(remaining[0], f"{LOGGER_NAME}_20240103.log")


if __name__ == "__main__":
    unittest.main()
