"""
Logging configuration for ModConfigPatcher.
Console output plus one log file per day in the settings directory.
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional


LOGGER_NAME = "modconfigpatcher"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
KEEP_LOG_FILES = 5


def get_log_dir(config_dir: Path) -> Path:
    """Directory holding the daily log files."""
    return config_dir / "logs"


def current_log_file(config_dir: Path) -> Path:
    """Path of today's log file."""
    return get_log_dir(config_dir) / f"{LOGGER_NAME}_{datetime.now().strftime('%Y%m%d')}.log"


def setup_logging(config_dir: Optional[Path] = None, debug: bool = False) -> logging.Logger:
    """
    Set up application logging.

    Args:
        config_dir: Settings directory; a logs/ folder is created inside it
        debug: Log DEBUG records (per-change patch decisions) as well

    Returns:
        The application root logger
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Already configured (second window, tests)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if config_dir:
        log_dir = get_log_dir(config_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        try:
            file_handler = logging.FileHandler(current_log_file(config_dir), encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

            _cleanup_old_logs(log_dir, keep=KEEP_LOG_FILES)
        except (IOError, PermissionError) as e:
            logger.warning(f"Could not create log file: {e}")

    return logger


def _cleanup_old_logs(log_dir: Path, keep: int = KEEP_LOG_FILES):
    """Remove old log files, keeping the most recent ones."""
    try:
        log_files = sorted(log_dir.glob(f"{LOGGER_NAME}_*.log"), reverse=True)
        for old_log in log_files[keep:]:
            try:
                old_log.unlink()
            except (IOError, PermissionError):
                pass
    except (OSError, PermissionError):
        pass
