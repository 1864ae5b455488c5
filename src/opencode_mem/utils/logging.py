"""Logging setup for opencode-mem processes."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from opencode_mem.config.app import LoggingSettings, default_log_file

LOGGER_NAME = "opencode_mem"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(settings: LoggingSettings | None = None) -> logging.Logger:
    """
    Setup structured logging with rotation for the package logger.

    Hook runners are short-lived processes spawned per event, so stdout and
    stderr stay clean: everything goes to the rotating file.

    Args:
        settings: Logging settings (defaults used when None)

    Returns:
        Configured package logger
    """
    settings = settings or LoggingSettings()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, settings.level.upper(), logging.INFO))

    # Avoid duplicate handlers if logger already configured
    if logger.handlers:
        return logger

    log_file_path = Path(settings.file or default_log_file()).expanduser()
    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_file_path,
        maxBytes=settings.max_size_mb * 1024 * 1024,
        backupCount=settings.backup_count,
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(file_handler)
    logger.propagate = False

    return logger
