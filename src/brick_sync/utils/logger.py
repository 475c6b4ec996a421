"""
Logging Configuration and Utilities

Console logging with millisecond timestamps, optional rotating file output
and JSON formatting for unattended runs.

Author: brick-sync Project
License: MIT
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from pythonjsonlogger import jsonlogger

ROOT_LOGGER_NAME = "brick_sync"

CONSOLE_FORMAT = '[%(asctime)s.%(msecs)03d] %(levelname)s - %(name)s - %(message)s'
CONSOLE_DATEFMT = '%H:%M:%S'
FILE_FORMAT = '[%(asctime)s.%(msecs)03d] %(levelname)s - %(name)s:%(lineno)d - %(message)s'
FILE_DATEFMT = '%Y-%m-%d %H:%M:%S'
JSON_FORMAT = '%(asctime)s %(name)s %(levelname)s %(message)s'


class ColoredFormatter(logging.Formatter):
    """Colours the level name for interactive terminals."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m'
    }
    RESET = '\033[0m'

    def format(self, record):
        original = record.levelname
        color = self.COLORS.get(original)
        if color:
            record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = original


def _build_formatter(json_format: bool, fmt: str, datefmt: str, color: bool = False) -> logging.Formatter:
    if json_format:
        return jsonlogger.JsonFormatter(JSON_FORMAT)
    if color:
        return ColoredFormatter(fmt, datefmt=datefmt)
    return logging.Formatter(fmt, datefmt=datefmt)


def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_file_path: str = "logs/brick_sync.log",
    log_rotation_size: int = 10485760,  # 10MB
    log_retention_count: int = 5,
    json_format: bool = False
) -> logging.Logger:
    """
    Configure the brick_sync logger tree.

    Console lines carry the time of day down to the millisecond so that poll
    attempts can be told apart. Colour is only used when stdout is a terminal.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Also write to a rotating log file
        log_file_path: Path to log file
        log_rotation_size: Max log file size before rotation (bytes)
        log_retention_count: Number of backup log files to keep
        json_format: One JSON object per line on every handler

    Returns:
        The configured brick_sync logger
    """
    level = getattr(logging, log_level.upper())

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(_build_formatter(
        json_format, CONSOLE_FORMAT, CONSOLE_DATEFMT, color=sys.stdout.isatty()
    ))
    logger.addHandler(console_handler)

    if log_to_file:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file_path,
            maxBytes=log_rotation_size,
            backupCount=log_retention_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(_build_formatter(json_format, FILE_FORMAT, FILE_DATEFMT))
        logger.addHandler(file_handler)
        logger.info(f"File logging enabled: {log_file_path}")

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the brick_sync tree.

    Args:
        name: Logger name (typically __name__)
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
