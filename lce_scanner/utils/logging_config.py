"""Logging setup for the scanner.

Console output stays terse (the CLI prints its own tables on stdout, so log
records go to stderr). A log file, when requested, always records DEBUG
detail so a failed live session can be inspected afterwards.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "lce_scanner"
LOG_LEVEL_ENV = "LCE_LOG_LEVEL"

CONSOLE_FORMAT = '%(asctime)s %(levelname)-7s %(name)s: %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s'

# Chatty HTTP internals, only shown when the scanner itself runs at DEBUG
NOISY_LOGGERS = ("urllib3", "requests")


def _resolve_level(log_level: Optional[str]) -> int:
    name = (log_level or os.getenv(LOG_LEVEL_ENV) or "INFO").upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure the `lce_scanner` logger tree.

    Args:
        log_level: Console level name; defaults to $LCE_LOG_LEVEL, then INFO
        log_file: Optional path; the file handler always logs at DEBUG
        log_format: Optional format for both handlers
        stream: Console stream (default: stderr)

    Returns:
        The configured root scanner logger

    Raises:
        ValueError: If log_level is not a known level name

    Example:
        >>> logger = setup_logging(log_level="WARNING", log_file="logs/scanner.log")
        >>> logger.info("Loaded %d symbols", 24)   # file only
    """
    console_level = _resolve_level(log_level)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if log_file else console_level)

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(log_format or CONSOLE_FORMAT, datefmt='%H:%M:%S'))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, mode='a')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(log_format or FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if console_level <= logging.DEBUG else logging.WARNING)

    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return `lce_scanner.<name>`, or the root scanner logger."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    return logging.getLogger(ROOT_LOGGER_NAME)
