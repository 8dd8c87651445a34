# ollama_mcp/logging.py
"""
Logging configuration for the server.

Stdout carries protocol frames, so log records only ever go to a file or to
stderr.
"""

import logging
import sys
from typing import Optional

LOGGER_NAME = "ollama_mcp"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Accepts the CLI level names as well as the MCP `logging/setLevel` names.
_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "alert": logging.CRITICAL,
    "emergency": logging.CRITICAL,
}


def parse_level(name: str) -> int:
    """
    Translate a level name into a `logging` level.

    Args:
        name: Case-insensitive level name, e.g. "info" or "warn"

    Returns:
        The numeric logging level

    Raises:
        ValueError: If the name is not a known level
    """
    try:
        return _LEVELS[name.strip().lower()]
    except KeyError:
        raise ValueError(f"unknown log level: {name!r}") from None


def setup_logging(log_file: Optional[str] = None, log_level: str = "info") -> logging.Logger:
    """
    Configure the package logger.

    Args:
        log_file: Path of a file to append to; stderr when empty
        log_level: Level name understood by `parse_level`

    Returns:
        The configured package logger
    """
    level = parse_level(log_level)
    logger = logging.getLogger(LOGGER_NAME)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_file:
        handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def set_log_level(name: str) -> None:
    logging.getLogger(LOGGER_NAME).setLevel(parse_level(name))
