"""Logging setup for the application."""

import logging
from typing import Optional

from ..config import Config

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logger(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger with a console handler.

    Library modules only call logging.getLogger(__name__); entry points
    call this once.

    Args:
        level: Level name (defaults to Config.LOG_LEVEL)
        fmt: Log format string

    Returns:
        The configured "vocabrecall" logger
    """
    resolved_level = getattr(logging, (level or Config.LOG_LEVEL).upper(), logging.INFO)

    logger = logging.getLogger("vocabrecall")
    logger.setLevel(resolved_level)

    # Clear existing handlers to avoid duplicate logs on repeated setup
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
