"""
Logging setup.

Library modules log through loguru's shared `logger`; entry points call
configure_logging() once to replace the default sink.
"""

from __future__ import annotations

import sys

from loguru import logger

from src.core.config import get_settings

LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {name}:{line} - {message}"


def configure_logging(level: str | None = None) -> None:
    """
    Route loguru output to stderr at the given level.

    Args:
        level: Log level name; defaults to PLAYLIST_LOG_LEVEL
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level or get_settings().log_level,
        format=LOG_FORMAT,
    )
