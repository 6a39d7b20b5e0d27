"""
Core Module - Shared configuration and logging.

Components:
- config: Engine tunables (PlaylistSettings, get_settings)
- log_config: Loguru sink setup for entry points
"""

from src.core.config import PlaylistSettings, get_settings
from src.core.log_config import configure_logging

__all__ = [
    "PlaylistSettings",
    "get_settings",
    "configure_logging",
]
