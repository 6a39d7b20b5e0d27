"""
Configuration settings for the adaptive playlist engine.

Uses Pydantic Settings for environment variable management with .env file support.
All variables use the PLAYLIST_ prefix, e.g. PLAYLIST_SKIP_MASTERY_THRESHOLD=0.8.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PlaylistSettings(BaseSettings):
    """Engine tunables loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PLAYLIST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )

    # ========================================
    # Full-mode personalization
    # ========================================
    skip_mastery_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Mastery every taught node must reach before a skippable LU is skipped",
    )
    practice_question_count: int = Field(
        default=5,
        ge=1,
        description="Questions in an injected practice entry",
    )

    # ========================================
    # Gates without explicit configuration
    # ========================================
    default_mastery_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Mastery threshold for gates authored without a gate config",
    )
    default_min_questions: int = Field(
        default=3,
        ge=0,
        description="Minimum questions for gates authored without a gate config",
    )
    default_max_retries: int = Field(
        default=2,
        ge=-1,
        description="Attempts allowed for gates authored without a gate config (-1 = unlimited)",
    )


@lru_cache(maxsize=1)
def get_settings() -> PlaylistSettings:
    """Get cached settings instance."""
    return PlaylistSettings()
