"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.constants import FeedConstants, PlaybackConstants
from ..domain.shared.messages import ErrorMessages
from ..domain.shared.types import UserIdStr


class DatabaseSettings(BaseModel):
    """Database configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(
        default="sqlite:///data/podcasts.db",
        validation_alias=AliasChoices("url", "database_url", "db_url"),
    )
    busy_timeout_ms: int = Field(
        default=5000,
        ge=1000,
        le=30000,
        validation_alias=AliasChoices("busy_timeout_ms", "busy_timeout"),
    )
    connection_timeout_s: int = Field(
        default=10,
        ge=1,
        le=60,
        validation_alias=AliasChoices("connection_timeout_s", "connection_timeout"),
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Only SQLite is supported."""
        if not v.startswith("sqlite://"):
            raise ValueError(ErrorMessages.INVALID_DATABASE_URL)
        return v


class PlaybackSettings(BaseModel):
    """Playback and progress checkpoint configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    checkpoint_interval_ms: int = Field(
        default=PlaybackConstants.CHECKPOINT_INTERVAL_MS,
        ge=10,
        le=60000,
        validation_alias=AliasChoices("checkpoint_interval_ms", "checkpoint_interval"),
    )
    skip_forward_seconds: float = Field(
        default=PlaybackConstants.SKIP_FORWARD_SECONDS, gt=0.0, le=600.0
    )
    skip_backward_seconds: float = Field(
        default=PlaybackConstants.SKIP_BACKWARD_SECONDS, gt=0.0, le=600.0
    )
    default_volume: float = Field(default=PlaybackConstants.DEFAULT_VOLUME, ge=0.0, le=1.0)
    default_speed: float = Field(
        default=PlaybackConstants.DEFAULT_SPEED,
        ge=PlaybackConstants.MIN_SPEED,
        le=PlaybackConstants.MAX_SPEED,
    )
    # False: any checkpoint marks the episode played. True: only completion does.
    played_requires_completion: bool = False
    progress_precision: int = Field(default=PlaybackConstants.PROGRESS_PRECISION, ge=0, le=6)

    @property
    def checkpoint_interval_seconds(self) -> float:
        return self.checkpoint_interval_ms / 1000


class AudioSettings(BaseModel):
    """Audio output configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    ffplay_path: str = Field(
        default="ffplay", validation_alias=AliasChoices("ffplay_path", "ffplay")
    )
    ffprobe_path: str = Field(
        default="ffprobe", validation_alias=AliasChoices("ffprobe_path", "ffprobe")
    )
    tick_interval_ms: int = Field(default=250, ge=20, le=5000)


class FeedSettings(BaseModel):
    """Feed fetching configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    timeout_seconds: float = Field(
        default=15.0,
        gt=0.0,
        le=120.0,
        validation_alias=AliasChoices("timeout_seconds", "timeout"),
    )
    user_agent: str = FeedConstants.DEFAULT_USER_AGENT


class PreferenceSettings(BaseModel):
    """Local preference file configuration."""

    model_config = SettingsConfigDict(frozen=True)

    path: Path = Path("data/preferences.json")


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL, USER_ID (top-level)
    - DATABASE__URL, PLAYBACK__CHECKPOINT_INTERVAL_MS, etc. (nested with ``__``)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    user_id: UserIdStr = "local"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    feeds: FeedSettings = Field(default_factory=FeedSettings)
    preferences: PreferenceSettings = Field(default_factory=PreferenceSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper

    @classmethod
    def from_env(cls) -> Settings:
        """Create settings from environment variables."""
        return cls()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
