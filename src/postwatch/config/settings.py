"""Pydantic settings models for configuration management."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .types import ConfigError

MIN_CHECK_DELAY = 3.0


class TrackingSettings(BaseModel):
    """Carrier tracking page configuration."""

    tracking_url: str = "https://mypost.israelpost.co.il/itemtrace"
    navigation_timeout: int = 30000  # milliseconds
    settle_delay: int = 2000  # milliseconds
    check_delay: float = MIN_CHECK_DELAY  # seconds between packages
    raw_text_limit: int = 3000
    locales: list[str] = Field(default_factory=lambda: ["he", "en"])

    @field_validator("tracking_url")
    @classmethod
    def validate_url(cls, v):
        if not v:
            raise ValueError("Tracking URL cannot be empty")
        return v

    @field_validator("navigation_timeout", "settle_delay")
    @classmethod
    def validate_timeouts(cls, v):
        if v < 0:
            raise ValueError("Timeouts cannot be negative")
        return v

    @field_validator("check_delay")
    @classmethod
    def validate_check_delay(cls, v):
        if v < MIN_CHECK_DELAY:
            raise ValueError(
                f"Check delay must be at least {MIN_CHECK_DELAY} seconds"
            )
        return v

    @field_validator("raw_text_limit")
    @classmethod
    def validate_raw_text_limit(cls, v):
        if v <= 0:
            raise ValueError("Raw text limit must be positive")
        return v

    @field_validator("locales")
    @classmethod
    def validate_locales(cls, v):
        if not v:
            raise ValueError("At least one keyword locale is required")
        return v


class ScrapingSettings(BaseModel):
    """Browser automation configuration."""

    headless: bool = True
    max_retries: int = 1
    retry_delay: float = 5.0  # seconds
    executable_path: Optional[str] = Field(
        default_factory=lambda: os.environ.get("CHROME_PATH")
    )
    user_agents: list[str] = Field(
        default_factory=lambda: [
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
        ]
    )

    @field_validator("max_retries")
    @classmethod
    def validate_retries(cls, v):
        if v < 0:
            raise ValueError("Max retries cannot be negative")
        return v

    @field_validator("user_agents")
    @classmethod
    def validate_user_agents(cls, v):
        if not v:
            raise ValueError("At least one user agent is required")
        return v


class StorageSettings(BaseModel):
    """Watchlist persistence configuration."""

    state_file: Path = Field(
        default_factory=lambda: Path.home() / ".israel-post-state.json"
    )


class NotificationSettings(BaseModel):
    """Outbound notification configuration."""

    default_channel: str = "whatsapp"
    command: str = "openclaw"
    command_timeout: float = 60.0  # seconds
    slack_bot_token: SecretStr = Field(default=SecretStr(""))

    @field_validator("command")
    @classmethod
    def validate_command(cls, v):
        if not v:
            raise ValueError("Notification command cannot be empty")
        return v


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="POSTWATCH_",
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False
    log_level: str = "WARNING"
    json_logs: bool = False
    config_file: Optional[Path] = None

    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    scraping: ScrapingSettings = Field(default_factory=ScrapingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    notification: NotificationSettings = Field(default_factory=NotificationSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()


@lru_cache
def get_settings() -> AppSettings:
    """Get the application settings instance."""
    try:
        return AppSettings()
    except Exception as e:
        raise ConfigError(f"Failed to load settings: {str(e)}") from e


def reload_settings() -> AppSettings:
    """Force reload of settings (useful for testing)."""
    get_settings.cache_clear()
    return get_settings()
