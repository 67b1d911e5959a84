"""Configuration management system for postwatch."""

from .settings import (
    AppSettings,
    NotificationSettings,
    ScrapingSettings,
    StorageSettings,
    TrackingSettings,
    get_settings,
    reload_settings,
)
from .types import ConfigError, ConfigLoadError
from .loader import ConfigLoader

__all__ = [
    "AppSettings",
    "TrackingSettings",
    "ScrapingSettings",
    "StorageSettings",
    "NotificationSettings",
    "get_settings",
    "reload_settings",
    "ConfigLoader",
    "ConfigError",
    "ConfigLoadError",
]
