"""YAML configuration loading for carrier keyword locales."""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from ..tracking.keywords import KeywordSet, register_locale
from .types import ConfigLoadError

logger = logging.getLogger(__name__)

KEYWORD_FIELDS = ("not_found", "result_cues", "delivered", "customs")


class ConfigLoader:
    """Loads optional YAML configuration that extends the built-in keywords.

    Example::

        locales:
          ru:
            not_found: ["не найдено"]
            delivered: ["вручено"]
            customs: ["таможня"]
    """

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = Path(config_file) if config_file else Path("postwatch.yaml")
        self._cache: Optional[dict[str, Any]] = None

    def load_yaml_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        if self._cache is not None:
            return self._cache

        if not self.config_file.exists():
            logger.debug(f"Config file {self.config_file} not found, using defaults")
            self._cache = {}
            return self._cache

        try:
            with open(self.config_file, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"Failed to parse YAML config: {str(e)}") from e
        except OSError as e:
            raise ConfigLoadError(f"Failed to load config file: {str(e)}") from e

        if not isinstance(config, dict):
            raise ConfigLoadError(f"{self.config_file} must contain a mapping")

        logger.info(f"Loaded configuration from {self.config_file}")
        self._cache = config
        return config

    def load_locales(self) -> dict[str, KeywordSet]:
        """Parse the ``locales`` section into keyword sets."""
        locales = self.load_yaml_config().get("locales") or {}
        if not isinstance(locales, dict):
            raise ConfigLoadError("'locales' must be a mapping of locale to keywords")

        parsed = {}
        for name, data in locales.items():
            issues = self._validate_locale(name, data)
            if issues:
                raise ConfigLoadError("; ".join(issues))
            parsed[str(name)] = KeywordSet.from_dict(data)
        return parsed

    def register_locales(self) -> list[str]:
        """Add configured locales to the keyword registry; returns their names."""
        locales = self.load_locales()
        for name, keyword_set in locales.items():
            register_locale(name, keyword_set)
            logger.info(f"Registered keyword locale '{name}'")
        return list(locales)

    @staticmethod
    def _validate_locale(name: Any, data: Any) -> list[str]:
        if not isinstance(data, dict):
            return [f"Locale '{name}' must be a mapping"]

        issues = []
        for key, value in data.items():
            if key not in KEYWORD_FIELDS:
                issues.append(f"Locale '{name}' has unknown field '{key}'")
            elif not isinstance(value, list) or not all(
                isinstance(item, str) and item for item in value
            ):
                issues.append(f"Locale '{name}' field '{key}' must be a list of strings")
        return issues
