"""Configuration loading, saving and validation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from spot_monitor.config.regions import CURRENCIES, REGIONS
from spot_monitor.config.schema import AppConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """Loads config from YAML files (defaults + user overrides) and validates it."""

    def __init__(
        self,
        defaults_path: Path | None = None,
        user_path: Path | None = None,
    ) -> None:
        self._defaults_path = defaults_path or Path("config.defaults.yaml")
        self._user_path = user_path or Path("config.yaml")
        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            raise RuntimeError("Config not loaded. Call load() first.")
        return self._config

    def load(self) -> AppConfig:
        """Load configuration from defaults + user overrides."""
        defaults = self._load_yaml(self._defaults_path)
        overrides = self._load_yaml(self._user_path) if self._user_path.exists() else {}
        merged = self._deep_merge(defaults, overrides)
        config = AppConfig.model_validate(merged)
        self._config = self._normalise_codes(config)
        logger.info(
            "Configuration loaded (region=%s, currency=%s)",
            self._config.region, self._config.currency,
        )
        return self._config

    def to_json(self) -> str:
        return self.config.model_dump_json(indent=2)

    def save_user_config(self, updates: dict[str, Any]) -> AppConfig:
        """Apply updates to the user config file and reload."""
        current = self._load_yaml(self._user_path) if self._user_path.exists() else {}
        merged = self._deep_merge(current, updates)
        self._user_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._user_path, "w") as f:
            yaml.dump(merged, f, default_flow_style=False, sort_keys=False)
        logger.info("User config saved: %s", sorted(updates))
        return self.load()

    @staticmethod
    def _normalise_codes(config: AppConfig) -> AppConfig:
        """Upper-case region/currency codes and replace unknown ones with defaults."""
        region = config.region.upper()
        currency = config.currency.upper()
        if region not in REGIONS:
            logger.warning("Unknown region %r, falling back to CZ", config.region)
            region = "CZ"
        if currency not in CURRENCIES:
            logger.warning("Unknown currency %r, falling back to EUR", config.currency)
            currency = "EUR"
        return config.model_copy(update={"region": region, "currency": currency})

    @staticmethod
    def _load_yaml(path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        with open(path) as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge override into base, returning a new dict."""
        result = dict(base)
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = ConfigManager._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
