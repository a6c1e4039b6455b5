"""Shared test fixtures for Spot Monitor."""

from __future__ import annotations

from pathlib import Path

import pytest

from spot_monitor.config.manager import ConfigManager
from spot_monitor.config.schema import AppConfig


@pytest.fixture
def config() -> AppConfig:
    """Provide a default test configuration."""
    return AppConfig()


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    """Provide a config manager with test paths."""
    defaults = tmp_path / "config.defaults.yaml"
    defaults.write_text("region: CZ\ncurrency: EUR\n")
    user = tmp_path / "config.yaml"
    mgr = ConfigManager(defaults_path=defaults, user_path=user)
    mgr.load()
    return mgr
