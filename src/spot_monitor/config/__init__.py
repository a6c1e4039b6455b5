"""Configuration management for Spot Monitor."""

from spot_monitor.config.schema import AppConfig
from spot_monitor.config.manager import ConfigManager

__all__ = ["AppConfig", "ConfigManager"]
