"""Environment-driven configuration."""

from evcalc.config.settings import AppConfig, get_config

__all__ = ["AppConfig", "get_config"]
