"""Configuration package for runtime settings and startup validation."""

from .logging_setup import config_configure_logging
from .settings import RuntimeSettings, SettingsLoadError, config_load_settings

__all__ = ["RuntimeSettings", "SettingsLoadError", "config_configure_logging", "config_load_settings"]
