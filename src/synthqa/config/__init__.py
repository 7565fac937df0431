"""
Configuration module - Centralized settings management.

This module provides type-safe configuration management using Pydantic,
supporting environment variables, YAML files, and CLI arguments.

Usage:
    from synthqa.config import get_settings, load_config

    settings = get_settings()
    settings = load_config(browser={"headless": False})

Environment Variables:
    SYNTHQA__BROWSER__ENGINE=firefox
    SYNTHQA__BROWSER__REMOTE_ENDPOINT=wss://chrome.browserless.io
    SYNTHQA__BROWSER__REMOTE_TOKEN=...
    SYNTHQA__EXECUTION__OUTPUT_DIR=/var/lib/synthqa
"""

from synthqa.config.settings import (
    Settings,
    BrowserSettings,
    ExecutionSettings,
    ServerSettings,
    LoggingSettings,
)
from synthqa.config.loader import ConfigLoader, load_config

# Global settings singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    Settings are loaded once from environment variables and config files.
    Call reset_settings() to reload.
    """
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def reset_settings() -> None:
    """Reset the global settings (forces reload on next get_settings())."""
    global _settings
    _settings = None


__all__ = [
    "Settings",
    "BrowserSettings",
    "ExecutionSettings",
    "ServerSettings",
    "LoggingSettings",
    "ConfigLoader",
    "load_config",
    "get_settings",
    "reset_settings",
]
