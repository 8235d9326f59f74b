"""Configuration package."""

from src.config.settings import (
    AppSettings,
    BootstrapSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "BootstrapSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
