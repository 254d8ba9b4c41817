"""Configuration package."""

from finledger.config.settings import (
    AppSettings,
    InsightSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "InsightSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
