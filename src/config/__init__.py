"""Configuration package."""

from src.config.settings import (
    AppSettings,
    GeminiSettings,
    GoogleSheetsSettings,
    MarketDataSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GeminiSettings",
    "GoogleSheetsSettings",
    "MarketDataSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
