"""Configuration package."""

from src.config.settings import (
    ApiSettings,
    AppSettings,
    DashboardSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "DashboardSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
