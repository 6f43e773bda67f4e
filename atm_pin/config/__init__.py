"""Configuration package."""

from atm_pin.config.settings import (
    AppSettings,
    PinSettings,
    Settings,
    StoreSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "PinSettings",
    "Settings",
    "StoreSettings",
    "get_settings",
    "validate_all_settings",
]
