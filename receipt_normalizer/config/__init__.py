"""Configuration package."""

from receipt_normalizer.config.settings import (
    AppSettings,
    NormalizerSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "NormalizerSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
