"""Configuration management module."""

from .settings import IntakeSettings, get_settings, reset_settings

__all__ = [
    "IntakeSettings",
    "get_settings",
    "reset_settings",
]
