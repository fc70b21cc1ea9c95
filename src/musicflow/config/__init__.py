"""Configuration module for MusicFlow."""

from .settings import (
    APISettings,
    AuthSettings,
    DatabaseSettings,
    ObservabilitySettings,
    ScannerSettings,
    Settings,
    StorageSettings,
    get_settings,
)

__all__ = [
    "APISettings",
    "AuthSettings",
    "DatabaseSettings",
    "ObservabilitySettings",
    "ScannerSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
]
