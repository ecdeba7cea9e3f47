"""Configuration loaded from the environment."""

from .settings import (
    AdapterSettings,
    DispatchSettings,
    LoggingSettings,
    NotionSettings,
    PineconeSettings,
    ServerSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "AdapterSettings", "ServerSettings", "DispatchSettings", "PineconeSettings",
    "NotionSettings", "LoggingSettings", "get_settings", "clear_settings_cache",
]
