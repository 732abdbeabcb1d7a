"""Configuration models."""

from sqlite_kv.config.models.settings import LoggingSettings, Settings, StoreSettings
from sqlite_kv.config.models.store_settings import (
    DEFAULT_OPEN_FLAGS,
    CallOptions,
    OpenFlags,
    StoreOptions,
)

__all__ = [
    "DEFAULT_OPEN_FLAGS",
    "CallOptions",
    "LoggingSettings",
    "OpenFlags",
    "Settings",
    "StoreOptions",
    "StoreSettings",
]
