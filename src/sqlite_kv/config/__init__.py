"""Configuration for sqlite-kv stores.

Import from here rather than from the models package:

    from sqlite_kv.config import StoreOptions, load_settings
"""

from sqlite_kv.config.loader import load_settings
from sqlite_kv.config.models import (
    DEFAULT_OPEN_FLAGS,
    CallOptions,
    LoggingSettings,
    OpenFlags,
    Settings,
    StoreOptions,
    StoreSettings,
)

__all__ = [
    "DEFAULT_OPEN_FLAGS",
    "CallOptions",
    "LoggingSettings",
    "OpenFlags",
    "Settings",
    "StoreOptions",
    "StoreSettings",
    "load_settings",
]
