"""
sqlite-kv Constants Module

This module provides centralized constants for the sqlite-kv library so that
magic values are defined in a single place.
"""

from .cache import (
    BASE_DAY,
    BASE_HOUR,
    BASE_MINUTE,
    BASE_SECOND,
    CodecConfig,
    NamespaceRules,
    SqliteLimits,
    StoreDefaults,
)
from .cli import CLICommands, CLIDefaults, CLIHelp, CLIMessages

__all__ = [
    "BASE_DAY",
    "BASE_HOUR",
    "BASE_MINUTE",
    "BASE_SECOND",
    "CLICommands",
    "CLIDefaults",
    "CLIHelp",
    "CLIMessages",
    "CodecConfig",
    "NamespaceRules",
    "SqliteLimits",
    "StoreDefaults",
]
