"""
Store Configuration Constants

This module provides centralized defaults for the SQLite key-value store.
All durations are expressed in milliseconds, matching the persisted
created_at/expire_at columns.
"""

# Base time units for TTL calculations (milliseconds)
BASE_MILLISECOND = 1
BASE_SECOND = 1000 * BASE_MILLISECOND
BASE_MINUTE = 60 * BASE_SECOND
BASE_HOUR = 60 * BASE_MINUTE
BASE_DAY = 24 * BASE_HOUR


class StoreDefaults:
    """Defaults applied when a store option is omitted."""

    NAME = "kv"
    PATH = ":memory:"
    TTL_MS = BASE_DAY  # 24 hours
    SERIALIZER = "json"

    # Returned by ttl() when the key has no row at all
    MISSING_TTL = -1


class SqliteLimits:
    """Bound-parameter budget per statement and INTEGER column range.

    SQLite builds before 3.32 cap host parameters at 999.
    """

    MAX_VARIABLES = 999
    UPSERT_COLUMNS = 4
    MAX_SELECT_KEYS = MAX_VARIABLES
    MAX_UPSERT_ROWS = MAX_VARIABLES // UPSERT_COLUMNS

    # INTEGER columns are signed 64-bit; leaves room for now + ttl
    MAX_TTL_MS = 2**62


class CodecConfig:
    """Codec tuning."""

    ZLIB_LEVEL = 6


class NamespaceRules:
    """Namespace names are interpolated into SQL and must be plain identifiers."""

    PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"
    MAX_LENGTH = 64
