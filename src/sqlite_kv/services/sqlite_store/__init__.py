"""SQLite store internals: connection, schema, operations and expiration."""

from sqlite_kv.services.sqlite_store.connection import SerializedConnection
from sqlite_kv.services.sqlite_store.expiration import ExpirationManager, now_ms
from sqlite_kv.services.sqlite_store.models import EntryRow, WriteResult

__all__ = [
    "EntryRow",
    "ExpirationManager",
    "SerializedConnection",
    "WriteResult",
    "now_ms",
]
