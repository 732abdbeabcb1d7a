"""sqlite-kv: an expiring key-value cache stored in SQLite tables.

Example:
    >>> from sqlite_kv import create
    >>> store = create(name="sessions", path="cache.db", ttl=60_000)
    >>> store.set("user:1", {"name": "Ada"}).result()
    >>> store.get("user:1").result()
    {'name': 'Ada'}
"""

from sqlite_kv.config.models.store_settings import (
    DEFAULT_OPEN_FLAGS,
    CallOptions,
    OpenFlags,
    StoreOptions,
)
from sqlite_kv.services.codecs import Codec, CodecName, JsonCodec, ZlibJsonCodec
from sqlite_kv.services.sqlite_store.models import WriteResult
from sqlite_kv.services.sqlite_store_db import SqliteStore, create
from sqlite_kv.shared.constants import CLIDefaults
from sqlite_kv.shared.errors import (
    ApplicationError,
    CallContractError,
    ErrorCode,
    SqliteKVError,
    StorageError,
    StoreClosedError,
    StoreOpenError,
)

__version__ = CLIDefaults.VERSION

__all__ = [
    "DEFAULT_OPEN_FLAGS",
    "ApplicationError",
    "CallContractError",
    "CallOptions",
    "Codec",
    "CodecName",
    "ErrorCode",
    "JsonCodec",
    "OpenFlags",
    "SqliteKVError",
    "SqliteStore",
    "StorageError",
    "StoreClosedError",
    "StoreOpenError",
    "StoreOptions",
    "WriteResult",
    "ZlibJsonCodec",
    "__version__",
    "create",
]
