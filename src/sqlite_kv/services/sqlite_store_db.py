"""SQLite key-value store facade.

This module exposes one namespace of a SQLite database as an expiring
key-value store. Operations are queued on the namespace's serialized
connection and their outcome is delivered either to a completion handler or
through a future.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable, Mapping
from concurrent.futures import Future
from typing import Any, TypeVar, cast

from pydantic import ValidationError

from sqlite_kv.config.models.store_settings import OpenFlags, StoreOptions
from sqlite_kv.services.async_bridge import add_readiness_hook, bridge
from sqlite_kv.services.call_normalizer import (
    CallRequest,
    normalize_keyless,
    normalize_mget,
    normalize_mset,
    normalize_set,
    normalize_single,
)
from sqlite_kv.services.codecs import Codec, resolve_codec, safe_decode
from sqlite_kv.services.sqlite_store.connection import SerializedConnection
from sqlite_kv.services.sqlite_store.expiration import ExpirationManager, now_ms
from sqlite_kv.services.sqlite_store.models import WriteResult
from sqlite_kv.services.sqlite_store.operations.insert import InsertOperations
from sqlite_kv.services.sqlite_store.operations.query import QueryOperations
from sqlite_kv.services.sqlite_store.operations.update import UpdateOperations
from sqlite_kv.services.sqlite_store.schema.manager import SchemaManager
from sqlite_kv.shared.errors import (
    ErrorCode,
    ErrorContext,
    StoreOpenError,
    create_config_error,
)
from sqlite_kv.shared.logging import log_operation_error

logger = logging.getLogger(__name__)

OpsT = TypeVar("OpsT")

# camelCase option names accepted by ``create`` for compatibility
_OPTION_ALIASES = {"onOpen": "on_open", "onReady": "on_ready"}


class SqliteStore:
    """One namespace (table) of a SQLite database used as a key-value cache.

    Entries expire ``ttl`` milliseconds after they are written. Expired
    entries read as absent and are physically removed by a purge queued
    after any read that encountered them.

    Every operation accepts optional trailing arguments: a ttl (number, where
    the operation writes), an options mapping and a completion handler. With a
    completion handler the operation returns None and the handler receives
    ``(error, result)``; without one it returns a ``Future``.

    Attributes:
        options: Validated store options
        name: Namespace (table) name
        default_ttl: Entry lifetime used when a call gives none, in ms
        codec: Codec for stored values
        ready: Future resolved with the store once the schema exists, or
            with the ``StoreOpenError`` that made it unusable

    Example:
        >>> store = create(name="movies", path="cache.db")
        >>> store.set("k", {"title": "Akira"}).result()
        >>> store.get("k").result()
        {'title': 'Akira'}
        >>> store.close()
    """

    def __init__(self, options: StoreOptions) -> None:
        """Open the database and queue schema creation.

        Returns immediately; readiness is reported through ``ready``,
        ``wait_ready()`` and the ``on_open``/``on_ready`` hooks. Operations
        issued before readiness are queued behind schema creation.

        Args:
            options: Validated store options
        """
        self.options = options
        self.name = options.name
        self.default_ttl = options.ttl
        self.codec: Codec = resolve_codec(options.serializer)

        self._query_ops: QueryOperations | None = None
        self._insert_ops: InsertOperations | None = None
        self._update_ops: UpdateOperations | None = None

        self._connection = SerializedConnection(options)
        self._expiration = ExpirationManager(self._connection, self._purge_rows)

        opened = self._connection.open()
        add_readiness_hook(opened, options.on_open)

        # Without a completion handler the bridge always returns a future
        self.ready = cast(
            "Future[SqliteStore]",
            bridge(None, lambda: self._connection.submit("initialize", self._initialize)),
        )
        add_readiness_hook(self.ready, options.on_ready)

    def __repr__(self) -> str:
        return f"SqliteStore(name={self.name!r}, path={self.options.path!r})"

    def __enter__(self) -> SqliteStore:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    @property
    def path(self) -> str:
        return self.options.path

    @property
    def closed(self) -> bool:
        return self._connection.closed

    def _initialize(self) -> SqliteStore:
        """Create (or, read-only, verify) the namespace schema on the worker."""
        conn = self._connection.conn
        if conn is None:
            raise RuntimeError("Database connection not initialized")
        schema = SchemaManager(conn, self.name)

        try:
            if self.options.open_flags & OpenFlags.READWRITE:
                schema.create_tables()
            elif not schema.validate_schema():
                error = StoreOpenError(
                    ErrorCode.SCHEMA_CREATION_FAILED,
                    f"Namespace '{self.name}' does not exist in read-only database",
                    self._context("initialize"),
                )
                self._fail(error)
                raise error
        except sqlite3.Error as e:
            error = StoreOpenError(
                ErrorCode.SCHEMA_CREATION_FAILED,
                f"Failed to create namespace '{self.name}': {e!s}",
                self._context("initialize"),
                original_error=e,
            )
            self._fail(error)
            raise error from e

        self._query_ops = QueryOperations(conn, self.name, self.codec)
        self._insert_ops = InsertOperations(conn, self.name, self.codec)
        self._update_ops = UpdateOperations(conn, self.name, self.codec)
        return self

    def _require(self, ops: OpsT | None) -> OpsT:
        """Operation object built by ``_initialize``.

        Raises:
            RuntimeError: If the namespace schema was never set up
        """
        if ops is None:
            raise RuntimeError(f"Store '{self.name}' is not initialized")
        return ops

    def _fail(self, error: StoreOpenError) -> None:
        log_operation_error(logger, error)
        self._connection.mark_failed(error)

    def _context(self, operation: str) -> ErrorContext:
        return ErrorContext(operation=operation, namespace=self.name, db_path=self.path)

    def wait_ready(self, timeout: float | None = None) -> SqliteStore:
        """Block until the schema exists.

        Raises:
            StoreOpenError: If the database or the namespace could not be set up
            TimeoutError: If ``timeout`` seconds pass first
        """
        return self.ready.result(timeout=timeout)

    def _dispatch(
        self,
        request: CallRequest,
        handler: Callable[[CallRequest], Any],
    ) -> Future[Any] | None:
        def start() -> Future[Any]:
            request.raise_for_error()
            return self._connection.submit(request.operation, handler, request)

        return bridge(request.completion, start)

    # Public operations

    def get(self, key: str, *args: Any) -> Future[Any] | None:
        """Value stored under ``key``, or None if absent, expired or undecodable.

        Call as ``get(key, [options], [completion])``.
        """
        return self._dispatch(normalize_single("get", key, args), self._get)

    def mget(self, *args: Any) -> Future[list[Any]] | None:
        """Values for several keys, aligned with the requested keys.

        Call as ``mget(k1, k2, ..., [options], [completion])`` or
        ``mget([k1, k2, ...], ...)``. Duplicate keys yield duplicate results.
        """
        return self._dispatch(normalize_mget(args), self._mget)

    def set(self, key: str, value: Any, *args: Any) -> Future[WriteResult] | None:
        """Store ``value`` under ``key``.

        Call as ``set(key, value, [ttl], [options], [completion])``. A ttl of
        zero or less stores an entry that is already expired. A value the
        codec cannot encode is stored as NULL and reads back as None.
        """
        return self._dispatch(normalize_set(key, value, args), self._set)

    def mset(self, *args: Any) -> Future[WriteResult] | None:
        """Store several entries sharing one creation and expiry timestamp.

        Call as ``mset(k1, v1, k2, v2, ..., [options], [completion])``. The
        ttl comes from ``options["ttl"]`` or the store default.
        """
        return self._dispatch(normalize_mset(args), self._mset)

    def delete(self, key: str, *args: Any) -> Future[WriteResult] | None:
        """Remove ``key``. Removing a missing key is not an error."""
        return self._dispatch(normalize_single("del", key, args), self._delete)

    del_ = delete

    def reset(self, *args: Any) -> Future[WriteResult] | None:
        """Remove every entry of the namespace."""
        return self._dispatch(normalize_keyless("reset", args), self._reset)

    def ttl(self, key: str, *args: Any) -> Future[int] | None:
        """Remaining lifetime of ``key`` in milliseconds.

        Negative for an expired entry that has not been purged yet, ``-1``
        when no row exists.
        """
        return self._dispatch(normalize_single("ttl", key, args), self._ttl)

    def purge_expired(self, *args: Any) -> Future[int] | None:
        """Physically delete expired entries, resolving to the deleted count."""
        return self._dispatch(normalize_keyless("purge_expired", args), self._purge)

    def close(self, wait: bool = True) -> None:
        """Close the connection once queued operations have run.

        Later operations fail with ``StoreClosedError``.
        """
        self._connection.close(wait=wait)

    # Worker-side handlers

    def _read_batch(self, keys: tuple[str, ...]) -> list[Any]:
        if not keys:
            return []

        now = now_ms()
        rows = self._require(self._query_ops).fetch_rows(keys)
        fresh = self._expiration.filter_fresh(rows, now)
        if len(fresh) < len(rows):
            self._expiration.schedule_purge()

        values = {row.key: safe_decode(self.codec, row.val) for row in fresh}
        return [values.get(key) for key in keys]

    def _get(self, request: CallRequest) -> Any:
        return self._read_batch(request.keys)[0]

    def _mget(self, request: CallRequest) -> list[Any]:
        return self._read_batch(request.keys)

    def _set(self, request: CallRequest) -> WriteResult:
        return self._require(self._insert_ops).upsert(
            request.key,
            request.values[0],
            request.effective_ttl(self.default_ttl),
            now_ms(),
        )

    def _mset(self, request: CallRequest) -> WriteResult:
        return self._require(self._insert_ops).upsert_many(
            list(zip(request.keys, request.values)),
            request.effective_ttl(self.default_ttl),
            now_ms(),
        )

    def _delete(self, request: CallRequest) -> WriteResult:
        return self._require(self._update_ops).delete(request.key)

    def _reset(self, request: CallRequest) -> WriteResult:
        return self._require(self._update_ops).truncate()

    def _ttl(self, request: CallRequest) -> int:
        return self._require(self._query_ops).remaining_ttl(request.key, now_ms())

    def _purge(self, request: CallRequest) -> int:
        return self._purge_rows(now_ms())

    def _purge_rows(self, now: int) -> int:
        return self._require(self._update_ops).purge_expired(now)


def _merge_options(options: Mapping[str, Any] | None, overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten the accepted option shapes into StoreOptions field names.

    ``{"options": {...}}`` nests the store options one level down; keys at
    the top level win over nested ones.
    """
    raw: dict[str, Any] = {}
    merged = {**(options or {}), **overrides}

    nested = merged.pop("options", None)
    if isinstance(nested, Mapping):
        raw.update(nested)
    raw.update(merged)
    # Reference to an already constructed store, not an option
    raw.pop("store", None)

    return {_OPTION_ALIASES.get(key, key): value for key, value in raw.items()}


def create(
    options: StoreOptions | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> SqliteStore:
    """Create a store for one namespace.

    Args:
        options: ``StoreOptions``, a mapping of option names (optionally
            nested under ``"options"``), or None
        **kwargs: Option overrides (``name``, ``path``, ``ttl``,
            ``serializer``, ``flags``, ``on_open``, ``on_ready``)

    Returns:
        The store. Its schema is created in the background; see
        ``SqliteStore.ready``.

    Raises:
        ApplicationError: If the options are invalid (CONFIG_ERROR)
    """
    try:
        if isinstance(options, StoreOptions):
            if kwargs:
                options = StoreOptions(**{**dict(options), **_merge_options(None, kwargs)})
        else:
            options = StoreOptions(**_merge_options(options, kwargs))
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or None
        raise create_config_error(
            f"Invalid store options: {first['msg']}",
            config_key=location,
            operation="create",
            original_error=e,
        ) from e

    logger.debug("Creating store: name=%s path=%s", options.name, options.path)
    return SqliteStore(options)


__all__ = ["SqliteStore", "create"]
