"""Serialized SQLite connection for one store namespace.

All statements for a namespace run on a single worker thread, in submission
order. The ``sqlite3.Connection`` is created on that thread and never
touched from any other.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, TypeVar

from sqlite_kv.config.models.store_settings import OpenFlags, StoreOptions
from sqlite_kv.shared.errors import (
    ErrorCode,
    ErrorContext,
    StoreClosedError,
    StoreOpenError,
    create_storage_error,
)
from sqlite_kv.shared.logging import (
    log_operation_error,
    log_operation_start,
    log_operation_success,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SerializedConnection:
    """Single-worker executor owning one SQLite connection.

    The connection is opened by the first job submitted to the worker, so any
    later job observes either an open connection or the recorded open
    failure.
    """

    def __init__(self, options: StoreOptions) -> None:
        """Initialize the worker. Call ``open()`` to connect.

        Args:
            options: Validated store options
        """
        self.options = options
        self.namespace = options.name
        self.db_path = options.path
        self.conn: sqlite3.Connection | None = None

        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix=f"sqlite-kv-{options.name}",
        )
        self._lock = threading.Lock()
        self._closed = False
        self._failure: StoreOpenError | None = None
        self._worker_ident: int | None = None

    @property
    def flags(self) -> OpenFlags:
        return self.options.open_flags

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def failure(self) -> StoreOpenError | None:
        """Open or schema failure recorded for this connection, if any."""
        return self._failure

    def _context(self, operation: str) -> ErrorContext:
        return ErrorContext(
            operation=operation,
            namespace=self.namespace,
            db_path=self.db_path,
        )

    def _database_target(self) -> tuple[str, bool]:
        """Return the ``sqlite3.connect`` target and whether it is a URI."""
        if self.options.is_memory:
            return ":memory:", False
        uri = Path(self.db_path).resolve().as_uri()
        return f"{uri}?mode={self.flags.uri_mode}", True

    def open(self) -> Future[None]:
        """Submit the open job. Its future fails with ``StoreOpenError``."""
        with self._lock:
            return self._executor.submit(self._open)

    def _open(self) -> None:
        self._worker_ident = threading.get_ident()
        target, uri = self._database_target()

        try:
            if not self.options.is_memory and self.flags & OpenFlags.CREATE:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            self.conn = sqlite3.connect(target, uri=uri, isolation_level=None)

            if not self.flags.is_readonly:
                self.conn.execute("PRAGMA journal_mode = WAL")
                self.conn.execute("PRAGMA synchronous = NORMAL")
        except (sqlite3.Error, OSError) as e:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
            error = StoreOpenError(
                ErrorCode.CONNECTION_FAILED,
                f"Failed to open SQLite database: {self.db_path}",
                self._context("open"),
                original_error=e,
            )
            log_operation_error(logger, error)
            self._failure = error
            raise error from e

        logger.info(
            "SQLite store opened: %s (namespace=%s, mode=%s)",
            self.db_path,
            self.namespace,
            "memory" if self.options.is_memory else self.flags.uri_mode,
        )

    def mark_failed(self, error: StoreOpenError) -> None:
        """Record a setup failure; every later job fails with it."""
        self._failure = error

    def submit(self, operation: str, fn: Callable[..., T], *args: Any) -> Future[T]:
        """Queue ``fn(*args)`` behind every previously submitted job.

        Raises:
            StoreClosedError: If the connection was closed
        """
        with self._lock:
            if self._closed:
                raise StoreClosedError(
                    ErrorCode.STORE_CLOSED,
                    f"Store '{self.namespace}' is closed",
                    self._context(operation),
                )
            return self._executor.submit(self._run, operation, fn, *args)

    def _run(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        if self._failure is not None:
            raise self._failure

        log_operation_start(logger, operation, context={"namespace": self.namespace})
        start = time.perf_counter()
        try:
            result = fn(*args)
        except (sqlite3.Error, OverflowError) as e:
            error = create_storage_error(
                f"{operation} failed on '{self.namespace}': {e}",
                operation=operation,
                namespace=self.namespace,
                original_error=e,
            )
            log_operation_error(logger, error)
            raise error from e

        log_operation_success(
            logger,
            operation,
            (time.perf_counter() - start) * 1000,
            context=self._context(operation),
        )
        return result

    def close(self, wait: bool = True) -> None:
        """Close the connection after every queued job has run.

        Idempotent. When called from a job on this worker (for example a
        completion handler) the call does not wait.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._executor.submit(self._close_connection)

        on_worker = threading.get_ident() == self._worker_ident
        self._executor.shutdown(wait=wait and not on_worker)

    def _close_connection(self) -> None:
        if self.conn is None:
            return
        self.conn.close()
        self.conn = None
        logger.info("SQLite store closed: %s (namespace=%s)", self.db_path, self.namespace)
