"""Base operation class for SQLite store operations.

This module provides shared functionality for all namespace operations.
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    import sqlite3

    from sqlite_kv.services.codecs import Codec

logger = logging.getLogger(__name__)

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    for start in range(0, len(items), size):
        yield items[start : start + size]


def placeholders(count: int, group: str = "?") -> str:
    return ", ".join([group] * count)


def quote_identifier(name: str) -> str:
    """Double-quote a validated identifier so SQL keywords work as table names."""
    return f'"{name}"'


class BaseOperation:
    """Base class for namespace operations with shared functionality."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        namespace: str,
        codec: Codec,
    ) -> None:
        """Initialize base operation.

        Args:
            conn: SQLite database connection (owned by the store worker)
            namespace: Validated namespace (table) name
            codec: Codec used for the ``val`` column
        """
        self.conn = conn
        self.namespace = namespace
        self.table = quote_identifier(namespace)
        self.codec = codec

    def _validate_connection(self) -> None:
        """Validate database connection is available.

        Raises:
            RuntimeError: If connection is not initialized
        """
        if self.conn is None:
            raise RuntimeError("Database connection not initialized")

    @contextmanager
    def _transaction(self, enabled: bool = True) -> Generator[None, None, None]:
        """Wrap statements in BEGIN/COMMIT, rolling back on failure.

        With ``enabled=False`` the block runs in autocommit mode.
        """
        if not enabled:
            yield
            return

        self.conn.execute("BEGIN")
        try:
            yield
            self.conn.execute("COMMIT")
        except Exception:
            self.conn.execute("ROLLBACK")
            raise

    @staticmethod
    def _unique(keys: Iterable[str]) -> list[str]:
        return list(dict.fromkeys(keys))
