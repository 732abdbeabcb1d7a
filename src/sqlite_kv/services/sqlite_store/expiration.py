"""Read-time expiration and opportunistic purge.

Expiry is never timer driven. Reads drop rows whose ``expire_at`` is not in
the future, and when a read drops anything a single purge job is queued
behind it on the same connection.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Callable, Iterable
from concurrent.futures import Future

from sqlite_kv.services.sqlite_store.connection import SerializedConnection
from sqlite_kv.services.sqlite_store.models import EntryRow
from sqlite_kv.shared.errors import StoreClosedError

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class ExpirationManager:
    """Staleness filter and background purge scheduling for one namespace."""

    def __init__(
        self,
        connection: SerializedConnection,
        purge: Callable[[int], int],
    ) -> None:
        """Initialize expiration manager.

        Args:
            connection: Connection the purge job is queued on
            purge: Deletes rows expired before the given timestamp, returning
                the number of deleted rows
        """
        self.connection = connection
        self._purge = purge

    @staticmethod
    def filter_fresh(rows: Iterable[EntryRow], now: int) -> list[EntryRow]:
        return [row for row in rows if row.is_fresh(now)]

    def schedule_purge(self) -> Future[int] | None:
        """Queue one fire-and-forget purge job.

        Returns:
            The job's future (nobody is required to observe it), or None if
            the connection is already closed
        """
        try:
            return self.connection.submit("background_purge", self._purge_quietly)
        except StoreClosedError:
            logger.debug("Skipping purge of closed store '%s'", self.connection.namespace)
            return None

    def _purge_quietly(self) -> int:
        try:
            return self._purge(now_ms())
        except sqlite3.Error as e:
            logger.debug("Background purge of '%s' failed: %s", self.connection.namespace, e)
            return 0
