"""Query operations for the SQLite store.

This module provides read operations over a namespace table.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlite_kv.services.sqlite_store.models import EntryRow
from sqlite_kv.services.sqlite_store.operations.base import (
    BaseOperation,
    chunked,
    placeholders,
)
from sqlite_kv.shared.constants import SqliteLimits, StoreDefaults

logger = logging.getLogger(__name__)


class QueryOperations(BaseOperation):
    """Read operations for namespace entries."""

    def fetch_rows(self, keys: Sequence[str]) -> list[EntryRow]:
        """Fetch raw rows for ``keys``, expired ones included.

        Duplicate keys are queried once. Row order is unspecified; callers
        realign by key.

        Args:
            keys: Keys to look up

        Returns:
            Rows that exist for the given keys
        """
        self._validate_connection()

        unique_keys = self._unique(keys)
        rows: list[EntryRow] = []
        for batch in chunked(unique_keys, SqliteLimits.MAX_SELECT_KEYS):
            cursor = self.conn.execute(
                f"SELECT key, val, created_at, expire_at FROM {self.table} "  # noqa: S608
                f"WHERE key IN ({placeholders(len(batch))})",
                tuple(batch),
            )
            rows.extend(EntryRow(*row) for row in cursor.fetchall())

        logger.debug(
            "Fetched %d row(s) for %d key(s) from %s",
            len(rows),
            len(unique_keys),
            self.namespace,
        )
        return rows

    def remaining_ttl(self, key: str, now_ms: int) -> int:
        """Milliseconds until ``key`` expires.

        The raw row is used, so an expired but not yet purged entry reports
        a negative value. A missing key reports ``StoreDefaults.MISSING_TTL``.
        """
        self._validate_connection()

        cursor = self.conn.execute(
            f"SELECT expire_at FROM {self.table} WHERE key = ?",  # noqa: S608
            (key,),
        )
        row = cursor.fetchone()
        if row is None:
            return StoreDefaults.MISSING_TTL
        return int(row[0]) - now_ms
