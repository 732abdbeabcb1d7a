"""Insert operations for the SQLite store.

This module provides upsert operations for storing entries.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlite_kv.services.codecs import safe_encode
from sqlite_kv.services.sqlite_store.models import WriteResult
from sqlite_kv.services.sqlite_store.operations.base import (
    BaseOperation,
    chunked,
    placeholders,
)
from sqlite_kv.shared.constants import SqliteLimits

logger = logging.getLogger(__name__)


class InsertOperations(BaseOperation):
    """Upsert operations for namespace entries."""

    def upsert(self, key: str, value: Any, ttl_ms: int, now_ms: int) -> WriteResult:
        """Insert or replace one entry.

        Args:
            key: Entry key
            value: Value to encode; stored as NULL if not encodable
            ttl_ms: Lifetime in milliseconds (zero or negative stores an
                already expired entry)
            now_ms: Creation timestamp in milliseconds

        Returns:
            WriteResult for the statement
        """
        self._validate_connection()

        payload = safe_encode(self.codec, value)
        cursor = self.conn.execute(
            f"INSERT OR REPLACE INTO {self.table} "  # noqa: S608
            "(key, val, created_at, expire_at) VALUES (?, ?, ?, ?)",
            (key, payload, now_ms, now_ms + ttl_ms),
        )

        logger.debug(
            "Entry stored: ns=%s key=%s size=%s ttl=%dms",
            self.namespace,
            key[:50],
            len(payload) if payload is not None else "NULL",
            ttl_ms,
        )
        return WriteResult(changes=cursor.rowcount, last_row_id=cursor.lastrowid)

    def upsert_many(
        self,
        pairs: Sequence[tuple[str, Any]],
        ttl_ms: int,
        now_ms: int,
    ) -> WriteResult:
        """Insert or replace several entries with one shared timestamp pair.

        A single multi-row statement is used when the rows fit the bound
        parameter budget; otherwise the rows are split into chunks inside
        one transaction.

        Returns:
            WriteResult summed over all statements
        """
        self._validate_connection()

        if not pairs:
            return WriteResult()

        expire_at = now_ms + ttl_ms
        rows = [(key, safe_encode(self.codec, value), now_ms, expire_at) for key, value in pairs]
        batches = list(chunked(rows, SqliteLimits.MAX_UPSERT_ROWS))

        changes = 0
        last_row_id = None
        with self._transaction(enabled=len(batches) > 1):
            for batch in batches:
                params = [column for row in batch for column in row]
                cursor = self.conn.execute(
                    f"INSERT OR REPLACE INTO {self.table} "  # noqa: S608
                    "(key, val, created_at, expire_at) VALUES "
                    f"{placeholders(len(batch), '(?, ?, ?, ?)')}",
                    params,
                )
                changes += cursor.rowcount
                last_row_id = cursor.lastrowid

        logger.debug(
            "Entries stored: ns=%s count=%d batches=%d ttl=%dms",
            self.namespace,
            len(rows),
            len(batches),
            ttl_ms,
        )
        return WriteResult(changes=changes, last_row_id=last_row_id)
