"""Delete and purge operations for the SQLite store."""

from __future__ import annotations

import logging

from sqlite_kv.services.sqlite_store.models import WriteResult
from sqlite_kv.services.sqlite_store.operations.base import BaseOperation

logger = logging.getLogger(__name__)


class UpdateOperations(BaseOperation):
    """Row removal operations for namespace entries."""

    def delete(self, key: str) -> WriteResult:
        """Delete the entry for ``key``.

        Returns:
            WriteResult with ``changes`` 0 when the key did not exist
        """
        self._validate_connection()

        cursor = self.conn.execute(
            f"DELETE FROM {self.table} WHERE key = ?",  # noqa: S608
            (key,),
        )
        logger.debug("Entry deleted: ns=%s key=%s rows=%d", self.namespace, key[:50], cursor.rowcount)
        return WriteResult(changes=cursor.rowcount, last_row_id=cursor.lastrowid)

    def truncate(self) -> WriteResult:
        """Delete every entry of the namespace."""
        self._validate_connection()

        cursor = self.conn.execute(f"DELETE FROM {self.table}")  # noqa: S608
        logger.info("Namespace reset: %s (%d rows)", self.namespace, cursor.rowcount)
        return WriteResult(changes=cursor.rowcount, last_row_id=cursor.lastrowid)

    def purge_expired(self, now_ms: int) -> int:
        """Physically delete rows whose ``expire_at`` is before ``now_ms``.

        Returns:
            Number of deleted rows
        """
        self._validate_connection()

        cursor = self.conn.execute(
            f"DELETE FROM {self.table} WHERE expire_at < ?",  # noqa: S608
            (now_ms,),
        )
        deleted = cursor.rowcount
        if deleted > 0:
            logger.info("Purged %d expired entries from %s", deleted, self.namespace)
        return deleted
