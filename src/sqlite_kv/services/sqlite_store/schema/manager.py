"""Schema manager for SQLite store namespaces.

This module creates (or, for read-only stores, verifies) the namespace table
and its expiration index.
"""

from __future__ import annotations

import logging
import sqlite3

from sqlite_kv.services.sqlite_store.operations.base import quote_identifier

logger = logging.getLogger(__name__)

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS {table} (
    key TEXT PRIMARY KEY,
    val BLOB,
    created_at INTEGER,
    expire_at INTEGER
);
CREATE INDEX IF NOT EXISTS {index} ON {table}(expire_at);
"""


class SchemaManager:
    """Namespace table lifecycle. Every method is idempotent."""

    def __init__(self, conn: sqlite3.Connection, namespace: str) -> None:
        """Initialize schema manager.

        Args:
            conn: SQLite database connection
            namespace: Validated namespace (table) name
        """
        self.conn = conn
        self.namespace = namespace

    @property
    def index_name(self) -> str:
        return f"index_expire_{self.namespace}"

    def create_tables(self) -> None:
        """Create the namespace table and expiration index if missing."""
        script = CREATE_TABLE_SQL.format(
            table=quote_identifier(self.namespace),
            index=quote_identifier(self.index_name),
        )
        self.conn.executescript(script)
        logger.info("Namespace table ready: %s", self.namespace)

    def table_exists(self) -> bool:
        cursor = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (self.namespace,),
        )
        return cursor.fetchone() is not None

    def index_exists(self) -> bool:
        cursor = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='index' AND name=?",
            (self.index_name,),
        )
        return cursor.fetchone() is not None

    def validate_schema(self) -> bool:
        """Check that the namespace table has the expected columns.

        Returns:
            True if the table exists with key, val, created_at, expire_at
        """
        if not self.table_exists():
            logger.error("Namespace table '%s' not found", self.namespace)
            return False

        cursor = self.conn.execute(f"PRAGMA table_info({quote_identifier(self.namespace)})")
        columns = {row[1] for row in cursor.fetchall()}
        missing = {"key", "val", "created_at", "expire_at"} - columns
        if missing:
            logger.error(
                "Namespace table '%s' is missing columns: %s",
                self.namespace,
                ", ".join(sorted(missing)),
            )
            return False

        return True
