"""Tests for the namespace operation classes."""

from __future__ import annotations

import sqlite3
from collections.abc import Generator

import pytest

from sqlite_kv.services.codecs import JsonCodec
from sqlite_kv.services.sqlite_store.models import EntryRow, WriteResult
from sqlite_kv.services.sqlite_store.operations import (
    InsertOperations,
    QueryOperations,
    UpdateOperations,
)
from sqlite_kv.services.sqlite_store.operations.base import chunked
from sqlite_kv.services.sqlite_store.schema import SchemaManager
from sqlite_kv.shared.constants import SqliteLimits

NOW = 1_700_000_000_000


@pytest.fixture
def conn() -> Generator[sqlite3.Connection, None, None]:
    connection = sqlite3.connect(":memory:", isolation_level=None)
    SchemaManager(connection, "kv").create_tables()
    yield connection
    connection.close()


@pytest.fixture
def query(conn: sqlite3.Connection) -> QueryOperations:
    return QueryOperations(conn, "kv", JsonCodec())


@pytest.fixture
def insert(conn: sqlite3.Connection) -> InsertOperations:
    return InsertOperations(conn, "kv", JsonCodec())


@pytest.fixture
def update(conn: sqlite3.Connection) -> UpdateOperations:
    return UpdateOperations(conn, "kv", JsonCodec())


class TestChunked:
    def test_splits_into_bounded_slices(self) -> None:
        assert list(chunked([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]

    def test_empty(self) -> None:
        assert list(chunked([], 3)) == []


class TestInsertOperations:
    """Upserts."""

    def test_upsert_writes_timestamps(self, insert: InsertOperations, query: QueryOperations) -> None:
        # When
        result = insert.upsert("k", {"v": 1}, 500, NOW)

        # Then
        assert result.changes == 1
        assert query.fetch_rows(["k"]) == [EntryRow("k", b'{"v":1}', NOW, NOW + 500)]

    def test_upsert_negative_ttl(self, insert: InsertOperations, query: QueryOperations) -> None:
        insert.upsert("k", "v", -10, NOW)

        row = query.fetch_rows(["k"])[0]
        assert row.expire_at == NOW - 10
        assert not row.is_fresh(NOW)

    def test_upsert_unencodable_stores_null(self, insert: InsertOperations, query: QueryOperations) -> None:
        insert.upsert("k", {1, 2}, 500, NOW)

        assert query.fetch_rows(["k"])[0].val is None

    def test_upsert_many_single_statement(self, insert: InsertOperations, query: QueryOperations) -> None:
        # When
        result = insert.upsert_many([("a", 1), ("b", 2)], 100, NOW)

        # Then
        rows = sorted(query.fetch_rows(["a", "b"]))
        assert result.changes == 2
        assert [(row.created_at, row.expire_at) for row in rows] == [(NOW, NOW + 100)] * 2

    def test_upsert_many_chunked(self, insert: InsertOperations, query: QueryOperations) -> None:
        # Given
        pairs = [(f"k{i}", i) for i in range(SqliteLimits.MAX_UPSERT_ROWS + 1)]

        # When
        result = insert.upsert_many(pairs, 100, NOW)

        # Then
        assert result.changes == len(pairs)
        assert len(query.fetch_rows([key for key, _ in pairs])) == len(pairs)

    def test_upsert_many_chunked_rolls_back_on_failure(
        self,
        conn: sqlite3.Connection,
        query: QueryOperations,
    ) -> None:
        """A failing chunk leaves no rows from earlier chunks behind."""
        # Given
        conn.execute(
            "CREATE TRIGGER reject_last BEFORE INSERT ON kv WHEN NEW.key = 'poison' "
            "BEGIN SELECT RAISE(ABORT, 'rejected'); END"
        )
        insert = InsertOperations(conn, "kv", JsonCodec())
        pairs = [(f"k{i}", i) for i in range(SqliteLimits.MAX_UPSERT_ROWS)] + [("poison", 0)]

        # When
        with pytest.raises(sqlite3.DatabaseError):
            insert.upsert_many(pairs, 100, NOW)

        # Then
        assert query.fetch_rows(["k0"]) == []
        assert not conn.in_transaction

    def test_upsert_many_empty(self, insert: InsertOperations) -> None:
        assert insert.upsert_many([], 100, NOW) == WriteResult()


class TestQueryOperations:
    """Raw reads."""

    def test_fetch_rows_deduplicates_keys(self, insert: InsertOperations, query: QueryOperations) -> None:
        insert.upsert("k", 1, 100, NOW)

        assert len(query.fetch_rows(["k", "k", "k"])) == 1

    def test_fetch_rows_includes_expired(self, insert: InsertOperations, query: QueryOperations) -> None:
        insert.upsert("k", 1, -100, NOW)

        assert len(query.fetch_rows(["k"])) == 1

    def test_fetch_rows_beyond_variable_limit(self, insert: InsertOperations, query: QueryOperations) -> None:
        insert.upsert("last", 1, 100, NOW)
        keys = [f"missing{i}" for i in range(SqliteLimits.MAX_SELECT_KEYS)] + ["last"]

        rows = query.fetch_rows(keys)

        assert [row.key for row in rows] == ["last"]

    def test_remaining_ttl(self, insert: InsertOperations, query: QueryOperations) -> None:
        insert.upsert("k", 1, 1_000, NOW)

        assert query.remaining_ttl("k", NOW + 400) == 600
        assert query.remaining_ttl("k", NOW + 1_500) == -500

    def test_remaining_ttl_missing(self, query: QueryOperations) -> None:
        assert query.remaining_ttl("missing", NOW) == -1


class TestUpdateOperations:
    """Deletes and purges."""

    def test_delete(self, insert: InsertOperations, update: UpdateOperations) -> None:
        insert.upsert("k", 1, 100, NOW)

        assert update.delete("k").changes == 1
        assert update.delete("k").changes == 0

    def test_truncate(self, insert: InsertOperations, update: UpdateOperations) -> None:
        insert.upsert_many([("a", 1), ("b", 2)], 100, NOW)

        assert update.truncate().changes == 2

    def test_purge_expired_uses_strict_comparison(
        self,
        insert: InsertOperations,
        update: UpdateOperations,
        query: QueryOperations,
    ) -> None:
        # Given
        insert.upsert("past", 1, -1, NOW)
        insert.upsert("boundary", 2, 0, NOW)
        insert.upsert("future", 3, 100, NOW)

        # When
        deleted = update.purge_expired(NOW)

        # Then
        assert deleted == 1
        assert sorted(row.key for row in query.fetch_rows(["past", "boundary", "future"])) == [
            "boundary",
            "future",
        ]
