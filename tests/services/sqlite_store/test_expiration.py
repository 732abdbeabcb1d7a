"""Tests for ExpirationManager."""

from __future__ import annotations

import sqlite3
import time

from pytest_mock import MockerFixture

from sqlite_kv.services.sqlite_store.expiration import ExpirationManager, now_ms
from sqlite_kv.services.sqlite_store.models import EntryRow
from sqlite_kv.shared.errors import ErrorCode, StoreClosedError

NOW = 1_700_000_000_000


class TestNowMs:
    def test_is_wall_clock_milliseconds(self) -> None:
        before = int(time.time() * 1000)
        value = now_ms()
        after = int(time.time() * 1000)

        assert before - 1 <= value <= after + 1


class TestFilterFresh:
    """Read-time staleness filter."""

    def test_keeps_only_rows_expiring_after_now(self) -> None:
        rows = [
            EntryRow("fresh", b"1", NOW - 10, NOW + 1),
            EntryRow("boundary", b"2", NOW - 10, NOW),
            EntryRow("stale", b"3", NOW - 10, NOW - 1),
        ]

        fresh = ExpirationManager.filter_fresh(rows, NOW)

        assert [row.key for row in fresh] == ["fresh"]


class TestSchedulePurge:
    """Fire-and-forget purge scheduling."""

    def test_submits_purge_job(self, mocker: MockerFixture) -> None:
        # Given
        connection = mocker.Mock()
        purge = mocker.Mock(return_value=3)
        manager = ExpirationManager(connection, purge)

        # When
        manager.schedule_purge()

        # Then
        connection.submit.assert_called_once()
        operation, job = connection.submit.call_args.args
        assert operation == "background_purge"
        assert job() == 3
        purge.assert_called_once()

    def test_closed_connection_is_ignored(self, mocker: MockerFixture) -> None:
        # Given
        connection = mocker.Mock()
        connection.submit.side_effect = StoreClosedError(ErrorCode.STORE_CLOSED, "closed")
        manager = ExpirationManager(connection, mocker.Mock())

        # When / Then
        assert manager.schedule_purge() is None

    def test_purge_failure_is_swallowed(self, mocker: MockerFixture) -> None:
        # Given
        connection = mocker.Mock()
        purge = mocker.Mock(side_effect=sqlite3.OperationalError("database is locked"))
        manager = ExpirationManager(connection, purge)
        manager.schedule_purge()
        _, job = connection.submit.call_args.args

        # When / Then
        assert job() == 0
