"""
Pytest configuration and shared fixtures for sqlite-kv tests.

This module provides common fixtures and configuration that can be used
across all test modules in the project.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest

from sqlite_kv import SqliteStore, create

RESULT_TIMEOUT = 5.0


@pytest.fixture(autouse=True)
def reset_sqlite_kv_logger() -> Generator[None, None, None]:
    """Undo handlers installed by setup_structured_logger (CLI tests)."""
    yield
    logger = logging.getLogger("sqlite_kv")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path of a not yet existing database file."""
    return tmp_path / "cache.db"


@pytest.fixture
def memory_store() -> Generator[SqliteStore, None, None]:
    """Ready in-memory store with the default options."""
    store = create()
    store.wait_ready(timeout=RESULT_TIMEOUT)
    yield store
    store.close()


@pytest.fixture
def file_store(db_path: Path) -> Generator[SqliteStore, None, None]:
    """Ready file-backed store in a temporary directory."""
    store = create(name="entries", path=db_path)
    store.wait_ready(timeout=RESULT_TIMEOUT)
    yield store
    store.close()
