"""Tests for structured logging system."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler

from sqlite_kv.shared.errors import ErrorCode, ErrorContext, StorageError
from sqlite_kv.shared.logging import (
    StructuredFormatter,
    log_operation_error,
    log_operation_start,
    log_operation_success,
    setup_structured_logger,
)


def _record(msg: str = "Test message", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test_logger",
        level=logging.INFO,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """Test StructuredFormatter JSON output."""

    def test_format_basic_log(self):
        log_data = json.loads(StructuredFormatter().format(_record()))

        assert log_data["level"] == "INFO"
        assert log_data["logger"] == "test_logger"
        assert log_data["message"] == "Test message"
        assert "timestamp" in log_data

    def test_format_includes_structured_extras(self):
        record = _record(error_code="STORAGE_ERROR", operation="set", duration_ms=1.5)

        log_data = json.loads(StructuredFormatter().format(record))

        assert log_data["error_code"] == "STORAGE_ERROR"
        assert log_data["operation"] == "set"
        assert log_data["duration_ms"] == 1.5

    def test_format_hoists_namespace_from_context(self):
        record = _record(context={"namespace": "movies", "db_path": "kv.db", "key": "k"})

        log_data = json.loads(StructuredFormatter().format(record))

        assert log_data["namespace"] == "movies"
        assert log_data["db_path"] == "kv.db"
        assert "key" not in log_data


class TestSetupStructuredLogger:
    """Handler configuration."""

    def test_rich_console_handler(self):
        logger = setup_structured_logger(name="sqlite_kv.test_rich", level="DEBUG")

        assert logger.level == logging.DEBUG
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.propagate is False

    def test_plain_handler_and_file(self, tmp_path: Path):
        log_file = tmp_path / "kv.log"

        logger = setup_structured_logger(
            name="sqlite_kv.test_file",
            level="INFO",
            log_file=str(log_file),
            use_rich_console=False,
        )
        logger.info("written")
        for handler in logger.handlers:
            handler.flush()

        assert json.loads(log_file.read_text(encoding="utf-8").splitlines()[0])["message"] == "written"
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_structured_logger(name="sqlite_kv.test_dup")
        logger = setup_structured_logger(name="sqlite_kv.test_dup")

        assert len(logger.handlers) == 1


class TestOperationHelpers:
    """log_operation_* helpers."""

    def test_log_operation_error(self, caplog: pytest.LogCaptureFixture):
        logger = logging.getLogger("sqlite_kv.test_helpers")
        error = StorageError(
            ErrorCode.STORAGE_ERROR,
            "write failed",
            ErrorContext(operation="set", namespace="kv"),
        )

        with caplog.at_level(logging.ERROR, logger="sqlite_kv.test_helpers"):
            log_operation_error(logger, error, additional_context={"key": "k"})

        record = caplog.records[0]
        assert record.message == "write failed"
        assert record.error_code == "STORAGE_ERROR"
        assert record.operation == "set"
        assert record.context["namespace"] == "kv"
        assert record.context["key"] == "k"

    def test_log_operation_success(self, caplog: pytest.LogCaptureFixture):
        logger = logging.getLogger("sqlite_kv.test_helpers")

        with caplog.at_level(logging.DEBUG, logger="sqlite_kv.test_helpers"):
            log_operation_success(logger, "get", 2.0, result_info={"hits": 1})
            log_operation_start(logger, "get", context={"key": "k"})

        assert caplog.records[0].duration_ms == 2.0
        assert caplog.records[0].result_info == {"hits": 1}
        assert caplog.records[1].operation == "get"
