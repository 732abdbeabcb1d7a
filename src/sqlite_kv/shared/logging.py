"""
구조적 로깅 시스템 for sqlite-kv.

이 모듈은 저장소 작업의 컨텍스트 정보를 포함하여 구조화된 로그를 기록하는
헬퍼 함수들을 제공합니다. 라이브러리는 import 시점에 핸들러를 설정하지 않으며,
CLI 또는 애플리케이션이 setup_structured_logger()를 호출합니다.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Union

import orjson
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from sqlite_kv.shared.errors import ErrorContext, SqliteKVError

ContextLike = Union[dict[str, Any], ErrorContext, None]

# Console colours per level, plus the namespace tag used in store messages
KV_LOG_THEME = Theme(
    {
        "logging.level.debug": "cyan",
        "logging.level.info": "green",
        "logging.level.warning": "yellow",
        "logging.level.error": "red bold",
        "logging.level.critical": "red bold reverse",
        "log.time": "dim cyan",
        "kv.namespace": "magenta",
    }
)


class StructuredFormatter(logging.Formatter):
    """One JSON object per line.

    Store records carry ``operation``, ``error_code``, ``duration_ms``,
    ``result_info`` and ``context`` extras. The namespace and database path
    found in the context are also copied to the top level so log lines can be
    filtered per namespace without parsing the context.
    """

    STRUCTURED_FIELDS = ("operation", "error_code", "duration_ms", "result_info", "context")
    HOISTED_CONTEXT_KEYS = ("namespace", "db_path")

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in self.STRUCTURED_FIELDS:
            if hasattr(record, field):
                entry[field] = getattr(record, field)

        context = entry.get("context")
        if isinstance(context, dict):
            for key in self.HOISTED_CONTEXT_KEYS:
                if context.get(key) is not None:
                    entry.setdefault(key, context[key])

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return orjson.dumps(entry, default=str).decode("utf-8")


def _console_handler(*, use_rich_console: bool) -> logging.Handler:
    if not use_rich_console:
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredFormatter())
        return handler

    return RichHandler(
        console=Console(theme=KV_LOG_THEME, stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        log_time_format="[%H:%M:%S]",
    )


def setup_structured_logger(
    name: str = "sqlite_kv",
    level: str = "INFO",
    log_file: str | None = None,
    *,
    use_rich_console: bool = True,
) -> logging.Logger:
    """
    Configure the package logger for an application or the CLI.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        name: Logger to configure, the package root by default
        level: Level name applied to the logger and its console handler
        log_file: Optional path of a JSON-lines log file
        use_rich_console: Rich console output instead of JSON on stderr

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO
    logger.setLevel(log_level)

    console = _console_handler(use_rich_console=use_rich_console)
    console.setLevel(log_level)
    logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    # Handlers live here only; the root logger must not print store records twice
    logger.propagate = False
    return logger


def _context_dict(*contexts: ContextLike) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for context in contexts:
        if isinstance(context, ErrorContext):
            merged.update(context.safe_dict())
        elif context:
            merged.update(context)
    return merged


def log_operation_error(
    logger: logging.Logger,
    error: SqliteKVError,
    operation: str | None = None,
    additional_context: ContextLike = None,
) -> None:
    """Log a store error with its code and context.

    The traceback is attached only when the error wraps a lower-level
    exception (for example a ``sqlite3.Error``).
    """
    logger.error(
        error.message,
        extra={
            "error_code": error.code.value,
            "context": _context_dict(error.context, additional_context),
            "operation": operation or error.context.operation,
        },
        exc_info=error.original_error is not None,
    )


def log_operation_success(
    logger: logging.Logger,
    operation: str,
    duration_ms: float,
    result_info: dict[str, Any] | None = None,
    context: ContextLike = None,
) -> None:
    """Debug record for a finished store job with its duration."""
    logger.debug(
        "%s finished in %.2fms",
        operation,
        duration_ms,
        extra={
            "operation": operation,
            "duration_ms": duration_ms,
            "result_info": result_info or {},
            "context": _context_dict(context),
        },
    )


def log_operation_start(
    logger: logging.Logger,
    operation: str,
    context: ContextLike = None,
) -> None:
    logger.debug(
        "%s started",
        operation,
        extra={"operation": operation, "context": _context_dict(context)},
    )
