"""Errors raised by sqlite-kv.

Every failure a store reports is a ``SqliteKVError`` carrying an
``ErrorCode`` and an ``ErrorContext`` naming the operation, namespace and
database involved. Three branches split the codes by who has to act:

- ``DomainError``: the caller used an operation wrongly
- ``InfrastructureError``: the database file or a statement failed
- ``ApplicationError``: the store or CLI was configured wrongly

Underlying exceptions (``sqlite3.Error``, ``OSError``, pydantic
``ValidationError``) are kept on ``original_error`` and chained with
``raise ... from``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Union

PrimitiveContextValue = Union[str, int, float, bool]


class ErrorCode(str, Enum):
    """Error codes for sqlite-kv.

    This enum serves as the single source of truth for all error codes
    used throughout the library.
    """

    # Store lifecycle
    CONNECTION_FAILED = "CONNECTION_FAILED"
    SCHEMA_CREATION_FAILED = "SCHEMA_CREATION_FAILED"
    STORE_CLOSED = "STORE_CLOSED"

    # Statement execution
    STORAGE_ERROR = "STORAGE_ERROR"

    # Caller contract
    INVALID_CALL_ARGUMENTS = "INVALID_CALL_ARGUMENTS"

    # Configuration and CLI
    CONFIG_ERROR = "CONFIG_ERROR"
    CLI_UNEXPECTED_ERROR = "CLI_UNEXPECTED_ERROR"


# Non-primitive types accepted in context data, with their conversion
_CONTEXT_CONVERTERS: tuple[tuple[type, Callable[[Any], PrimitiveContextValue]], ...] = (
    (PurePath, str),
    (Enum, lambda member: member.value),
    (Decimal, float),
)


def _to_primitive(key: str, value: Any) -> PrimitiveContextValue:
    if isinstance(value, (str, int, float, bool)):
        return value
    for accepted, convert in _CONTEXT_CONVERTERS:
        if isinstance(value, accepted):
            return convert(value)
    msg = f"Context value for {key!r} has unsupported type {type(value).__name__}"
    raise TypeError(msg)


@dataclass(frozen=True)
class ErrorContext:
    """Where an error happened.

    ``additional_data`` only holds primitives so that contexts can always be
    written to JSON logs; paths, enum members and decimals are converted on
    construction and anything else is rejected with ``TypeError``.
    """

    operation: str | None = None
    namespace: str | None = None
    db_path: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        data = self.additional_data
        if data is None:
            return
        if not isinstance(data, Mapping):
            msg = f"additional_data must be a mapping, got {type(data).__name__}"
            raise TypeError(msg)
        object.__setattr__(
            self,
            "additional_data",
            {key: _to_primitive(key, value) for key, value in data.items()},
        )

    def safe_dict(self) -> dict[str, Any]:
        """Populated fields, plus ``additional_data`` (always present)."""
        fields = {"operation": self.operation, "namespace": self.namespace, "db_path": self.db_path}
        data: dict[str, Any] = {name: value for name, value in fields.items() if value is not None}
        data["additional_data"] = dict(self.additional_data or {})
        return data


class SqliteKVError(Exception):
    """Base class of every error raised by sqlite-kv.

    Args:
        code: Error code
        message: Human-readable description
        context: Operation, namespace and database the error belongs to
        original_error: Lower-level exception that caused it, if any
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation for structured output."""
        cause = self.original_error
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": None if cause is None else str(cause),
        }


class DomainError(SqliteKVError):
    """The caller broke an operation's contract (argument shapes, key types)."""


class InfrastructureError(SqliteKVError):
    """The SQLite database could not be opened, set up or written."""


class ApplicationError(SqliteKVError):
    """Invalid store options, codec selection or settings file."""


class StoreOpenError(InfrastructureError):
    """The connection could not be opened or the namespace schema could not be created.

    Fatal for the store instance: every later operation fails with it.
    """


class StoreClosedError(InfrastructureError):
    """An operation was submitted after the store was closed."""


class StorageError(InfrastructureError):
    """An individual statement failed. Never retried automatically."""


class CallContractError(DomainError):
    """Operation arguments do not match any accepted call shape."""


class CliError(ApplicationError):
    """Error reported by a CLI command, with the process exit code to use."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        command: str | None = None,
        exit_code: int = 1,
    ) -> None:
        super().__init__(code, message, context, original_error)
        self.command = command
        self.exit_code = exit_code


def _extra(**values: PrimitiveContextValue | None) -> dict[str, PrimitiveContextValue] | None:
    data = {key: value for key, value in values.items() if value is not None}
    return data or None


def create_storage_error(
    message: str,
    operation: str,
    namespace: str | None = None,
    original_error: Exception | None = None,
) -> StorageError:
    return StorageError(
        ErrorCode.STORAGE_ERROR,
        message,
        ErrorContext(operation=operation, namespace=namespace),
        original_error,
    )


def create_call_contract_error(
    message: str,
    operation: str,
    argument_count: int | None = None,
) -> CallContractError:
    return CallContractError(
        ErrorCode.INVALID_CALL_ARGUMENTS,
        message,
        ErrorContext(operation=operation, additional_data=_extra(argument_count=argument_count)),
    )


def create_config_error(
    message: str,
    config_key: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> ApplicationError:
    """Configuration error; ``config_key`` names the offending option."""
    return ApplicationError(
        ErrorCode.CONFIG_ERROR,
        message,
        ErrorContext(operation=operation, additional_data=_extra(config_key=config_key or None)),
        original_error,
    )


def create_cli_error(
    message: str,
    command: str | None = None,
    original_error: Exception | None = None,
    exit_code: int = 1,
) -> CliError:
    return CliError(
        ErrorCode.CLI_UNEXPECTED_ERROR,
        message,
        ErrorContext(operation="cli", additional_data=_extra(command=command or None)),
        original_error,
        command,
        exit_code,
    )
