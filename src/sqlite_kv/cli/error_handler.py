"""
CLI Error Handling Utilities

This module maps exceptions raised by commands to CLI errors, logs them and
writes them either as text on stderr or as a JSON document on stdout.
"""

from __future__ import annotations

import logging
from typing import Any

import orjson
import typer

from sqlite_kv.shared.errors import (
    ApplicationError,
    CallContractError,
    CliError,
    DomainError,
    InfrastructureError,
    SqliteKVError,
    StorageError,
    StoreClosedError,
    StoreOpenError,
    create_cli_error,
)

logger = logging.getLogger(__name__)


def format_json_output(
    command: str,
    *,
    success: bool,
    errors: list[str] | None = None,
    data: dict[str, Any] | None = None,
) -> str:
    """Format a command outcome as a JSON document.

    Args:
        command: The command that was executed
        success: Whether the operation was successful
        errors: List of error messages
        data: Additional data to include

    Returns:
        JSON text
    """
    output: dict[str, Any] = {
        "success": success,
        "command": command,
    }

    if errors:
        output["errors"] = errors

    if data is not None:
        output["data"] = data

    return orjson.dumps(output, option=orjson.OPT_INDENT_2).decode("utf-8")


def handle_cli_error(
    error: Exception,
    command: str,
    *,
    json_output: bool = False,
) -> int:
    """Handle CLI errors with consistent formatting and logging.

    Returns:
        Exit code for the CLI command
    """
    cli_error = _map_error_to_cli_error(error, command)
    logger.debug("CLI error in %s: %s", command, cli_error.message, exc_info=error)

    if json_output:
        typer.echo(
            format_json_output(
                command,
                success=False,
                errors=[cli_error.message],
                data={
                    "error_code": _error_code(error, cli_error),
                    "error_type": type(error).__name__,
                    "exit_code": cli_error.exit_code,
                },
            )
        )
    else:
        typer.echo(f"Error: {cli_error.message}", err=True)

    return cli_error.exit_code


def _error_code(error: Exception, cli_error: CliError) -> str:
    """Code of the store error behind ``cli_error``, if there is one."""
    source = cli_error.original_error if cli_error is not error else error
    if isinstance(source, SqliteKVError):
        return source.code.value
    return cli_error.code.value


# Most specific first; the first matching type decides the message prefix
_ERROR_PREFIXES: tuple[tuple[type[BaseException], str], ...] = (
    (StoreOpenError, "Cannot open store"),
    (StoreClosedError, "Store closed"),
    (StorageError, "Storage error"),
    (CallContractError, "Invalid arguments"),
    (ApplicationError, "Configuration error"),
    (InfrastructureError, "Storage error"),
    (DomainError, "Invalid arguments"),
    (OSError, "File system error"),
)


def _map_error_to_cli_error(error: Exception, command: str) -> CliError:
    """Wrap ``error`` in a CliError whose message names its category."""
    if isinstance(error, CliError):
        return error

    detail = error.message if isinstance(error, SqliteKVError) else str(error)
    prefix = next(
        (label for error_type, label in _ERROR_PREFIXES if isinstance(error, error_type)),
        "Unexpected error",
    )
    return create_cli_error(
        message=f"{prefix}: {detail}",
        command=command,
        original_error=error,
    )
