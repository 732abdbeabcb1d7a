"""
CLI Context Management Module

Holds the global options parsed by the Typer callback (store location,
namespace, configuration file, log level, output mode) in a ContextVar so
every command reads the same validated state.
"""

from __future__ import annotations

import contextvars
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    """Log level enumeration for type safety."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CliContext(BaseModel):
    """
    CLI context model for managing global state.

    Attributes:
        path: Database file overriding the configured store path
        name: Namespace overriding the configured store name
        config: TOML configuration file
        log_level: Logging level; None keeps the configured level
        json_output: Whether to output in JSON format
    """

    path: Optional[str] = Field(default=None, description="Database file path")
    name: Optional[str] = Field(default=None, description="Namespace name")
    config: Optional[Path] = Field(default=None, description="TOML configuration file")
    log_level: Optional[LogLevel] = Field(default=None, description="Logging level")
    json_output: bool = Field(default=False, description="Whether to output in JSON format")

    def is_json_output_enabled(self) -> bool:
        """Check if JSON output is enabled."""
        return self.json_output


_cli_context: contextvars.ContextVar[CliContext | None] = contextvars.ContextVar(
    "cli_context",
    default=None,
)


def set_cli_context(context: CliContext) -> None:
    _cli_context.set(context)


def get_cli_context() -> CliContext:
    """Return the current CLI context, or defaults if none was set."""
    return _cli_context.get() or CliContext()
