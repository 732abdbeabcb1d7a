"""
CLI Configuration Constants

This module contains constants related to the command-line interface:
default values, exit codes and help text.
"""

from typing import Literal


class CLIDefaults:
    """Default values for CLI options."""

    VERSION = "0.1.0"
    EXIT_ERROR = 1


class CLICommands:
    """Command names."""

    GET = "get"
    SET = "set"
    DELETE = "delete"
    TTL = "ttl"
    RESET = "reset"
    PURGE = "purge"


class CLIHelp:
    """Help text for the CLI application."""

    APP_NAME = "sqlite-kv"
    APP_DESCRIPTION = "Inspect and edit a sqlite-kv cache namespace."
    APP_STYLE: Literal["rich"] = "rich"
    VERSION_TEXT = "sqlite-kv version {version}"

    PATH_HELP = "Database file (defaults to the configured store path)"
    NAME_HELP = "Namespace (table) name"
    CONFIG_HELP = "TOML configuration file"
    LOG_LEVEL_HELP = "Log level (DEBUG, INFO, WARNING, ERROR)"
    JSON_HELP = "Print machine-readable JSON output"
    TTL_HELP = "Entry lifetime in milliseconds (defaults to the store ttl)"

    GET_HELP = "Print the value stored under KEY."
    SET_HELP = "Store VALUE under KEY. VALUE is parsed as JSON when possible."
    DELETE_HELP = "Remove KEY from the namespace."
    TTL_HELP_COMMAND = "Print the remaining lifetime of KEY in milliseconds (-1 if absent)."
    RESET_HELP = "Remove every entry of the namespace."
    PURGE_HELP = "Physically delete expired entries."


class CLIMessages:
    """Message templates."""

    MISSING = "[yellow](absent)[/yellow]"
    STORED = "[green]Stored[/green] {key}"
    DELETED = "[green]Deleted[/green] {key} ({changes} row(s))"
    RESET = "[green]Reset[/green] namespace {name} ({changes} row(s))"
    PURGED = "[green]Purged[/green] {count} expired row(s)"
    ERROR = "[red]Error:[/red] {error}"
