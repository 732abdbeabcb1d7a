"""
sqlite-kv Typer CLI Application

Operator commands over one namespace of a cache database: read, write,
delete and inspect entries, reset the namespace and purge expired rows.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

import orjson
import typer
from rich.console import Console
from rich.text import Text

from sqlite_kv.cli.context import CliContext, LogLevel, get_cli_context, set_cli_context
from sqlite_kv.cli.error_handler import format_json_output, handle_cli_error
from sqlite_kv.config import load_settings
from sqlite_kv.services.sqlite_store_db import SqliteStore, create
from sqlite_kv.shared.constants import CLICommands, CLIDefaults, CLIHelp, CLIMessages
from sqlite_kv.shared.logging import setup_structured_logger

# Version information
__version__ = CLIDefaults.VERSION


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(CLIHelp.VERSION_TEXT.format(version=__version__))
        raise typer.Exit


app = typer.Typer(
    name=CLIHelp.APP_NAME,
    help=CLIHelp.APP_DESCRIPTION,
    rich_markup_mode=CLIHelp.APP_STYLE,
    no_args_is_help=True,
)


@app.callback()
def main(
    path: Optional[str] = typer.Option(None, "--path", "-p", help=CLIHelp.PATH_HELP),
    name: Optional[str] = typer.Option(None, "--name", "-n", help=CLIHelp.NAME_HELP),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help=CLIHelp.CONFIG_HELP),
    log_level: Optional[LogLevel] = typer.Option(
        None,
        "--log-level",
        help=CLIHelp.LOG_LEVEL_HELP,
        case_sensitive=False,
    ),
    json_output: bool = typer.Option(False, "--json", help=CLIHelp.JSON_HELP),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Inspect and edit a sqlite-kv cache namespace."""
    set_cli_context(
        CliContext(
            path=path,
            name=name,
            config=config,
            log_level=log_level,
            json_output=json_output,
        )
    )


@contextmanager
def open_store(context: CliContext) -> Iterator[SqliteStore]:
    """Open the namespace selected by the global options and wait for its schema."""
    settings = load_settings(context.config)

    level = context.log_level.value if context.log_level else settings.logging.level
    setup_structured_logger(
        level=level,
        log_file=settings.logging.file,
        use_rich_console=settings.logging.rich_console,
    )

    store = create(settings.store.to_options(path=context.path, name=context.name))
    try:
        store.wait_ready()
        yield store
    finally:
        store.close()


def _run_command(
    command: str,
    action: Callable[[SqliteStore], Any],
    render: Callable[[Any], str | Text],
) -> None:
    """Run ``action`` against the store and print its result.

    JSON mode prints ``{"success", "command", "data": {"result": ...}}``.
    """
    context = get_cli_context()
    try:
        with open_store(context) as store:
            result = action(store)
    except Exception as e:  # noqa: BLE001
        exit_code = handle_cli_error(e, command, json_output=context.json_output)
        raise typer.Exit(exit_code) from e

    if context.is_json_output_enabled():
        typer.echo(format_json_output(command, success=True, data={"result": result}))
    else:
        Console().print(render(result))


def parse_value(raw: str) -> Any:
    """Parse a command-line value as JSON, falling back to the raw string."""
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        return raw


def _render_value(value: Any) -> str | Text:
    if value is None:
        return CLIMessages.MISSING
    if isinstance(value, str):
        return Text(value)
    return Text(orjson.dumps(value).decode("utf-8"))


@app.command(CLICommands.GET, help=CLIHelp.GET_HELP)
def get_command(key: str = typer.Argument(..., help="Entry key")) -> None:
    _run_command(
        CLICommands.GET,
        lambda store: store.get(key).result(),
        _render_value,
    )


@app.command(CLICommands.SET, help=CLIHelp.SET_HELP)
def set_command(
    key: str = typer.Argument(..., help="Entry key"),
    value: str = typer.Argument(..., help="Value (JSON or plain text)"),
    ttl: Optional[int] = typer.Option(None, "--ttl", "-t", help=CLIHelp.TTL_HELP),
) -> None:
    _run_command(
        CLICommands.SET,
        lambda store: store.set(key, parse_value(value), ttl).result().changes,
        lambda _: CLIMessages.STORED.format(key=key),
    )


@app.command(CLICommands.DELETE, help=CLIHelp.DELETE_HELP)
def delete_command(key: str = typer.Argument(..., help="Entry key")) -> None:
    _run_command(
        CLICommands.DELETE,
        lambda store: store.delete(key).result().changes,
        lambda changes: CLIMessages.DELETED.format(key=key, changes=changes),
    )


@app.command(CLICommands.TTL, help=CLIHelp.TTL_HELP_COMMAND)
def ttl_command(key: str = typer.Argument(..., help="Entry key")) -> None:
    _run_command(
        CLICommands.TTL,
        lambda store: store.ttl(key).result(),
        str,
    )


@app.command(CLICommands.RESET, help=CLIHelp.RESET_HELP)
def reset_command() -> None:
    _run_command(
        CLICommands.RESET,
        lambda store: {"namespace": store.name, "changes": store.reset().result().changes},
        lambda result: CLIMessages.RESET.format(name=result["namespace"], changes=result["changes"]),
    )


@app.command(CLICommands.PURGE, help=CLIHelp.PURGE_HELP)
def purge_command() -> None:
    _run_command(
        CLICommands.PURGE,
        lambda store: store.purge_expired().result(),
        lambda count: CLIMessages.PURGED.format(count=count),
    )


if __name__ == "__main__":
    app()
