"""Tests for the sqlite-kv Typer CLI."""

from __future__ import annotations

from pathlib import Path

import orjson
import pytest
from typer.testing import CliRunner

from sqlite_kv import create
from sqlite_kv.cli.error_handler import handle_cli_error
from sqlite_kv.cli.typer_app import app, parse_value
from sqlite_kv.shared.errors import (
    ErrorCode,
    ErrorContext,
    StoreClosedError,
    create_call_contract_error,
)

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep default config discovery and SQLITE_KV_* variables out of the tests."""
    monkeypatch.chdir(tmp_path)
    for name in ("SQLITE_KV_STORE__NAME", "SQLITE_KV_STORE__PATH", "SQLITE_KV_LOGGING__LEVEL"):
        monkeypatch.delenv(name, raising=False)


def invoke(db_path: Path, *args: str):
    return runner.invoke(app, ["--path", str(db_path), "--name", "cli", *args])


class TestParseValue:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ('{"a": 1}', {"a": 1}),
            ("[1, 2]", [1, 2]),
            ("42", 42),
            ("true", True),
            ('"quoted"', "quoted"),
            ("plain text", "plain text"),
        ],
    )
    def test_json_with_string_fallback(self, raw: str, expected: object) -> None:
        assert parse_value(raw) == expected


class TestCommands:
    """Command behavior against a file store."""

    def test_set_then_get(self, db_path: Path) -> None:
        # When
        set_result = invoke(db_path, "set", "movie", '{"title": "Akira"}')
        get_result = invoke(db_path, "get", "movie")

        # Then
        assert set_result.exit_code == 0, set_result.output
        assert "Stored" in set_result.output
        assert get_result.exit_code == 0, get_result.output
        assert orjson.loads(get_result.stdout.strip()) == {"title": "Akira"}

    def test_get_plain_string(self, db_path: Path) -> None:
        invoke(db_path, "set", "greeting", "hello world")

        result = invoke(db_path, "get", "greeting")

        assert result.stdout.strip() == "hello world"

    def test_get_missing(self, db_path: Path) -> None:
        result = invoke(db_path, "get", "missing")

        assert result.exit_code == 0
        assert "(absent)" in result.stdout

    def test_set_with_ttl_and_ttl_command(self, db_path: Path) -> None:
        invoke(db_path, "set", "k", "v", "--ttl", "60000")

        result = invoke(db_path, "ttl", "k")

        assert result.exit_code == 0
        assert 0 < int(result.stdout.strip()) <= 60_000

    def test_ttl_missing_key(self, db_path: Path) -> None:
        result = invoke(db_path, "ttl", "missing")
        assert result.stdout.strip() == "-1"

    def test_delete(self, db_path: Path) -> None:
        invoke(db_path, "set", "k", "v")

        result = invoke(db_path, "delete", "k")

        assert result.exit_code == 0
        assert "1 row(s)" in result.stdout
        assert "(absent)" in invoke(db_path, "get", "k").stdout

    def test_reset(self, db_path: Path) -> None:
        invoke(db_path, "set", "a", "1")
        invoke(db_path, "set", "b", "2")

        result = invoke(db_path, "reset")

        assert result.exit_code == 0
        assert "cli" in result.stdout
        assert "2 row(s)" in result.stdout

    def test_purge(self, db_path: Path) -> None:
        # Given
        store = create(name="cli", path=db_path)
        store.set("old", 1, -1).result(timeout=5)
        store.set("new", 2).result(timeout=5)
        store.close()

        # When
        result = invoke(db_path, "purge")

        # Then
        assert result.exit_code == 0
        assert "Purged 1 expired" in result.stdout

    def test_json_output(self, db_path: Path) -> None:
        invoke(db_path, "set", "k", "[1, 2, 3]")

        result = runner.invoke(app, ["--path", str(db_path), "--name", "cli", "--json", "get", "k"])

        payload = orjson.loads(result.stdout)
        assert payload["success"] is True
        assert payload["command"] == "get"
        assert payload["data"]["result"] == [1, 2, 3]

    def test_config_file_selects_store(self, tmp_path: Path) -> None:
        # Given
        db_path = tmp_path / "configured.db"
        config_file = tmp_path / "kv.toml"
        config_file.write_text(f'[store]\nname = "configured"\npath = "{db_path.as_posix()}"\n', encoding="utf-8")

        # When
        runner.invoke(app, ["--config", str(config_file), "set", "k", "v"])

        # Then
        store = create(name="configured", path=db_path)
        assert store.get("k").result(timeout=5) == "v"
        store.close()


class TestErrors:
    """Error mapping to exit codes."""

    def test_invalid_namespace(self, db_path: Path) -> None:
        result = runner.invoke(app, ["--path", str(db_path), "--name", "bad-name", "get", "k"])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_invalid_namespace_json(self, db_path: Path) -> None:
        result = runner.invoke(app, ["--path", str(db_path), "--name", "bad-name", "--json", "get", "k"])

        payload = orjson.loads(result.stdout)
        assert result.exit_code == 1
        assert payload["success"] is False
        assert payload["data"]["error_code"] == "CONFIG_ERROR"

    def test_missing_config_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["--config", str(tmp_path / "missing.toml"), "get", "k"])
        assert result.exit_code == 1

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "sqlite-kv version" in result.stdout


class TestHandleCliError:
    @pytest.mark.parametrize(
        ("error", "prefix", "code"),
        [
            (
                StoreClosedError(ErrorCode.STORE_CLOSED, "closed", ErrorContext(operation="get")),
                "Store closed",
                "STORE_CLOSED",
            ),
            (create_call_contract_error("bad ttl", operation="set"), "Invalid arguments", "INVALID_CALL_ARGUMENTS"),
            (FileNotFoundError("cache.db"), "File system error", "CLI_UNEXPECTED_ERROR"),
            (RuntimeError("boom"), "Unexpected error", "CLI_UNEXPECTED_ERROR"),
        ],
    )
    def test_json_output_carries_category_and_code(
        self,
        capsys: pytest.CaptureFixture[str],
        error: Exception,
        prefix: str,
        code: str,
    ) -> None:
        # When
        exit_code = handle_cli_error(error, "get", json_output=True)

        # Then
        payload = orjson.loads(capsys.readouterr().out)
        assert exit_code == 1
        assert payload["errors"][0].startswith(f"{prefix}: ")
        assert payload["data"]["error_code"] == code
        assert payload["data"]["error_type"] == type(error).__name__

    def test_text_output_goes_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        handle_cli_error(RuntimeError("boom"), "get")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.strip() == "Error: Unexpected error: boom"
