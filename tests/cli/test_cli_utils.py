"""Tests for CLI utilities and the command group."""

from __future__ import annotations

from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from peekmd import __version__
from peekmd.cli.main import cli
from peekmd.cli.utils import get_store, load_cli_config, resolve_folders, server_url

runner = CliRunner()


class TestLoadCliConfig:
    def test_env_store_path(self, cli_store: Path) -> None:
        config = load_cli_config()
        assert get_store(config).path == cli_store

    def test_invalid_value_is_click_exception(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PEEKMD__SERVER__PORT", "not-a-port")
        with pytest.raises(click.ClickException):
            load_cli_config()


class TestResolveFolders:
    def test_defaults_to_linked(self, cli_store: Path, docs_dir: Path) -> None:
        store = get_store(load_cli_config())
        store.link_folder(docs_dir)
        assert resolve_folders(store, ()) == [str(docs_dir)]

    def test_explicit_dirs_canonical_and_unique(self, cli_store: Path, docs_dir: Path) -> None:
        store = get_store(load_cli_config())
        assert resolve_folders(store, (str(docs_dir), f"{docs_dir}/")) == [str(docs_dir)]


def test_server_url() -> None:
    assert server_url(4000) == "http://localhost:4000"
    assert server_url(8080, "127.0.0.1") == "http://127.0.0.1:8080"


class TestCliGroup:
    def test_help_lists_commands(self) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for name in ("up", "down", "status", "open", "link", "unlink", "list", "search"):
            assert name in result.output

    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])
        assert __version__ in result.output
