"""Tests for peekmd search / files commands."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from peekmd.cli.main import cli

runner = CliRunner()


class TestSearchCommand:
    """peekmd search command tests."""

    def test_searches_linked_folders(self, cli_store: Path, docs_dir: Path) -> None:
        runner.invoke(cli, ["link", str(docs_dir)])
        result = runner.invoke(cli, ["search", "todo"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == [
            {
                "folder": str(docs_dir),
                "file": "README.md",
                "matches": [{"line": 3, "text": "TODO: write intro"}],
            }
        ]

    def test_explicit_dirs(self, cli_store: Path, docs_dir: Path) -> None:
        result = runner.invoke(cli, ["search", "setup", str(docs_dir)])

        [hit] = json.loads(result.output)
        assert hit["file"] == "guide/setup.md"

    def test_ignored_documents_skipped(self, cli_store: Path, docs_dir: Path) -> None:
        result = runner.invoke(cli, ["search", "vendored", str(docs_dir)])
        assert json.loads(result.output) == []

    def test_short_query_is_usage_error(self, cli_store: Path) -> None:
        result = runner.invoke(cli, ["search", "a"])

        assert result.exit_code == 2
        assert "at least 2 characters" in result.output


class TestFilesCommand:
    """peekmd files command tests."""

    def test_lists_documents(self, cli_store: Path, docs_dir: Path) -> None:
        runner.invoke(cli, ["link", str(docs_dir)])
        result = runner.invoke(cli, ["files"])

        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {"folder": str(docs_dir), "name": "docs", "files": ["README.md", "guide/setup.md"]}
        ]

    def test_user_patterns_applied(self, cli_store: Path, docs_dir: Path) -> None:
        runner.invoke(cli, ["ignore", "guide/**"])
        result = runner.invoke(cli, ["files", str(docs_dir)])

        [entry] = json.loads(result.output)
        assert entry["files"] == ["README.md"]

    def test_nothing_linked(self, cli_store: Path) -> None:
        result = runner.invoke(cli, ["files"])
        assert json.loads(result.output) == []
