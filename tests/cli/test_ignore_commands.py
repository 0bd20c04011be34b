"""Tests for peekmd ignore / unignore / ignored commands."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from peekmd.cli.main import cli

runner = CliRunner()


def _user_patterns(store_path: Path) -> list[str]:
    return json.loads(store_path.read_text())["ignore"]


class TestIgnoreCommand:
    """peekmd ignore command tests."""

    def test_adds_patterns(self, cli_store: Path) -> None:
        result = runner.invoke(cli, ["ignore", "**/drafts/**", "*.tmp.md"])

        assert result.exit_code == 0
        assert result.output.count("Ignoring") == 2
        assert _user_patterns(cli_store) == ["**/drafts/**", "*.tmp.md"]

    def test_duplicate(self, cli_store: Path) -> None:
        runner.invoke(cli, ["ignore", "**/drafts/**"])
        result = runner.invoke(cli, ["ignore", "**/drafts/**"])

        assert "Already ignored" in result.output
        assert _user_patterns(cli_store) == ["**/drafts/**"]

    def test_blank_pattern_skipped(self, cli_store: Path) -> None:
        result = runner.invoke(cli, ["ignore", "   "])

        assert result.exit_code == 0
        assert "Empty pattern skipped" in result.output
        assert not cli_store.exists()

    def test_bracket_pattern_printed_verbatim(self, cli_store: Path) -> None:
        result = runner.invoke(cli, ["ignore", "[abc]*.md"])
        assert "[abc]*.md" in result.output


class TestUnignoreCommand:
    """peekmd unignore command tests."""

    def test_removes_user_pattern(self, cli_store: Path) -> None:
        runner.invoke(cli, ["ignore", "**/drafts/**"])
        result = runner.invoke(cli, ["unignore", "**/drafts/**"])

        assert "Removed" in result.output
        assert _user_patterns(cli_store) == []

    def test_builtin_refused(self, cli_store: Path) -> None:
        result = runner.invoke(cli, ["unignore", "**/node_modules/**"])

        assert result.exit_code == 0
        assert "Built-in pattern, cannot remove" in result.output

    def test_unknown(self, cli_store: Path) -> None:
        result = runner.invoke(cli, ["unignore", "nothing/**"])
        assert "Not in ignore list" in result.output


class TestIgnoredCommand:
    """peekmd ignored command tests."""

    def test_json_marks_builtins(self, cli_store: Path) -> None:
        runner.invoke(cli, ["ignore", "**/drafts/**"])
        result = runner.invoke(cli, ["ignored", "--json"])

        entries = json.loads(result.output)
        by_pattern = {e["pattern"]: e["builtin"] for e in entries}
        assert by_pattern["**/node_modules/**"] is True
        assert by_pattern["**/drafts/**"] is False
        assert entries[-1]["pattern"] == "**/drafts/**"

    def test_text_output(self, cli_store: Path) -> None:
        runner.invoke(cli, ["ignore", "**/drafts/**"])
        result = runner.invoke(cli, ["ignored"])

        assert result.exit_code == 0
        assert "Ignore patterns" in result.output
        assert "**/drafts/**" in result.output
        assert "(built-in)" in result.output
