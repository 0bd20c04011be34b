"""Tests for peekmd up command."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner

from peekmd.cli.main import cli

runner = CliRunner()


class TestUpCommand:
    """peekmd up command tests."""

    @patch("peekmd.daemon.lifecycle.run_server", new_callable=AsyncMock)
    @patch("peekmd.daemon.lifecycle.read_server_info")
    @patch("peekmd.daemon.lifecycle.is_server_running")
    def test_given_already_running_when_up_then_reports_running(
        self,
        mock_is_running: MagicMock,
        mock_read_info: MagicMock,
        mock_run: AsyncMock,
        cli_store: Path,
    ) -> None:
        mock_is_running.return_value = True
        mock_read_info.return_value = (12345, 4000)

        result = runner.invoke(cli, ["up"])

        assert result.exit_code == 0
        assert "Already running (PID 12345, port 4000)" in result.output
        mock_run.assert_not_called()

    @patch("peekmd.daemon.lifecycle.run_server", new_callable=AsyncMock)
    @patch("peekmd.daemon.lifecycle.is_server_running", return_value=False)
    def test_given_dirs_when_up_then_runs_server_with_session_dirs(
        self,
        mock_is_running: MagicMock,
        mock_run: AsyncMock,
        cli_store: Path,
        docs_dir: Path,
    ) -> None:
        result = runner.invoke(cli, ["up", str(docs_dir), "--port", "4321"])

        assert result.exit_code == 0, result.output
        config, extra_dirs = mock_run.call_args.args
        assert config.server.port == 4321
        assert extra_dirs == [str(docs_dir)]
        assert "http://localhost:4321" in result.output

    @patch("peekmd.daemon.lifecycle.run_server", new_callable=AsyncMock)
    @patch("peekmd.daemon.lifecycle.is_server_running", return_value=False)
    def test_port_from_environment(
        self, mock_is_running: MagicMock, mock_run: AsyncMock, cli_store: Path
    ) -> None:
        result = runner.invoke(cli, ["up"], env={"PORT": "4555"})

        assert result.exit_code == 0, result.output
        config, extra_dirs = mock_run.call_args.args
        assert config.server.port == 4555
        assert extra_dirs == []

    @patch("peekmd.daemon.lifecycle.run_server", new_callable=AsyncMock)
    @patch("peekmd.daemon.lifecycle.is_server_running", return_value=False)
    def test_missing_dir_rejected(
        self, mock_is_running: MagicMock, mock_run: AsyncMock, tmp_path: Path
    ) -> None:
        result = runner.invoke(cli, ["up", str(tmp_path / "nope")])

        assert result.exit_code == 2
        mock_run.assert_not_called()
