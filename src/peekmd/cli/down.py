"""peekmd down command - stop the peekmd server."""

from __future__ import annotations

import time

import click

from peekmd.core.progress import status
from peekmd.daemon.lifecycle import is_server_running, read_server_info, stop_daemon


@click.command()
def down_command() -> None:
    """Stop the running peekmd server."""
    info = read_server_info()
    if info is None or not is_server_running():
        status("No background server running")
        return

    pid, port = info
    status(f"Stopping server (PID {pid}, port {port})...")

    if not stop_daemon():
        status("Failed to send stop signal", style="error")
        raise SystemExit(1)

    # Wait for process to exit (up to 5 seconds)
    for _ in range(50):
        if not is_server_running():
            status("Server stopped", style="success")
            return
        time.sleep(0.1)

    status("Server did not stop within 5 seconds", style="error")
    raise SystemExit(1)
