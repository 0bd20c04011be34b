"""peekmd status command - show server status."""

import json

import click
import httpx

from peekmd.cli.utils import server_url
from peekmd.core.progress import status
from peekmd.daemon.lifecycle import is_server_running, read_server_info


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def status_command(as_json: bool) -> None:
    """Show whether the server is running and what it is watching."""
    info = read_server_info() if is_server_running() else None
    if info is None:
        if as_json:
            click.echo(json.dumps({"running": False, "pid": None, "port": None}))
        else:
            status("Server not running")
        return

    pid, port = info

    # Query server health
    try:
        response = httpx.get(f"{server_url(port, '127.0.0.1')}/health", timeout=5.0)
        health = response.json()
    except (httpx.RequestError, json.JSONDecodeError) as e:
        if as_json:
            click.echo(json.dumps({"running": True, "pid": pid, "port": port, "error": str(e)}))
        else:
            status(f"Server running (PID {pid}, port {port})", style="success")
            status(f"Health: unavailable ({e})", style="warning")
        return

    if as_json:
        click.echo(json.dumps({"running": True, "pid": pid, "port": port, **health}))
        return

    status(f"Server running (PID {pid}, port {port})", style="success")
    status(f"Folders:  {health.get('folders', 0)}")
    status(f"Watchers: {health.get('watchers', 0)}")
    status(f"Clients:  {health.get('clients', 0)}")
