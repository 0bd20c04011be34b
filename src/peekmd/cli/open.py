"""peekmd open command - open the running server in a browser."""

import click

from peekmd.cli.utils import server_url
from peekmd.core.progress import status
from peekmd.daemon.lifecycle import is_server_running, read_server_info


@click.command()
def open_command() -> None:
    """Open the browser at the running server."""
    info = read_server_info() if is_server_running() else None
    if info is None:
        status("Server not running. Start it with: peekmd up", style="warning")
        raise SystemExit(1)

    _, port = info
    url = server_url(port)
    status(f"Opening {url}")
    click.launch(url)
