"""peekmd up command - run the server in the foreground."""

import asyncio
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import click
from rich.markup import escape

from peekmd.cli.utils import load_cli_config, server_url
from peekmd.core.progress import get_console

BANNER = r"""
  ┌─────────────────────┐
  │                     │
  │   p e e k  M D      │
  │   ─────────────     │
  │   │ │ │ │ │ │       │
  │                     │
  └─────────────────────┘
"""


def _print_banner(
    host: str, port: int, extra_dirs: list[str], log_file: Path | None = None
) -> None:
    """Print startup banner with endpoints using Rich."""
    try:
        ver = version("peekmd")
    except PackageNotFoundError:
        ver = "dev"
    console = get_console()
    console.print(BANNER, style="cyan", highlight=False)

    banner_width = 64
    rule_line = "─" * banner_width
    display_host = "localhost" if host in ("127.0.0.1", "0.0.0.0") else host
    base_url = server_url(port, display_host)

    console.print(rule_line, style="dim cyan", highlight=False)
    console.print(f"peekmd v{ver} · Ready".center(banner_width), style="bold cyan", highlight=False)
    console.print(rule_line, style="dim cyan", highlight=False)
    console.print()

    console.print(f"  Browser:         {base_url}", style="green", highlight=False)
    console.print(f"  Events:          ws://{display_host}:{port}/ws", highlight=False)
    console.print(f"  Health Check:    {base_url}/health", highlight=False)
    for d in extra_dirs:
        console.print(f"  Session folder:  {escape(d)}", style="dim", highlight=False)
    if log_file is not None:
        console.print(f"  Log file:        {escape(str(log_file))}", style="dim", highlight=False)
    console.print()
    console.print("  To stop: peekmd down (or Ctrl+C)", style="dim", highlight=False)
    console.print()


@click.command()
@click.argument(
    "dirs", nargs=-1, type=click.Path(exists=True, file_okay=False, resolve_path=False)
)
@click.option("--port", "-p", type=int, envvar="PORT", help="Server port (env: PORT, default 4000)")
@click.option("--host", type=str, default=None, help="Bind address (default 127.0.0.1)")
@click.option("--open", "open_browser", is_flag=True, help="Open the browser once started")
@click.pass_context
def up_command(
    ctx: click.Context,
    dirs: tuple[str, ...],
    port: int | None,
    host: str | None,
    open_browser: bool,
) -> None:
    """Start the peekmd server in the foreground.

    DIRS are watched for this session only, in addition to linked folders;
    they are not written to the folder store. If a server is already running,
    reports it and exits.
    """
    from peekmd.core.logging import configure_logging
    from peekmd.core.paths import canonical_path
    from peekmd.daemon.lifecycle import is_server_running, read_server_info, run_server

    if is_server_running():
        info = read_server_info()
        if info:
            pid, server_port = info
            click.echo(f"Already running (PID {pid}, port {server_port})")
            return

    overrides: dict[str, dict[str, object]] = {}
    if port is not None:
        overrides.setdefault("server", {})["port"] = port
    if host is not None:
        overrides.setdefault("server", {})["host"] = host
    config = load_cli_config(**overrides)

    if ctx.obj and ctx.obj.get("verbose"):
        config.logging.level = "DEBUG"
    log_file = configure_logging(config=config.logging)

    extra_dirs = [canonical_path(d) for d in dirs]
    _print_banner(config.server.host, config.server.port, extra_dirs, log_file)
    if open_browser:
        click.launch(server_url(config.server.port))

    try:
        asyncio.run(run_server(config, extra_dirs))
    except KeyboardInterrupt:
        click.echo("\nStopped")
