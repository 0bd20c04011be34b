"""Human-facing CLI output on stderr, kept apart from structlog records.

    status("Linked    /tmp/docs", style="success")   #   ✓ Linked    /tmp/docs
    status("Already linked    /tmp/docs", style="skip")
    get_console().print(folder_table(names, folders))

Messages are Rich markup; callers escape user-supplied text.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from rich.console import Console
from rich.table import Table

_console = Console(stderr=True)

_MARKERS = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "skip": "[dim]·[/dim] ",
    "info": "  ",
    "none": "",
}


def get_console() -> Console:
    return _console


def status(message: str, *, style: str = "info", indent: int = 2) -> None:
    """One marked line. Unknown styles print without a marker."""
    line = " " * indent + _MARKERS.get(style, "") + message
    _console.print(line, highlight=False, soft_wrap=True)
    # Resolved per call so a later configure_logging applies
    structlog.get_logger("progress").debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """``1 folder``, ``3 folders``; pass ``plural`` for irregular words."""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def folder_table(names: Sequence[str], folders: Sequence[str]) -> Table:
    """Table for ``peekmd list``: display name and absolute path per folder."""
    table = Table(title="Linked folders", title_justify="left")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Path")
    for name, folder in zip(names, folders, strict=True):
        table.add_row(name, folder)
    return table
