"""peekmd ignore / unignore / ignored - manage ignore patterns."""

from __future__ import annotations

import json

import click
from rich.markup import escape

from peekmd.cli.utils import get_store, load_cli_config
from peekmd.core.excludes import is_default_pattern
from peekmd.core.progress import get_console, status


@click.command()
@click.argument("patterns", nargs=-1, required=True)
def ignore_command(patterns: tuple[str, ...]) -> None:
    """Ignore files and folders by glob pattern.

    \b
    Examples:
        peekmd ignore '**/drafts/**'
        peekmd ignore '**/*.draft.md'
    """
    store = get_store(load_cli_config())
    for pattern in patterns:
        result = store.add_ignore_pattern(pattern)
        if result.changed:
            status(f"Ignoring    {escape(result.pattern)}", style="success")
        elif result.reason == "empty pattern":
            status("Empty pattern skipped", style="skip")
        else:
            status(f"Already ignored    {escape(pattern)}", style="skip")


@click.command()
@click.argument("patterns", nargs=-1, required=True)
def unignore_command(patterns: tuple[str, ...]) -> None:
    """Remove user ignore patterns. Built-in patterns cannot be removed."""
    store = get_store(load_cli_config())
    for pattern in patterns:
        result = store.remove_ignore_pattern(pattern)
        if result.changed:
            status(f"Removed    {escape(result.pattern)}", style="success")
        elif result.reason == "built-in pattern":
            status(f"Built-in pattern, cannot remove    {escape(pattern)}", style="warning")
        else:
            status(f"Not in ignore list    {escape(pattern)}", style="skip")


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def ignored_command(as_json: bool) -> None:
    """Show all active ignore patterns (built-in and user)."""
    store = get_store(load_cli_config())
    patterns = store.ignore_patterns()

    if as_json:
        payload = [{"pattern": p, "builtin": is_default_pattern(p)} for p in patterns]
        click.echo(json.dumps(payload, indent=2))
        return

    console = get_console()
    console.print()
    console.print("  Ignore patterns (glob):", highlight=False)
    console.print()
    for p in patterns:
        suffix = "  [dim](built-in)[/dim]" if is_default_pattern(p) else ""
        console.print(f"    {escape(p)}{suffix}", highlight=False, soft_wrap=True)
    console.print()
