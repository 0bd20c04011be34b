"""peekmd link / unlink / list - manage linked folders."""

from __future__ import annotations

import json

import click
from rich.markup import escape

from peekmd.cli.utils import get_store, load_cli_config
from peekmd.config.store import display_names
from peekmd.core.errors import FolderError
from peekmd.core.progress import folder_table, get_console, pluralize, status


@click.command()
@click.argument("dirs", nargs=-1, required=True)
def link_command(dirs: tuple[str, ...]) -> None:
    """Persist folders to the folder store.

    A running server picks the change up and starts watching them.
    """
    store = get_store(load_cli_config())
    failed = False
    for folder in dirs:
        try:
            result = store.link_folder(folder)
        except FolderError as e:
            status(f"{escape(e.path)} - {e.message}", style="error")
            failed = True
            continue
        if result.added:
            status(f"Linked    {escape(result.path)}", style="success")
        else:
            status(f"Already linked    {escape(result.path)}", style="skip")
    if failed:
        raise SystemExit(1)


@click.command()
@click.argument("dirs", nargs=-1, required=True)
def unlink_command(dirs: tuple[str, ...]) -> None:
    """Remove folders from the folder store. The folders themselves are untouched."""
    store = get_store(load_cli_config())
    for folder in dirs:
        result = store.unlink_folder(folder)
        if result.removed:
            status(f"Unlinked    {escape(result.path)}", style="success")
        else:
            status(f"Not linked    {escape(result.path)}", style="skip")


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_command(as_json: bool) -> None:
    """Show linked folders."""
    store = get_store(load_cli_config())
    folders = store.folders()
    names = display_names(folders)

    if as_json:
        payload = [{"name": n, "path": f} for n, f in zip(names, folders, strict=True)]
        click.echo(json.dumps(payload, indent=2))
        return

    if not folders:
        status("No folders linked. Run: peekmd link <dir>")
        return

    console = get_console()
    console.print()
    console.print(folder_table(names, folders))
    console.print()
    status(f"{pluralize(len(folders), 'folder')} linked")
