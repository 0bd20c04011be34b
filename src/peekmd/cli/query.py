"""peekmd search / files - JSON output for scripts and agents."""

from __future__ import annotations

import json

import click

from peekmd.cli.utils import get_policy, get_store, load_cli_config, resolve_folders
from peekmd.config.store import display_names
from peekmd.search import scan_documents, search


@click.command()
@click.argument("query")
@click.argument("dirs", nargs=-1)
def search_command(query: str, dirs: tuple[str, ...]) -> None:
    """Search document names and contents.

    QUERY is matched case-insensitively. DIRS default to every linked folder.
    """
    config = load_cli_config()
    if len(query) < config.search.min_query_length:
        raise click.UsageError(
            f"query must be at least {config.search.min_query_length} characters"
        )

    store = get_store(config)
    results = search(
        resolve_folders(store, dirs),
        query,
        get_policy(store),
        max_line_matches=config.search.max_line_matches,
        extension=config.watch.document_extension,
    )
    click.echo(json.dumps([r.to_dict() for r in results], indent=2))


@click.command()
@click.argument("dirs", nargs=-1)
def files_command(dirs: tuple[str, ...]) -> None:
    """List every document per folder. DIRS default to every linked folder."""
    config = load_cli_config()
    store = get_store(config)
    policy = get_policy(store)
    folders = resolve_folders(store, dirs)

    payload = [
        {
            "folder": folder,
            "name": name,
            "files": scan_documents(folder, policy, extension=config.watch.document_extension),
        }
        for folder, name in zip(folders, display_names(folders), strict=True)
    ]
    click.echo(json.dumps(payload, indent=2))
