"""peekmd CLI - peekmd command."""

import click

from peekmd import __version__
from peekmd.cli.down import down_command
from peekmd.cli.folders import link_command, list_command, unlink_command
from peekmd.cli.ignore import ignore_command, ignored_command, unignore_command
from peekmd.cli.open import open_command
from peekmd.cli.query import files_command, search_command
from peekmd.cli.status import status_command
from peekmd.cli.up import up_command
from peekmd.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="peekmd")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """peekmd - Preview Markdown folders in the browser, live.

    Config file: ~/.peekmd.json
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


# Server
cli.add_command(up_command, name="up")
cli.add_command(down_command, name="down")
cli.add_command(status_command, name="status")
cli.add_command(open_command, name="open")

# Folders
cli.add_command(link_command, name="link")
cli.add_command(unlink_command, name="unlink")
cli.add_command(list_command, name="list")

# Ignore patterns
cli.add_command(ignore_command, name="ignore")
cli.add_command(unignore_command, name="unignore")
cli.add_command(ignored_command, name="ignored")

# Structured output
cli.add_command(search_command, name="search")
cli.add_command(files_command, name="files")


if __name__ == "__main__":
    cli()
