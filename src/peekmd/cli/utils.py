"""CLI utilities."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import click

from peekmd.config.loader import load_config
from peekmd.config.models import PeekConfig
from peekmd.config.store import FolderStore
from peekmd.core.errors import ConfigError
from peekmd.core.paths import canonical_path
from peekmd.ignore import IgnorePolicy


def load_cli_config(**kwargs: object) -> PeekConfig:
    """Load settings, turning configuration errors into a clean CLI failure.

    Raises:
        click.ClickException: If the config file or environment is invalid
    """
    try:
        return load_config(**kwargs)  # type: ignore[arg-type]
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


def get_store(config: PeekConfig) -> FolderStore:
    """Folder store at the configured path."""
    return FolderStore(Path(canonical_path(config.store.resolved_path)))


def get_policy(store: FolderStore) -> IgnorePolicy:
    """Ignore policy reading user patterns from ``store``."""
    return IgnorePolicy(store.user_ignore_patterns)


def resolve_folders(store: FolderStore, dirs: Sequence[str]) -> list[str]:
    """Explicit DIRs when given, otherwise every linked folder."""
    if dirs:
        return list(dict.fromkeys(canonical_path(d) for d in dirs))
    return store.folders()


def server_url(port: int, host: str = "localhost") -> str:
    return f"http://{host}:{port}"
