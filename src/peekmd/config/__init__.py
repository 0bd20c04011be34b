"""Config module exports."""

from peekmd.config.loader import load_config
from peekmd.config.models import (
    LoggingConfig,
    PeekConfig,
    ServerConfig,
    WatchConfig,
)
from peekmd.config.store import FolderStore, display_names

__all__ = [
    "load_config",
    "FolderStore",
    "LoggingConfig",
    "PeekConfig",
    "ServerConfig",
    "WatchConfig",
    "display_names",
]
