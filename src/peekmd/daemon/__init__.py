"""peekmd daemon - HTTP/WebSocket server with live folder watching."""

from peekmd.daemon.app import create_app
from peekmd.daemon.broadcast import BroadcastHub
from peekmd.daemon.lifecycle import ServerController
from peekmd.daemon.registry import Reconciler, WatcherRegistry
from peekmd.daemon.watcher import ConfigChangeMonitor, DirectoryWatcher

__all__ = [
    "BroadcastHub",
    "ConfigChangeMonitor",
    "DirectoryWatcher",
    "Reconciler",
    "ServerController",
    "WatcherRegistry",
    "create_app",
]
