"""Server composition and process bookkeeping.

``ServerController`` owns every component of a running server. ``run_server``
hosts it under uvicorn; the PID/port helpers let other CLI invocations find it.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import signal
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from peekmd.config.models import PeekConfig
from peekmd.config.store import (
    FolderStore,
    LinkResult,
    PatternResult,
    UnlinkResult,
    display_names,
)
from peekmd.core.paths import canonical_path
from peekmd.daemon.broadcast import BroadcastHub
from peekmd.daemon.events import ChangeEvent, folders_changed
from peekmd.daemon.registry import (
    ReconcileResult,
    Reconciler,
    WatcherFactory,
    WatcherRegistry,
)
from peekmd.daemon.watcher import ChangeSource, ConfigChangeMonitor, DirectoryWatcher
from peekmd.ignore import IgnorePolicy
from peekmd.search import SearchResult, scan_documents, search

logger = structlog.get_logger()

# Inside the run directory (the system temp dir by default)
PID_FILE = "peekmd.pid"
PORT_FILE = "peekmd.port"


def default_run_dir() -> Path:
    return Path(tempfile.gettempdir())


@dataclass
class ServerController:
    """
    Composition root of the sync engine.

    Components:
    - FolderStore: linked folders and user ignore patterns (JSON file)
    - IgnorePolicy: compiled-pattern cache over defaults + user patterns
    - BroadcastHub: connected clients
    - WatcherRegistry + Reconciler: one DirectoryWatcher per authoritative root
    - ConfigChangeMonitor: reconciles after external edits of the store file

    ``extra_dirs`` are session-only roots: watched and listed, never persisted.
    """

    config: PeekConfig = field(default_factory=PeekConfig)
    extra_dirs: list[str] = field(default_factory=list)
    source: ChangeSource | None = None
    watcher_factory: WatcherFactory | None = None

    store: FolderStore = field(init=False)
    policy: IgnorePolicy = field(init=False)
    hub: BroadcastHub = field(init=False)
    registry: WatcherRegistry = field(init=False)
    reconciler: Reconciler = field(init=False)
    config_monitor: ConfigChangeMonitor = field(init=False)
    _shutdown_event: asyncio.Event = field(default_factory=asyncio.Event, init=False)

    def __post_init__(self) -> None:
        self.extra_dirs = list(dict.fromkeys(canonical_path(d) for d in self.extra_dirs))
        self.store = FolderStore(Path(canonical_path(self.config.store.resolved_path)))
        self.policy = IgnorePolicy(self.store.user_ignore_patterns)
        self.store.on_patterns_changed = self.policy.clear_cache
        self.hub = BroadcastHub()
        self.registry = WatcherRegistry(
            self.watcher_factory or self._make_watcher,
            self.hub.broadcast,
        )
        self.reconciler = Reconciler(self.registry, self.policy)
        self.config_monitor = ConfigChangeMonitor(
            self.store.path,
            self._on_config_changed,
            source=self.source,
            config=self.config.watch,
        )

    def _make_watcher(
        self, root: str, on_event: Callable[[ChangeEvent], None]
    ) -> DirectoryWatcher:
        return DirectoryWatcher(
            root,
            on_event,
            self.policy,
            source=self.source,
            config=self.config.watch,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Reconcile watchers with the store and start the config monitor."""
        logger.info("server_starting", store=str(self.store.path))
        self.store.ensure_defaults()
        self.sync()
        self.config_monitor.start()

        address = f"{self.config.server.host}:{self.config.server.port}"
        logger.info("server_started", folders=len(self.registry))
        logger.info("endpoint", name="api", url=f"http://{address}/api/folders")
        logger.info("endpoint", name="events", url=f"ws://{address}/ws")
        logger.info("endpoint", name="health", url=f"http://{address}/health")

    async def stop(self) -> None:
        """Stop the config monitor and every watcher."""
        logger.info("server_stopping")
        try:
            async with asyncio.timeout(self.config.timeouts.server_stop_sec):
                self.config_monitor.stop()
                await self.config_monitor.wait_closed()
                await self.registry.close()
        except TimeoutError:
            logger.warning(
                "server_stop_timeout",
                message=f"Shutdown timed out after {self.config.timeouts.server_stop_sec}s",
            )
        self._shutdown_event.set()
        logger.info("server_stopped")

    def wait_for_shutdown(self) -> asyncio.Event:
        """Set once ``stop`` has finished."""
        return self._shutdown_event

    # -------------------------------------------------------------------------
    # Folder set
    # -------------------------------------------------------------------------

    def all_folders(self) -> list[str]:
        """Linked folders followed by session-only folders, in canonical form."""
        folders = [canonical_path(f) for f in self.store.folders()]
        return list(dict.fromkeys([*folders, *self.extra_dirs]))

    def sync(self) -> ReconcileResult:
        """Reconcile the watcher set with the current authoritative folders."""
        return self.reconciler.reconcile(self.all_folders())

    def _on_config_changed(self) -> None:
        self.sync()
        self.hub.broadcast(folders_changed())

    def broadcast(self, event: ChangeEvent | dict[str, Any]) -> int:
        return self.hub.broadcast(event)

    def link(self, folder: str) -> LinkResult:
        """Link a folder and start watching it.

        Raises:
            FolderError: If the folder does not exist or is not a directory.
        """
        result = self.store.link_folder(folder)
        if result.added:
            self.sync()
        self.hub.broadcast(folders_changed())
        return result

    def unlink(self, folder: str) -> UnlinkResult:
        result = self.store.unlink_folder(folder)
        if result.removed:
            self.sync()
        self.hub.broadcast(folders_changed())
        return result

    def add_ignore(self, pattern: str) -> PatternResult:
        result = self.store.add_ignore_pattern(pattern)
        if result.changed:
            self.sync()
            self.hub.broadcast(folders_changed())
        return result

    def remove_ignore(self, pattern: str) -> PatternResult:
        result = self.store.remove_ignore_pattern(pattern)
        if result.changed:
            self.sync()
            self.hub.broadcast(folders_changed())
        return result

    def reset_ignore(self) -> list[str]:
        removed = self.store.reset_ignore_patterns()
        self.sync()
        self.hub.broadcast(folders_changed())
        return removed

    # -------------------------------------------------------------------------
    # Read-side queries (safe to run off the event loop)
    # -------------------------------------------------------------------------

    def list_folders(self) -> list[dict[str, Any]]:
        folders = self.all_folders()
        ext = self.config.watch.document_extension
        return [
            {
                "folder": folder,
                "name": name,
                "files": scan_documents(folder, self.policy, extension=ext),
            }
            for folder, name in zip(folders, display_names(folders), strict=True)
        ]

    def search(self, query: str) -> list[SearchResult]:
        return search(
            self.all_folders(),
            query,
            self.policy,
            max_line_matches=self.config.search.max_line_matches,
            extension=self.config.watch.document_extension,
        )


# -----------------------------------------------------------------------------
# PID/port files: how `peekmd down`, `status` and `open` find the server
# -----------------------------------------------------------------------------


def _run_files(run_dir: Path | None) -> tuple[Path, Path]:
    base = run_dir or default_run_dir()
    return base / PID_FILE, base / PORT_FILE


def write_pid_file(run_dir: Path, port: int) -> None:
    """Record this process and its port."""
    pid_path, port_path = _run_files(run_dir)
    pid_path.write_text(str(os.getpid()))
    port_path.write_text(str(port))
    logger.debug("pid_file_written", pid_path=str(pid_path), port=port)


def remove_pid_file(run_dir: Path) -> None:
    """Remove both files. Missing files are fine."""
    for path in _run_files(run_dir):
        with contextlib.suppress(FileNotFoundError):
            path.unlink()


def read_server_info(run_dir: Path | None = None) -> tuple[int, int] | None:
    """``(pid, port)`` from the run files, or None if absent or garbled."""
    pid_path, port_path = _run_files(run_dir)
    try:
        return int(pid_path.read_text().strip()), int(port_path.read_text().strip())
    except (FileNotFoundError, ValueError):
        return None


def _process_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except PermissionError:
        # Exists, owned by another user
        return True
    except OSError:
        return False
    return True


def is_server_running(run_dir: Path | None = None) -> bool:
    """True if the recorded process is alive. Stale run files are removed."""
    info = read_server_info(run_dir)
    if info is None:
        return False
    if _process_alive(info[0]):
        return True
    remove_pid_file(run_dir or default_run_dir())
    return False


def stop_daemon(run_dir: Path | None = None) -> bool:
    """Send SIGTERM to the recorded server. Returns True if it was signalled."""
    info = read_server_info(run_dir)
    if info is None:
        return False
    pid = info[0]
    try:
        os.kill(pid, signal.SIGTERM)
    except OSError:
        remove_pid_file(run_dir or default_run_dir())
        return False
    logger.info("server_stop_signal_sent", pid=pid)
    return True


async def run_server(
    config: PeekConfig,
    extra_dirs: list[str] | None = None,
    run_dir: Path | None = None,
) -> None:
    """Serve until uvicorn exits (SIGINT/SIGTERM), then tear down watchers."""
    from peekmd.daemon.app import create_app

    run_dir = run_dir or default_run_dir()
    controller = ServerController(config=config, extra_dirs=extra_dirs or [])
    app = create_app(controller)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="warning",  # Use structlog instead
        timeout_graceful_shutdown=int(config.timeouts.force_exit_sec),
    )
    server = uvicorn.Server(uvicorn_config)

    write_pid_file(run_dir, config.server.port)
    try:
        await controller.start()
        await server.serve()
    finally:
        await controller.stop()
        remove_pid_file(run_dir)
