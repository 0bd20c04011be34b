"""Folder watchers built on watchfiles.

Design:
- OS notification sits behind the ChangeSource protocol; WatchfilesSource
  wraps ``watchfiles.awatch`` and tests substitute a fake source
- Raw changes are filtered as they arrive, then held in a per-path Debouncer
  until they settle
- A background task checks the debouncer every ``poll_interval_sec`` and
  emits settled changes in order
- Source errors (root deleted, permission revoked) are logged and the watcher
  goes silent; the next reconciliation replaces it
- No events for the initial state: a new watcher is silent until something
  changes
"""

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog
from watchfiles import Change, awatch

from peekmd.config.models import WatchConfig
from peekmd.core.paths import to_posix_relative
from peekmd.daemon.debounce import ChangeKind, Debouncer
from peekmd.daemon.events import ChangeEvent
from peekmd.ignore import IgnorePolicy

logger = structlog.get_logger()

RawChange = tuple[ChangeKind, str]

_KINDS: dict[Change, ChangeKind] = {
    Change.added: ChangeKind.CREATED,
    Change.modified: ChangeKind.MODIFIED,
    Change.deleted: ChangeKind.DELETED,
}


_EXISTING_ORDER = (ChangeKind.DELETED, ChangeKind.CREATED, ChangeKind.MODIFIED)


def order_batch(changes: Iterable[RawChange]) -> list[RawChange]:
    """Put an unordered batch into an order the debouncer can coalesce.

    watchfiles reports a batch as a set, so a path seen with several kinds
    has lost its sequence. It is rebuilt from whether the file exists now:
    an existing file was deleted before it was (re)created, so a replace
    coalesces to ``modified``; a missing file ends with its deletion.
    Paths come out sorted.
    """
    by_path: dict[str, set[ChangeKind]] = {}
    for kind, path in changes:
        by_path.setdefault(path, set()).add(kind)

    ordered: list[RawChange] = []
    for path in sorted(by_path):
        kinds = by_path[path]
        if len(kinds) == 1:
            ordered.append((kinds.pop(), path))
        elif os.path.exists(path):
            ordered.extend((k, path) for k in _EXISTING_ORDER if k in kinds)
        elif ChangeKind.DELETED in kinds:
            ordered.append((ChangeKind.DELETED, path))
        else:
            ordered.extend((k, path) for k in (ChangeKind.CREATED, ChangeKind.MODIFIED))
    return ordered


class ChangeSource(Protocol):
    """Yields batches of raw ``(kind, absolute_path)`` changes under a path.

    Within a batch, changes to one path are in the order they happened.
    """

    def watch(
        self,
        path: Path,
        stop_event: asyncio.Event,
        *,
        recursive: bool = True,
    ) -> AsyncIterator[list[RawChange]]: ...


@dataclass
class WatchfilesSource:
    """ChangeSource backed by ``watchfiles.awatch`` (inotify, FSEvents, ...).

    ``step_ms`` is how long watchfiles waits for more changes before yielding a
    batch; ``debounce_ms`` caps how long one batch may keep growing.
    """

    step_ms: int = 50
    debounce_ms: int = 1600
    force_polling: bool | None = None

    async def watch(
        self,
        path: Path,
        stop_event: asyncio.Event,
        *,
        recursive: bool = True,
    ) -> AsyncIterator[list[RawChange]]:
        async for changes in awatch(
            path,
            watch_filter=None,
            debounce=self.debounce_ms,
            step=self.step_ms,
            stop_event=stop_event,
            recursive=recursive,
            force_polling=self.force_polling,
            ignore_permission_denied=True,
        ):
            yield order_batch((_KINDS[change], p) for change, p in changes)


class _DebouncedWatch(ABC):
    """Shared task plumbing: one source loop plus one flush loop."""

    def __init__(
        self,
        target: Path,
        *,
        source: ChangeSource | None,
        config: WatchConfig | None,
        recursive: bool,
    ) -> None:
        self.config = config or WatchConfig()
        self.source: ChangeSource = source or WatchfilesSource()
        self._target = target
        self._recursive = recursive
        self._debouncer = Debouncer(self.config.stability_sec, self.config.max_wait_sec)
        self._stop_event = asyncio.Event()
        self._watch_task: asyncio.Task[None] | None = None
        self._flush_task: asyncio.Task[None] | None = None
        self._started = False
        self._stopped = False
        self.error: str | None = None

    @property
    def is_running(self) -> bool:
        return self._started and not self._stopped

    @property
    def failed(self) -> bool:
        """The change source raised; this watcher will emit nothing more."""
        return self.error is not None

    def start(self) -> None:
        """Start watching. Must be called from a running event loop."""
        if self._started or self._stopped:
            return
        self._started = True
        self._watch_task = asyncio.create_task(self._watch_loop())
        self._flush_task = asyncio.create_task(self._flush_loop())

    def stop(self) -> None:
        """Stop watching. Idempotent; nothing is emitted after this returns."""
        if self._stopped:
            return
        self._stopped = True
        self._stop_event.set()
        self._debouncer.clear()
        for task in (self._watch_task, self._flush_task):
            if task is not None and not task.done():
                task.cancel()

    async def wait_closed(self) -> None:
        """Wait until background tasks have finished after ``stop``."""
        tasks = [t for t in (self._watch_task, self._flush_task) if t is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _watch_loop(self) -> None:
        try:
            async for changes in self.source.watch(
                self._target, self._stop_event, recursive=self._recursive
            ):
                if self._stopped:
                    break
                self._handle_changes(changes)
        except asyncio.CancelledError:
            return
        except Exception as e:
            if not self._stopped:
                self._fail(str(e), type(e).__name__)
            return
        if not self._stopped:
            self._fail("change source ended", "StopAsyncIteration")

    def _fail(self, error: str, error_type: str) -> None:
        self.error = error
        logger.warning(
            "watcher_error",
            target=str(self._target),
            error=error,
            error_type=error_type,
        )

    async def _flush_loop(self) -> None:
        try:
            while not self._stopped:
                await asyncio.sleep(self.config.poll_interval_sec)
                self.flush()
        except asyncio.CancelledError:
            pass

    def flush(self) -> None:
        """Emit every pending change that has settled."""
        for key, kind in self._debouncer.pop_settled():
            if self._stopped:
                return
            self._emit(key, kind)

    @abstractmethod
    def _handle_changes(self, changes: Iterable[RawChange]) -> None: ...

    @abstractmethod
    def _emit(self, key: str, kind: ChangeKind) -> None: ...


class DirectoryWatcher(_DebouncedWatch):
    """Watches one root directory and emits ChangeEvents for its documents.

    Only files with the document extension (case-insensitive) that the
    IgnorePolicy does not exclude are reported. Paths are reported relative
    to ``root`` with ``/`` separators.
    """

    def __init__(
        self,
        root: str,
        on_event: Callable[[ChangeEvent], None],
        policy: IgnorePolicy,
        *,
        source: ChangeSource | None = None,
        config: WatchConfig | None = None,
    ) -> None:
        super().__init__(Path(root), source=source, config=config, recursive=True)
        self.root = root
        self.on_event = on_event
        self.policy = policy

    def start(self) -> None:
        if self._started or self._stopped:
            return
        super().start()
        logger.info(
            "directory_watcher_started",
            root=self.root,
            stability_sec=self.config.stability_sec,
        )

    def stop(self) -> None:
        if self._stopped:
            return
        super().stop()
        logger.info("directory_watcher_stopped", root=self.root)

    def _relative(self, path: str) -> str | None:
        try:
            rel = to_posix_relative(path, self.root)
        except ValueError:
            return None
        if not rel or rel == ".." or rel.startswith("../"):
            return None
        return rel

    def _handle_changes(self, changes: Iterable[RawChange]) -> None:
        extension = self.config.document_extension
        is_ignored, _ = self.policy.matcher()
        for kind, path in changes:
            rel = self._relative(path)
            if rel is None or not rel.lower().endswith(extension):
                continue
            if is_ignored(rel):
                logger.debug("path_ignored", root=self.root, path=rel)
                continue
            self._debouncer.record(rel, kind)
            logger.debug("path_queued", root=self.root, path=rel, change_type=kind.value)

    def _emit(self, key: str, kind: ChangeKind) -> None:
        self.on_event(ChangeEvent(kind=kind, root=self.root, relative_path=key))


class ConfigChangeMonitor(_DebouncedWatch):
    """Watches the folder store file and calls ``on_change`` when it settles.

    The parent directory is watched non-recursively and filtered to the file
    name, so saves that write a temp file and rename it over the original are
    seen. Deletions are not reported. The file content is not interpreted.
    """

    def __init__(
        self,
        path: Path,
        on_change: Callable[[], None],
        *,
        source: ChangeSource | None = None,
        config: WatchConfig | None = None,
    ) -> None:
        super().__init__(path.parent, source=source, config=config, recursive=False)
        self.path = path
        self.on_change = on_change

    def start(self) -> None:
        if self._started or self._stopped:
            return
        super().start()
        logger.info("config_monitor_started", path=str(self.path))

    def _handle_changes(self, changes: Iterable[RawChange]) -> None:
        # Non-recursive watch: every path is a direct child of the parent
        for kind, path in changes:
            if Path(path).name == self.path.name:
                self._debouncer.record(self.path.name, kind)

    def _emit(self, key: str, kind: ChangeKind) -> None:  # noqa: ARG002
        if kind is ChangeKind.DELETED:
            logger.info("config_file_deleted", path=str(self.path))
            return
        logger.info("config_file_changed", path=str(self.path))
        self.on_change()
