"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides fakes for the OS notification layer.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local peekmd package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of peekmd modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("peekmd"):
        del sys.modules[module_name]

from peekmd.config.models import PeekConfig, StoreConfig, WatchConfig  # noqa: E402
from peekmd.daemon.debounce import ChangeKind  # noqa: E402
from peekmd.daemon.events import ChangeEvent  # noqa: E402

RawBatch = list[tuple[ChangeKind, str]]


class FakeChangeSource:
    """ChangeSource whose batches are pushed by the test.

    Each ``watch`` call gets its own queue, keyed by the watched path.
    ``fail`` makes the next ``watch`` call raise.
    """

    def __init__(self) -> None:
        self.queues: dict[Path, asyncio.Queue[RawBatch]] = {}
        self.recursive: dict[Path, bool] = {}
        self.fail: Exception | None = None

    async def watch(
        self,
        path: Path,
        stop_event: asyncio.Event,
        *,
        recursive: bool = True,
    ) -> AsyncIterator[RawBatch]:
        if self.fail is not None:
            raise self.fail
        queue: asyncio.Queue[RawBatch] = asyncio.Queue()
        self.queues[path] = queue
        self.recursive[path] = recursive
        while not stop_event.is_set():
            yield await queue.get()

    def push(self, path: Path | str, *changes: tuple[ChangeKind, str]) -> None:
        self.queues[Path(path)].put_nowait(list(changes))


class FakeWatcher:
    """Synchronous watcher handle recording its lifecycle."""

    def __init__(self, root: str, on_event: Callable[[ChangeEvent], None]) -> None:
        self.root = root
        self.on_event = on_event
        self.started = 0
        self.stopped = 0
        self.closed = False
        self.failed = False

    def start(self) -> None:
        self.started += 1

    def stop(self) -> None:
        self.stopped += 1

    async def wait_closed(self) -> None:
        self.closed = True

    def emit(self, kind: ChangeKind, relative_path: str) -> None:
        self.on_event(ChangeEvent(kind=kind, root=self.root, relative_path=relative_path))


class FakeWatcherFactory:
    """WatcherFactory that builds FakeWatchers and keeps every one it made."""

    def __init__(self) -> None:
        self.created: list[FakeWatcher] = []

    def __call__(self, root: str, on_event: Callable[[ChangeEvent], None]) -> FakeWatcher:
        watcher = FakeWatcher(root, on_event)
        self.created.append(watcher)
        return watcher

    def live(self) -> dict[str, FakeWatcher]:
        return {w.root: w for w in self.created if w.stopped == 0}


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll ``predicate`` until true or ``timeout`` elapses."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return predicate()


@pytest.fixture
def fake_source() -> FakeChangeSource:
    return FakeChangeSource()


@pytest.fixture
def fake_factory() -> FakeWatcherFactory:
    return FakeWatcherFactory()


@pytest.fixture
def fast_watch_config() -> WatchConfig:
    """Short windows so debounce tests run quickly."""
    return WatchConfig(stability_sec=0.05, poll_interval_sec=0.01, max_wait_sec=0.5)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "home" / ".peekmd.json"


@pytest.fixture
def peek_config(store_path: Path, fast_watch_config: WatchConfig) -> PeekConfig:
    return PeekConfig(store=StoreConfig(path=str(store_path)), watch=fast_watch_config)


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """A folder with a few documents and some ignored clutter."""
    root = tmp_path / "docs"
    (root / "guide").mkdir(parents=True)
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / "README.md").write_text("# Readme\n\nTODO: write intro\n")
    (root / "guide" / "setup.md").write_text("# Setup\n\nInstall it.\n")
    (root / "notes.txt").write_text("not a document\n")
    (root / "node_modules" / "pkg" / "README.md").write_text("# vendored\n")
    return root


@pytest.fixture
def cli_store(store_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point CLI commands at a temporary folder store."""
    monkeypatch.setenv("PEEKMD__STORE__PATH", str(store_path))
    return store_path
