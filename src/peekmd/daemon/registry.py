"""Watcher registry and reconciliation.

The registry owns the mapping from root directory to its live watcher. The
reconciler makes that mapping match an authoritative root set.

Every mutation of the mapping is a plain synchronous call: there is no
``await`` between reading and writing it, so overlapping callers on the
event loop cannot lose updates and two reconciliations never interleave.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Protocol

import structlog

from peekmd.core.paths import canonical_path
from peekmd.daemon.events import ChangeEvent
from peekmd.ignore import IgnorePolicy

logger = structlog.get_logger()


class WatcherHandle(Protocol):
    """What the registry needs from a watcher."""

    @property
    def failed(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    async def wait_closed(self) -> None: ...


WatcherFactory = Callable[[str, Callable[[ChangeEvent], None]], WatcherHandle]


class WatcherRegistry:
    """Root directory -> watcher, at most one watcher per canonical root.

    Args:
        factory: Builds an unstarted watcher for a root, wired to a callback.
        on_event: Receives every event of every watcher (the broadcast hub).
    """

    def __init__(self, factory: WatcherFactory, on_event: Callable[[ChangeEvent], None]) -> None:
        self._factory = factory
        self._on_event = on_event
        self._handles: dict[str, WatcherHandle] = {}

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, root: object) -> bool:
        return isinstance(root, str) and canonical_path(root) in self._handles

    def get(self, root: str) -> WatcherHandle | None:
        return self._handles.get(canonical_path(root))

    def current_roots(self) -> set[str]:
        return set(self._handles)

    def failed_roots(self) -> set[str]:
        """Roots whose watcher is registered but no longer receiving changes."""
        return {root for root, handle in self._handles.items() if handle.failed}

    def ensure(self, root: str) -> bool:
        """Start a watcher for ``root`` unless one exists. Returns True if started."""
        key = canonical_path(root)
        if key in self._handles:
            return False
        handle = self._factory(key, self._on_event)
        handle.start()
        self._handles[key] = handle
        return True

    def release(self, root: str) -> bool:
        """Stop and forget the watcher for ``root``. Returns True if one existed."""
        handle = self._handles.pop(canonical_path(root), None)
        if handle is None:
            return False
        handle.stop()
        return True

    async def close(self) -> None:
        """Stop every watcher and wait for their tasks to finish."""
        handles = list(self._handles.values())
        self._handles.clear()
        for handle in handles:
            handle.stop()
        if handles:
            await asyncio.gather(*(h.wait_closed() for h in handles), return_exceptions=True)
        logger.info("watcher_registry_closed", count=len(handles))


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    started: tuple[str, ...] = ()
    stopped: tuple[str, ...] = ()
    restarted: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.started or self.stopped or self.restarted)


class Reconciler:
    """Makes the registry's root set equal to an authoritative root set.

    Any configuration change triggers a full pass rather than an incremental
    one. A root whose watcher failed gets a fresh one while it stays in the
    set. Afterwards the ignore policy's compiled matchers are dropped, since
    the pattern set may have changed independently of the roots.
    """

    def __init__(self, registry: WatcherRegistry, policy: IgnorePolicy) -> None:
        self.registry = registry
        self.policy = policy

    def reconcile(self, roots: Iterable[str]) -> ReconcileResult:
        target = list(dict.fromkeys(canonical_path(r) for r in roots))
        target_set = set(target)
        current = self.registry.current_roots()
        failed = self.registry.failed_roots()

        stopped = tuple(sorted(r for r in current if r not in target_set))
        to_start = [r for r in target if r not in current]
        to_restart = [r for r in target if r in failed]

        for root in [*stopped, *to_restart]:
            self.registry.release(root)
        started = tuple(root for root in to_start if self.registry.ensure(root))
        restarted = tuple(root for root in to_restart if self.registry.ensure(root))

        self.policy.clear_cache()

        result = ReconcileResult(started=started, stopped=stopped, restarted=restarted)
        if result.changed:
            logger.info(
                "watchers_reconciled",
                started=list(started),
                stopped=list(stopped),
                restarted=list(restarted),
                active=len(self.registry),
            )
        else:
            logger.debug("watchers_unchanged", active=len(self.registry))
        return result
