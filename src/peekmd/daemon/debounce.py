"""Per-path debouncing of raw filesystem changes.

A raw change is held until its path has been quiet for the stability window,
so a multi-step save (truncate, write, rename over) surfaces as one event.
A path that keeps changing is released anyway once it has been pending for
``max_wait``.

Raw kinds recorded for the same path while it is pending are coalesced:

    created  + modified -> created
    created  + deleted  -> (nothing: the file never settled)
    deleted  + created  -> modified (atomic replace)
    modified + deleted  -> deleted
    anything else       -> the latest kind
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum


class ChangeKind(StrEnum):
    """Normalized change kinds."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


_COALESCE: dict[tuple[ChangeKind, ChangeKind], ChangeKind | None] = {
    (ChangeKind.CREATED, ChangeKind.MODIFIED): ChangeKind.CREATED,
    (ChangeKind.CREATED, ChangeKind.CREATED): ChangeKind.CREATED,
    (ChangeKind.CREATED, ChangeKind.DELETED): None,
    (ChangeKind.DELETED, ChangeKind.CREATED): ChangeKind.MODIFIED,
    (ChangeKind.DELETED, ChangeKind.MODIFIED): ChangeKind.MODIFIED,
    (ChangeKind.MODIFIED, ChangeKind.DELETED): ChangeKind.DELETED,
}


def coalesce(previous: ChangeKind, latest: ChangeKind) -> ChangeKind | None:
    """Combine two raw kinds for one path. None means the change cancelled out."""
    return _COALESCE.get((previous, latest), latest)


@dataclass(slots=True)
class _Pending:
    kind: ChangeKind
    first_seen: float
    last_seen: float


class Debouncer:
    """Buffers raw changes per key until they settle.

    Not thread-safe; owned by one watcher task.
    """

    def __init__(
        self,
        stability: float,
        max_wait: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stability = stability
        self.max_wait = max_wait
        self._clock = clock
        self._pending: dict[str, _Pending] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def record(self, key: str, kind: ChangeKind) -> None:
        """Record one raw change for ``key``."""
        now = self._clock()
        pending = self._pending.pop(key, None)
        if pending is None:
            self._pending[key] = _Pending(kind=kind, first_seen=now, last_seen=now)
            return

        merged = coalesce(pending.kind, kind)
        if merged is None:
            return
        pending.kind = merged
        pending.last_seen = now
        # Re-insert so settled keys come out in order of their last raw change
        self._pending[key] = pending

    def pop_settled(self) -> list[tuple[str, ChangeKind]]:
        """Remove and return every key that is quiet or has waited too long."""
        now = self._clock()
        settled = [
            key
            for key, p in self._pending.items()
            if now - p.last_seen >= self.stability or now - p.first_seen >= self.max_wait
        ]
        return [(key, self._pending.pop(key).kind) for key in settled]

    def clear(self) -> None:
        self._pending.clear()
