"""Normalized change events and the messages sent to clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from peekmd.daemon.debounce import ChangeKind

# Wire names of each change kind
MESSAGE_TYPES: dict[ChangeKind, str] = {
    ChangeKind.CREATED: "add",
    ChangeKind.MODIFIED: "change",
    ChangeKind.DELETED: "unlink",
}

FOLDERS_CHANGED = "folders-changed"


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A settled change to one document under one root.

    ``relative_path`` always uses ``/`` separators.
    """

    kind: ChangeKind
    root: str
    relative_path: str

    def to_message(self) -> dict[str, Any]:
        return {
            "type": MESSAGE_TYPES[self.kind],
            "folder": self.root,
            "path": self.relative_path,
        }


def folders_changed() -> dict[str, Any]:
    """Signal telling clients to re-fetch the folder listing."""
    return {"type": FOLDERS_CHANGED}
