"""Folder store: the authoritative list of linked folders and user ignore patterns.

Stored as JSON (default ``~/.peekmd.json``)::

    {"folders": ["/abs/path", ...], "ignore": ["glob", ...]}

``folders`` keeps link order. ``ignore`` holds user-added patterns only; the
built-in defaults are never written here and are unioned in at read time.
The file is re-read on every call so edits made by another process (the CLI,
a text editor) are always seen.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, Field, ValidationError

from peekmd.core.errors import FolderError
from peekmd.core.excludes import DEFAULT_IGNORE_PATTERNS, is_default_pattern
from peekmd.core.paths import canonical_path

logger = structlog.get_logger()


class StoreData(BaseModel):
    """On-disk schema of the folder store."""

    folders: list[str] = Field(default_factory=list)
    ignore: list[str] | None = None


@dataclass(frozen=True, slots=True)
class LinkResult:
    path: str
    added: bool

    def to_dict(self) -> dict[str, Any]:
        return {"added": self.added, "path": self.path}


@dataclass(frozen=True, slots=True)
class UnlinkResult:
    path: str
    removed: bool

    def to_dict(self) -> dict[str, Any]:
        return {"removed": self.removed, "path": self.path}


@dataclass(frozen=True, slots=True)
class PatternResult:
    """Outcome of adding or removing one ignore pattern."""

    pattern: str
    changed: bool
    reason: str | None = None


class FolderStore:
    """Reads and writes the folder store file.

    ``on_patterns_changed`` is called after every write that may change the
    effective ignore pattern set (and after folder changes, whose walks also
    depend on compiled patterns). The server wires it to
    ``IgnorePolicy.clear_cache``.
    """

    def __init__(
        self,
        path: Path,
        on_patterns_changed: Callable[[], None] | None = None,
    ) -> None:
        self.path = path
        self.on_patterns_changed = on_patterns_changed

    # -------------------------------------------------------------------------
    # Raw access
    # -------------------------------------------------------------------------

    def read(self) -> StoreData:
        """Read the store. A missing or unreadable file reads as empty."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return StoreData()
        except OSError as e:
            logger.warning("store_unreadable", path=str(self.path), error=str(e))
            return StoreData()
        try:
            return StoreData.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("store_invalid", path=str(self.path), error=str(e))
            return StoreData()

    def write(self, data: StoreData) -> None:
        """Write the store atomically (temp file + rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(data.model_dump(exclude_none=True), indent=2) + "\n"
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp, self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise

    def _changed(self) -> None:
        if self.on_patterns_changed is not None:
            self.on_patterns_changed()

    def ensure_defaults(self) -> None:
        """Materialize both keys on first run so the file documents its schema."""
        exists = self.path.exists()
        data = self.read()
        if exists and data.ignore is not None:
            return
        if data.ignore is None:
            data.ignore = []
        self.write(data)
        logger.info("store_initialized", path=str(self.path))
        self._changed()

    # -------------------------------------------------------------------------
    # Folders
    # -------------------------------------------------------------------------

    def folders(self) -> list[str]:
        return list(self.read().folders)

    def link_folder(self, folder: str | os.PathLike[str]) -> LinkResult:
        """Add a folder to the store.

        Raises:
            FolderError: If the path does not exist or is not a directory.
        """
        path = canonical_path(folder)
        if not os.path.exists(path):
            raise FolderError.not_found(path)
        if not os.path.isdir(path):
            raise FolderError.not_a_directory(path)

        data = self.read()
        if path in data.folders:
            return LinkResult(path=path, added=False)
        data.folders.append(path)
        self.write(data)
        logger.info("folder_linked", path=path)
        self._changed()
        return LinkResult(path=path, added=True)

    def unlink_folder(self, folder: str | os.PathLike[str]) -> UnlinkResult:
        """Remove a folder from the store. The folder itself need not exist."""
        path = canonical_path(folder)
        data = self.read()
        if path not in data.folders:
            return UnlinkResult(path=path, removed=False)
        data.folders.remove(path)
        self.write(data)
        logger.info("folder_unlinked", path=path)
        self._changed()
        return UnlinkResult(path=path, removed=True)

    # -------------------------------------------------------------------------
    # Ignore patterns
    # -------------------------------------------------------------------------

    def user_ignore_patterns(self) -> list[str]:
        return list(self.read().ignore or [])

    def ignore_patterns(self) -> list[str]:
        """Built-in defaults followed by user patterns, without duplicates."""
        return list(dict.fromkeys([*DEFAULT_IGNORE_PATTERNS, *self.user_ignore_patterns()]))

    def add_ignore_pattern(self, pattern: str) -> PatternResult:
        pattern = pattern.strip()
        if not pattern:
            return PatternResult(pattern=pattern, changed=False, reason="empty pattern")
        data = self.read()
        user = data.ignore or []
        if pattern in user:
            return PatternResult(pattern=pattern, changed=False, reason="already ignored")
        data.ignore = [*user, pattern]
        self.write(data)
        logger.info("ignore_pattern_added", pattern=pattern)
        self._changed()
        return PatternResult(pattern=pattern, changed=True)

    def remove_ignore_pattern(self, pattern: str) -> PatternResult:
        pattern = pattern.strip()
        data = self.read()
        user = data.ignore or []
        if pattern not in user:
            reason = "built-in pattern" if is_default_pattern(pattern) else "not ignored"
            return PatternResult(pattern=pattern, changed=False, reason=reason)
        data.ignore = [p for p in user if p != pattern]
        self.write(data)
        logger.info("ignore_pattern_removed", pattern=pattern)
        self._changed()
        return PatternResult(pattern=pattern, changed=True)

    def reset_ignore_patterns(self) -> list[str]:
        """Drop all user patterns, leaving only the built-in defaults.

        Returns the removed patterns.
        """
        data = self.read()
        removed = list(data.ignore or [])
        data.ignore = []
        self.write(data)
        logger.info("ignore_patterns_reset", removed=len(removed))
        self._changed()
        return removed


def display_names(folders: Sequence[str]) -> list[str]:
    """Short display name per folder.

    The basename, or ``parent/basename`` where two folders share a basename.
    """
    basenames = [os.path.basename(f.rstrip(os.sep)) or f for f in folders]
    counts: dict[str, int] = {}
    for b in basenames:
        counts[b] = counts.get(b, 0) + 1
    names: list[str] = []
    for folder, b in zip(folders, basenames, strict=True):
        if counts[b] > 1:
            parent = os.path.basename(os.path.dirname(folder.rstrip(os.sep)))
            names.append(f"{parent}/{b}")
        else:
            names.append(b)
    return names
