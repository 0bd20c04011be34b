"""Root directory identity.

A root is identified by its canonical absolute path string: ``~`` expanded,
made absolute and normalized, with symlinks left as they are. Two roots are
the same iff their canonical strings are equal.
"""

from __future__ import annotations

import os
from pathlib import Path


def canonical_path(path: str | os.PathLike[str]) -> str:
    """Return the canonical absolute form of ``path``."""
    return os.path.abspath(os.path.expanduser(os.fspath(path)))


def to_posix_relative(path: str | os.PathLike[str], root: str | os.PathLike[str]) -> str:
    """Path of ``path`` relative to ``root`` with ``/`` separators.

    Returns an empty string for the root itself.
    """
    rel = os.path.relpath(os.fspath(path), os.fspath(root))
    if rel == os.curdir:
        return ""
    return Path(rel).as_posix()


def is_within(parent: str | os.PathLike[str], child: str | os.PathLike[str]) -> bool:
    """Check that ``child`` lies inside ``parent`` (both absolute)."""
    rel = os.path.relpath(os.fspath(child), os.fspath(parent))
    return not (rel == os.pardir or rel.startswith(os.pardir + os.sep) or os.path.isabs(rel))
