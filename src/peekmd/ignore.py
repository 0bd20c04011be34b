"""Ignore policy shared by the watchers, the folder listing and search.

Single source of truth for path exclusion. The effective pattern list is the
built-in defaults plus the user patterns of the folder store, re-derived from
the pattern source on every call. Only the compiled matchers are cached, one
per pattern string, and the cache must be cleared whenever the pattern set
changes (``clear_cache``).

Pattern syntax is git wildmatch (via pathspec):
- ``**`` matches any number of path segments, including none
- ``*`` and ``?`` do not cross ``/`` and do match dotfiles
- a path is ignored if it matches at least one pattern
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence

import pathspec

from peekmd.core.excludes import DEFAULT_IGNORE_PATTERNS
from peekmd.core.paths import to_posix_relative

__all__ = [
    "IgnorePolicy",
    "PathPredicate",
    "normalize_relative",
]

PathPredicate = Callable[[str], bool]


def normalize_relative(rel_path: str) -> str:
    """Normalize a relative path for matching: ``/`` separators, no leading ``./``."""
    rel = rel_path.replace("\\", "/")
    while rel.startswith("./"):
        rel = rel[2:]
    return "" if rel == "." else rel


class IgnorePolicy:
    """Decides whether a path relative to a root directory is excluded.

    Args:
        pattern_source: Returns the current user pattern list. Called on every
            check; the built-in defaults are always added on top.
    """

    def __init__(self, pattern_source: Callable[[], Sequence[str]] | None = None) -> None:
        self._pattern_source = pattern_source or (lambda: ())
        self._cache: dict[str, pathspec.PathSpec] = {}

    def patterns(self) -> list[str]:
        """Effective pattern list: defaults followed by user patterns."""
        return list(dict.fromkeys([*DEFAULT_IGNORE_PATTERNS, *self._pattern_source()]))

    def clear_cache(self) -> None:
        """Drop every compiled matcher."""
        self._cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def _compiled(self, pattern: str) -> pathspec.PathSpec:
        spec = self._cache.get(pattern)
        if spec is None:
            spec = pathspec.PathSpec.from_lines("gitwildmatch", [pattern])
            self._cache[pattern] = spec
        return spec

    def _matches(self, rel: str, patterns: Sequence[str]) -> bool:
        return any(self._compiled(p).match_file(rel) for p in patterns)

    def is_ignored(self, path: str | os.PathLike[str], root: str | None = None) -> bool:
        """Check whether ``path`` is excluded.

        Args:
            path: Path relative to the root, or absolute when ``root`` is given.
            root: Root directory an absolute ``path`` is made relative to.
                Relative paths are taken as already relative to it.

        An empty or ``.`` path (the root itself) is never ignored.
        """
        rel = os.fspath(path)
        if root is not None and os.path.isabs(rel):
            rel = to_posix_relative(rel, root)
        rel = normalize_relative(rel)
        if not rel:
            return False
        return self._matches(rel, self.patterns())

    def is_ignored_dir(self, rel_dir: str) -> bool:
        """Directory variant of ``is_ignored`` used to prune walks.

        The directory is tested with a trailing ``/`` so that ``**/name/**``
        prunes ``name`` itself and not only its contents.
        """
        rel = normalize_relative(rel_dir).rstrip("/")
        if not rel:
            return False
        patterns = self.patterns()
        return self._matches(rel + "/", patterns) or self._matches(rel, patterns)

    def matcher(self) -> tuple[PathPredicate, PathPredicate]:
        """Return ``(is_ignored, is_ignored_dir)`` bound to one pattern snapshot.

        Used by directory walks so the pattern source is read once per walk
        rather than once per entry.
        """
        patterns = self.patterns()

        def file_check(rel_path: str) -> bool:
            rel = normalize_relative(rel_path)
            return bool(rel) and self._matches(rel, patterns)

        def dir_check(rel_dir: str) -> bool:
            rel = normalize_relative(rel_dir).rstrip("/")
            return bool(rel) and (
                self._matches(rel + "/", patterns) or self._matches(rel, patterns)
            )

        return file_check, dir_check
