"""Document listing and substring search over linked folders.

Nothing here is cached: every call walks the folders again. Files that
disappear or cannot be decoded between listing and reading are skipped.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import structlog

from peekmd.ignore import IgnorePolicy, PathPredicate

logger = structlog.get_logger()

DOCUMENT_EXTENSION = ".md"
MAX_LINE_MATCHES = 5


@dataclass(frozen=True, slots=True)
class LineMatch:
    line: int  # 1-based
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"line": self.line, "text": self.text}


@dataclass(frozen=True, slots=True)
class SearchResult:
    root: str
    relative_path: str
    line_matches: list[LineMatch] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "folder": self.root,
            "file": self.relative_path,
            "matches": [m.to_dict() for m in self.line_matches],
        }


def _walk(
    root: str,
    is_ignored: PathPredicate,
    is_ignored_dir: PathPredicate,
    extension: str,
) -> list[str]:
    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = os.path.relpath(dirpath, root)
        prefix = "" if rel_dir == os.curdir else rel_dir.replace(os.sep, "/") + "/"
        # Prune in-place so ignored trees are never entered
        dirnames[:] = sorted(d for d in dirnames if not is_ignored_dir(prefix + d))
        for name in filenames:
            if not name.lower().endswith(extension):
                continue
            rel = prefix + name
            if not is_ignored(rel):
                found.append(rel)
    return found


def scan_documents(
    root: str,
    policy: IgnorePolicy,
    *,
    extension: str = DOCUMENT_EXTENSION,
) -> list[str]:
    """List documents under ``root`` as sorted ``/``-separated relative paths.

    Ignored directories are pruned and unreadable directories skipped. A
    missing root yields an empty list.
    """
    is_ignored, is_ignored_dir = policy.matcher()
    return sorted(_walk(root, is_ignored, is_ignored_dir, extension.lower()))


def _read_lines(path: str) -> list[str] | None:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read().split("\n")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("search_file_skipped", path=path, error=str(e))
        return None


def search(
    roots: Iterable[str],
    query: str,
    policy: IgnorePolicy,
    *,
    max_line_matches: int = MAX_LINE_MATCHES,
    extension: str = DOCUMENT_EXTENSION,
) -> list[SearchResult]:
    """Case-insensitive substring search over every document of ``roots``.

    A file matches if its relative path or any of its lines contains
    ``query``. Only the first ``max_line_matches`` line matches are kept.
    """
    needle = query.lower()
    if not needle:
        return []

    results: list[SearchResult] = []
    for root in roots:
        for rel in scan_documents(root, policy, extension=extension):
            lines = _read_lines(os.path.join(root, rel))
            if lines is None:
                continue
            matches: list[LineMatch] = []
            for number, text in enumerate(lines, start=1):
                if needle in text.lower():
                    matches.append(LineMatch(line=number, text=text.strip()))
                    if len(matches) >= max_line_matches:
                        break
            if matches or needle in rel.lower():
                results.append(SearchResult(root=root, relative_path=rel, line_matches=matches))
    return results
