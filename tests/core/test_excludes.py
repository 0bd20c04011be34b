"""Tests for built-in ignore patterns."""

from __future__ import annotations

import pytest

from peekmd.core.excludes import DEFAULT_IGNORE_PATTERNS, is_default_pattern


class TestDefaultIgnorePatterns:
    """Tests for DEFAULT_IGNORE_PATTERNS constant."""

    def test_is_tuple(self) -> None:
        """Defaults are immutable."""
        assert isinstance(DEFAULT_IGNORE_PATTERNS, tuple)

    def test_no_duplicates(self) -> None:
        assert len(DEFAULT_IGNORE_PATTERNS) == len(set(DEFAULT_IGNORE_PATTERNS))

    @pytest.mark.parametrize(
        "pattern",
        ["**/node_modules/**", "**/.git/**", "**/__pycache__/**", "**/.venv/**", "**/dist/**"],
    )
    def test_contains_common_dependency_and_build_dirs(self, pattern: str) -> None:
        assert pattern in DEFAULT_IGNORE_PATTERNS


class TestIsDefaultPattern:
    def test_default(self) -> None:
        assert is_default_pattern("**/node_modules/**")

    def test_user_pattern(self) -> None:
        assert not is_default_pattern("**/drafts/**")

    def test_exact_match_only(self) -> None:
        assert not is_default_pattern("node_modules")
