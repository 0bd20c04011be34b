"""Built-in ignore patterns.

These patterns are always active. They are never written to the folder
store and cannot be removed one at a time; users only add patterns on top
of them (see ``FolderStore.reset_ignore_patterns`` to drop user patterns).

Patterns use git wildmatch syntax, so ``**`` spans any number of path
segments, including none.
"""

from __future__ import annotations

# =============================================================================
# Built-in ignore patterns, organized by ecosystem
# =============================================================================

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    # -------------------------------------------------------------------------
    # JavaScript/Node.js ecosystem
    # -------------------------------------------------------------------------
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.next/**",
    # -------------------------------------------------------------------------
    # VCS internals
    # -------------------------------------------------------------------------
    "**/.git/**",
    # -------------------------------------------------------------------------
    # Python ecosystem
    # -------------------------------------------------------------------------
    "**/__pycache__/**",
    "**/*.pyc",
    "**/.venv/**",
    "**/venv/**",
    "**/env/**",
    "**/.pytest_cache/**",
    "**/.mypy_cache/**",
    "**/.tox/**",
    # -------------------------------------------------------------------------
    # JVM and Rust build output
    # -------------------------------------------------------------------------
    "**/target/**",
    "**/*.class",
    "**/*.jar",
    "**/.gradle/**",
    # -------------------------------------------------------------------------
    # Go ecosystem
    # -------------------------------------------------------------------------
    "**/vendor/**",
    "**/pkg/**",
    # -------------------------------------------------------------------------
    # Native artifacts
    # -------------------------------------------------------------------------
    "**/*.o",
    "**/*.so",
    "**/*.dll",
    "**/*.exe",
    # -------------------------------------------------------------------------
    # IDE / editor caches
    # -------------------------------------------------------------------------
    "**/.idea/**",
    "**/.vscode/**",
    "**/.cache/**",
)


def is_default_pattern(pattern: str) -> bool:
    """Check if a pattern is one of the built-in defaults."""
    return pattern in DEFAULT_IGNORE_PATTERNS
