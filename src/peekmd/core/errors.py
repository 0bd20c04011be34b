"""Error types raised by peekmd.

Codes are grouped by the thousand: 2xxx settings, 3xxx linked folders,
9xxx anything unexpected. Errors serialize with ``to_dict`` for JSON bodies.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Self


class ErrorCode(IntEnum):
    # Settings (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Linked folders (3xxx)
    FOLDER_NOT_FOUND = 3001
    FOLDER_NOT_A_DIRECTORY = 3002

    # Unexpected (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class PeekError(Exception):
    """Exception carrying a typed code and a JSON-friendly ``details`` mapping."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def _build(cls, code: ErrorCode, message: str, **details: Any) -> Self:
        return cls(code=code, message=message, details=details)

    @property
    def error_name(self) -> str:
        """Code name, e.g. ``FOLDER_NOT_FOUND``."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": int(self.code),
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{int(self.code)}] {self.error_name}: {self.message}"


class ConfigError(PeekError):
    """Settings that cannot be parsed or fail validation."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> Self:
        return cls._build(
            ErrorCode.CONFIG_PARSE_ERROR,
            f"Failed to parse config at {path}: {reason}",
            path=path,
            reason=reason,
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> Self:
        return cls._build(
            ErrorCode.CONFIG_INVALID_VALUE,
            f"Invalid value for '{field}': {reason}",
            field=field,
            value=str(value),
            reason=reason,
        )


class FolderError(PeekError):
    """Rejected link requests. Reported to the caller, never retried."""

    @classmethod
    def not_found(cls, path: str) -> Self:
        return cls._build(ErrorCode.FOLDER_NOT_FOUND, "path does not exist", path=path)

    @classmethod
    def not_a_directory(cls, path: str) -> Self:
        return cls._build(ErrorCode.FOLDER_NOT_A_DIRECTORY, "not a directory", path=path)

    @property
    def path(self) -> str:
        return str(self.details.get("path", ""))


class InternalError(PeekError):
    """Failures with no better classification; served as HTTP 500."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> Self:
        return cls._build(ErrorCode.INTERNAL_ERROR, f"Internal error: {reason}", **details)
