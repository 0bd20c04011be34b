"""Core module exports."""

from peekmd.core.errors import (
    ConfigError,
    ErrorCode,
    FolderError,
    InternalError,
    PeekError,
)
from peekmd.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)
from peekmd.core.progress import status

__all__ = [
    # Errors
    "PeekError",
    "ConfigError",
    "ErrorCode",
    "FolderError",
    "InternalError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
    # Output
    "status",
]
