"""structlog over stdlib logging.

Every module logs through ``structlog.get_logger()`` with snake_case event
names and key-value context. ``configure_logging`` routes those records to
one handler per configured output (stderr, stdout or a file), each with its
own level and renderer. HTTP requests carry a correlation id that is added
to every record logged while the request is handled.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from peekmd.config.models import LoggingConfig, LogOutputConfig

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

_log_file: Path | None = None

# Library loggers that would drown the daemon's own events
_QUIET_LOGGERS = ("watchfiles.main", "uvicorn.access")

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_request_id() -> str | None:
    return _request_id.get()


def set_request_id(request_id: str | None = None) -> str:
    """Bind ``request_id`` (or a fresh 12-char id) to the current context."""
    rid = request_id or uuid4().hex[:12]
    _request_id.set(rid)
    return rid


def clear_request_id() -> None:
    _request_id.set(None)


def get_log_file_path() -> Path | None:
    """First file output of the active configuration."""
    return _log_file


def _with_request_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    rid = get_request_id()
    if rid:
        event_dict["request_id"] = rid
    return event_dict


def _level(name: str | None, default: int) -> int:
    if not name:
        return default
    return _LEVELS.get(name.upper(), default)


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> Path | None:
    """Install handlers for every output of ``config``.

    Without ``config`` a single stderr output at ``level`` is used. Safe to
    call again; previous handlers are replaced.

    Returns:
        The log file path, if any output writes to a file.
    """
    from peekmd.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,  # type: ignore[arg-type]
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level, logging.INFO)

    chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _with_request_id,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[*chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration (e.g. ``up -v``) must reach loggers created earlier
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(root_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    global _log_file
    _log_file = None
    for output in config.outputs:
        handler = _open_handler(output.destination)
        handler.setLevel(_level(output.level, root_level))
        handler.setFormatter(_formatter(output, chain))
        root.addHandler(handler)
        if _log_file is None and output.destination not in ("stderr", "stdout"):
            _log_file = Path(output.destination)
    return _log_file


def _open_handler(destination: str) -> logging.Handler:
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def _formatter(
    output: LogOutputConfig,
    chain: list[structlog.types.Processor],
) -> structlog.stdlib.ProcessorFormatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        renderer = structlog.dev.ConsoleRenderer(
            colors=output.destination in ("stderr", "stdout") and stream.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=chain)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger bound to ``logger=name`` when a name is given."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
