"""Settings models, one per section.

Each section can be set in ``~/.config/peekmd/config.yaml`` or through
``PEEKMD__<SECTION>__<KEY>`` environment variables; see loader.py for the
order in which those layers apply.

    PEEKMD__SERVER__PORT=4100
    PEEKMD__WATCH__STABILITY_SEC=0.2
    PEEKMD__STORE__PATH=/tmp/peekmd.json
    PEEKMD__LOGGING__LEVEL=DEBUG

Linked folders and user ignore patterns are not settings. They live in the
folder store file (store.py), which the CLI and the server both edit.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_PORT = 4000
DEFAULT_STORE_PATH = "~/.peekmd.json"


class LogOutputConfig(BaseModel):
    """Where one stream of log records goes and how it is rendered."""

    format: Literal["json", "console"] = "console"
    destination: str = Field(
        default="stderr",
        description='"stderr", "stdout" or an absolute file path (``~`` allowed).',
    )
    level: LogLevel | None = Field(default=None, description="Defaults to the root level.")

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        expanded = Path(v).expanduser()
        if not expanded.is_absolute():
            raise ValueError(f"log file must be an absolute path, got {v!r}")
        return str(expanded)


class LoggingConfig(BaseModel):
    """Env vars: PEEKMD__LOGGING__LEVEL."""

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every filtered watcher event.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ServerConfig(BaseModel):
    """HTTP/WebSocket listener.

    Env vars:
        PEEKMD__SERVER__HOST: Bind address (default: 127.0.0.1)
        PEEKMD__SERVER__PORT: Port number (default: 4000); the CLI also honors PORT
    """

    host: str = Field(
        default="127.0.0.1",
        description="Bind address. Use 0.0.0.0 for network access (exposes linked folders).",
    )
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535, description="Server port.")


class WatchConfig(BaseModel):
    """Folder watcher configuration.

    Env vars:
        PEEKMD__WATCH__STABILITY_SEC: Quiet period before a change is emitted
        PEEKMD__WATCH__POLL_INTERVAL_SEC: How often settled changes are checked
        PEEKMD__WATCH__MAX_WAIT_SEC: Upper bound on how long a busy path is held back
    """

    stability_sec: float = Field(
        default=0.1,
        description="A path must be quiet this long before its change is emitted. "
        "Coalesces editor save sequences (write, rename) into one event.",
    )
    poll_interval_sec: float = Field(
        default=0.05,
        description="Interval at which pending changes are checked for stability.",
    )
    max_wait_sec: float = Field(
        default=2.0,
        description="Emit a change even if the path keeps changing for this long.",
    )
    document_extension: str = Field(
        default=".md",
        description="Only files with this extension (case-insensitive) are reported.",
    )
    outbound_buffer: int = Field(
        default=256,
        description="Messages buffered per client before new ones are dropped for it.",
    )

    @field_validator("stability_sec", "poll_interval_sec", "max_wait_sec")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Must be positive, got {v}")
        return v

    @field_validator("document_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith("."):
            v = "." + v
        return v.lower()


class StoreConfig(BaseModel):
    """Folder store location.

    Env vars:
        PEEKMD__STORE__PATH: JSON file holding linked folders and ignore patterns
    """

    path: str = Field(default=DEFAULT_STORE_PATH, description="Folder store file.")

    @property
    def resolved_path(self) -> Path:
        return Path(self.path).expanduser()


class SearchConfig(BaseModel):
    """Search configuration."""

    max_line_matches: int = Field(
        default=5,
        description="Line matches returned per file. Further matches are not counted.",
    )
    min_query_length: int = Field(default=2, description="Shorter HTTP queries are rejected.")


class TimeoutsConfig(BaseModel):
    """Timeout configuration for daemon components."""

    server_stop_sec: float = Field(default=5.0, description="Server shutdown timeout.")
    force_exit_sec: float = Field(
        default=3.0,
        description="Force exit timeout after graceful shutdown fails.",
    )


class PeekConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
