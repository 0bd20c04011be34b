"""Settings resolution with pydantic-settings.

Layers, lowest to highest:

    defaults  <  ~/.config/peekmd/config.yaml  <  PEEKMD__SECTION__KEY env vars  <  kwargs

Nested sections merge key by key, so an env var overriding
``server.port`` keeps a ``server.host`` set in YAML.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import (
    BaseSettings,
    InitSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from peekmd.config.models import (
    LoggingConfig,
    PeekConfig,
    SearchConfig,
    ServerConfig,
    StoreConfig,
    TimeoutsConfig,
    WatchConfig,
)
from peekmd.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/peekmd/config.yaml").expanduser()


def _read_yaml(path: Path) -> dict[str, Any]:
    """Parse the YAML layer. A missing or empty file is an empty layer.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _settings_for(yaml_layer: dict[str, Any]) -> type[BaseSettings]:
    class PeekSettings(BaseSettings):
        """Env vars: PEEKMD__SERVER__PORT, PEEKMD__WATCH__STABILITY_SEC, ..."""

        model_config = SettingsConfigDict(
            env_prefix="PEEKMD__",
            env_nested_delimiter="__",
            case_sensitive=False,
            extra="ignore",
        )

        logging: LoggingConfig = LoggingConfig()
        server: ServerConfig = ServerConfig()
        watch: WatchConfig = WatchConfig()
        store: StoreConfig = StoreConfig()
        search: SearchConfig = SearchConfig()
        timeouts: TimeoutsConfig = TimeoutsConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # First source wins
            yaml_source = InitSettingsSource(settings_cls, init_kwargs=yaml_layer)
            return (init_settings, env_settings, yaml_source)

    return PeekSettings


def _invalid(e: ValidationError) -> ConfigError:
    first = e.errors()[0]
    where = ".".join(str(part) for part in first["loc"])
    return ConfigError.invalid_value(where, first.get("input"), first["msg"])


def load_config(config_path: Path | None = None, **overrides: Any) -> PeekConfig:
    """Resolve settings from every layer.

    Args:
        config_path: YAML layer to read instead of GLOBAL_CONFIG_PATH.
        **overrides: Highest-precedence values, keyed by section
            (e.g. ``server={"port": 4001}``).

    Raises:
        ConfigError: Unparsable YAML or a value that fails validation.
    """
    settings_cls = _settings_for(_read_yaml(config_path or GLOBAL_CONFIG_PATH))
    try:
        settings = settings_cls(**overrides)
    except ValidationError as e:
        raise _invalid(e) from e
    return PeekConfig.model_validate(settings.model_dump())
