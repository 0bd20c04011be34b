"""Tests for config/loader.py module.

Covers:
- _read_yaml() function
- load_config() precedence: kwargs > env > yaml > defaults
- Error mapping to ConfigError
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from peekmd.config.loader import GLOBAL_CONFIG_PATH, _read_yaml, load_config
from peekmd.core.errors import ConfigError, ErrorCode


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate from PEEKMD__* variables set in the developer's shell."""
    for key in list(os.environ):
        if key.upper().startswith("PEEKMD__"):
            monkeypatch.delenv(key)


class TestReadYaml:
    """Tests for _read_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _read_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("logging:\n  level: DEBUG\n")
        assert _read_yaml(yaml_file) == {"logging": {"level": "DEBUG"}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert _read_yaml(yaml_file) == {}

    def test_invalid_yaml_raises_parse_error(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "bad.yaml"
        yaml_file.write_text("server: [unclosed\n")
        with pytest.raises(ConfigError) as exc_info:
            _read_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_non_mapping_raises_parse_error(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            _read_yaml(yaml_file)


class TestLoadConfig:
    """Tests for load_config precedence."""

    def test_global_path_under_home_config(self) -> None:
        assert GLOBAL_CONFIG_PATH.parts[-2:] == ("peekmd", "config.yaml")

    def test_defaults_when_no_sources(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "missing.yaml")
        assert config.server.port == 4000
        assert config.watch.stability_sec == 0.1

    def test_yaml_overrides_defaults(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("server:\n  port: 5000\nwatch:\n  stability_sec: 0.3\n")

        config = load_config(yaml_file)

        assert config.server.port == 5000
        assert config.watch.stability_sec == 0.3

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("server:\n  port: 5000\n")
        monkeypatch.setenv("PEEKMD__SERVER__PORT", "6000")

        config = load_config(yaml_file)

        assert config.server.port == 6000

    def test_kwargs_override_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PEEKMD__SERVER__PORT", "6000")

        config = load_config(tmp_path / "missing.yaml", server={"port": 7000})

        assert config.server.port == 7000

    def test_env_store_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        store = tmp_path / "store.json"
        monkeypatch.setenv("PEEKMD__STORE__PATH", str(store))

        config = load_config(tmp_path / "missing.yaml")

        assert config.store.resolved_path == store

    def test_invalid_value_raises_config_error(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("server:\n  port: 99999\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(yaml_file)

        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "server" in exc_info.value.details["field"]
