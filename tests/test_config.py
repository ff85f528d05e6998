"""Tests for daex_core.config -- XDG paths, config file loading, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from daex_core.config import (
    _atomic_write,
    default_config_path,
    get_config_dir,
    load_client_config,
    save_client_config,
)
from daex_core.exceptions import ConfigurationError
from daex_core.models import ClientConfiguration, ConnectionSpec, HttpLogLevel, TrustPolicy


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write *data* as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


class TestConfigPaths:
    def test_xdg_config_home(self, isolated_config: Path) -> None:
        assert get_config_dir() == isolated_config / "daex"
        assert default_config_path() == isolated_config / "daex" / "client.json"

    def test_xdg_default_under_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == tmp_path / ".config" / "daex"

    def test_non_xdg_platform(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("daex_core.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == tmp_path / ".daex"

    def test_config_dir_is_not_created(self, isolated_config: Path) -> None:
        get_config_dir()
        assert not (isolated_config / "daex").exists()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoadClientConfig:
    def test_defaults_without_file(self) -> None:
        config = load_client_config()
        assert config == ClientConfiguration()
        assert config.connect_timeout == 60.0
        assert config.write_timeout == 60.0
        assert config.read_timeout == 90.0
        assert config.connection_specs == (ConnectionSpec.MODERN_TLS, ConnectionSpec.CLEARTEXT)
        assert config.trust_policy is TrustPolicy.PLATFORM_DEFAULT

    def test_default_location_file(self) -> None:
        _write_json(default_config_path(), {"http_log_level": "headers"})
        assert load_client_config().http_log_level is HttpLogLevel.HEADERS

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.json"
        _write_json(path, {"read_timeout": 15})
        assert load_client_config(path).read_timeout == 15

    def test_env_var_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "env.json"
        _write_json(path, {"connect_timeout": 5})
        monkeypatch.setenv("DAEX_SDK_CONFIG", str(path))
        assert load_client_config().connect_timeout == 5

    def test_explicit_path_beats_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        env_path = tmp_path / "env.json"
        arg_path = tmp_path / "arg.json"
        _write_json(env_path, {"connect_timeout": 5})
        _write_json(arg_path, {"connect_timeout": 7})
        monkeypatch.setenv("DAEX_SDK_CONFIG", str(env_path))
        assert load_client_config(arg_path).connect_timeout == 7

    def test_overrides_beat_file(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.json"
        _write_json(path, {"read_timeout": 15, "write_timeout": 20})
        config = load_client_config(path, read_timeout=30, write_timeout=None)
        assert config.read_timeout == 30
        assert config.write_timeout == 20

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_client_config(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid client config"):
            load_client_config(path)

    def test_non_object_json(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        _write_json(path, [1, 2])
        with pytest.raises(ConfigurationError, match="expected a JSON object"):
            load_client_config(path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        path = tmp_path / "neg.json"
        _write_json(path, {"read_timeout": -1})
        with pytest.raises(ConfigurationError, match="Invalid client configuration"):
            load_client_config(path)

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            load_client_config(retries=3)

    def test_trust_all_requires_opt_in(self) -> None:
        with pytest.raises(ConfigurationError, match="allow_insecure"):
            load_client_config(trust_policy="trust_all")

    def test_trust_all_with_opt_in(self) -> None:
        config = load_client_config(trust_policy="trust_all", allow_insecure=True)
        assert config.trust_policy is TrustPolicy.TRUST_ALL


# ---------------------------------------------------------------------------
# Saving
# ---------------------------------------------------------------------------


class TestSaveClientConfig:
    def test_save_then_load(self) -> None:
        config = ClientConfiguration(read_timeout=45, http_log_level=HttpLogLevel.BASIC)
        path = save_client_config(config)
        assert path == default_config_path()
        assert json.loads(path.read_text()) == {"read_timeout": 45.0, "http_log_level": "basic"}
        assert load_client_config() == config

    def test_atomic_write_leaves_no_temp_files(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "file.json"
        _atomic_write(target, "{}\n")
        assert target.read_text() == "{}\n"
        assert [p.name for p in target.parent.iterdir()] == ["file.json"]
