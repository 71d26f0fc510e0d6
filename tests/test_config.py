"""Tests for stackeye.config -- XDG paths, atomic writes, YAML load/save, env overrides."""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from stackeye.config import (
    _atomic_write,
    config_path,
    debug_enabled,
    get_config_dir,
    load_config,
    save_config,
)
from stackeye.exceptions import ConfigError
from stackeye.models import Config, Context, Preferences


def _write_yaml(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("stackeye.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "stackeye"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("stackeye.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        result = get_config_dir()
        assert result == custom / "stackeye"
        assert result.is_dir()

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("stackeye.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".stackeye"

    def test_config_path_default(self, isolated_config: Path) -> None:
        assert config_path() == isolated_config

    def test_config_path_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        target = tmp_path / "elsewhere.yaml"
        monkeypatch.setenv("STACKEYE_CONFIG", str(target))
        assert config_path() == target


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "config.yaml"
        _atomic_write(target, "hello: world\n")
        assert target.read_text(encoding="utf-8") == "hello: world\n"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "config.yaml"
        _atomic_write(target, "x: 1\n")
        assert target.is_file()

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "config.yaml"
        with patch("stackeye.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_is_private(self, tmp_path: Path) -> None:
        target = tmp_path / "config.yaml"
        _atomic_write(target, "api_key: secret\n")
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_missing_file_yields_defaults(self, isolated_config: Path) -> None:
        cfg = load_config()
        assert cfg == Config()
        assert cfg.preferences is None

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        original = Config(
            current_context="prod",
            contexts={"prod": Context(api_key="se_123", organization_id="org_1")},
            preferences=Preferences(telemetry_enabled=True, telemetry_prompted=True),
        )
        save_config(original)

        loaded = load_config()
        assert loaded.current_context == "prod"
        assert loaded.contexts["prod"].organization_id == "org_1"
        assert loaded.preferences.telemetry_enabled is True

    def test_saved_file_is_yaml_without_nulls(self, isolated_config: Path) -> None:
        save_config(Config(contexts={"dev": Context()}))
        data = yaml.safe_load(isolated_config.read_text(encoding="utf-8"))
        assert "current_context" not in data
        assert data["contexts"]["dev"] == {"api_url": "https://api.stackeye.io"}

    def test_invalid_yaml_raises_config_error(self, isolated_config: Path) -> None:
        isolated_config.parent.mkdir(parents=True, exist_ok=True)
        isolated_config.write_text("contexts: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError) as exc_info:
            load_config()
        assert "config reset" in exc_info.value.hint

    def test_non_utf8_bytes_raise_config_error(self, isolated_config: Path) -> None:
        isolated_config.parent.mkdir(parents=True, exist_ok=True)
        isolated_config.write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(ConfigError) as exc_info:
            load_config()
        assert "corrupted" in exc_info.value.hint

    def test_invalid_schema_raises_config_error(self, isolated_config: Path) -> None:
        _write_yaml(isolated_config, {"contexts": "not-a-mapping"})
        with pytest.raises(ConfigError):
            load_config()

    def test_unknown_keys_are_kept(self, isolated_config: Path) -> None:
        _write_yaml(isolated_config, {"preferences": {"pager": "less"}})
        cfg = load_config()
        assert cfg.preferences.model_extra == {"pager": "less"}


class TestContextOverride:
    def test_env_selects_context(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_yaml(isolated_config, {
            "current_context": "prod",
            "contexts": {"prod": {}, "staging": {}},
        })
        monkeypatch.setenv("STACKEYE_CONTEXT", "staging")
        assert load_config().current_context == "staging"

    def test_env_unknown_context_raises(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_yaml(isolated_config, {"contexts": {"prod": {}}})
        monkeypatch.setenv("STACKEYE_CONTEXT", "missing")
        with pytest.raises(ConfigError, match="missing"):
            load_config()

    def test_override_skipped_when_requested(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_yaml(isolated_config, {"current_context": "prod", "contexts": {"prod": {}}})
        monkeypatch.setenv("STACKEYE_CONTEXT", "missing")
        assert load_config(apply_overrides=False).current_context == "prod"


class TestDebugEnabled:
    def test_unset(self) -> None:
        assert debug_enabled() is False

    def test_any_value_enables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STACKEYE_DEBUG", "1")
        assert debug_enabled() is True
