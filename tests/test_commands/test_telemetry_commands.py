"""Tests for the ``stackeye telemetry`` command group."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from stackeye.app import app
from stackeye.models import Config
from stackeye.telemetry.client import TelemetryClient


@pytest.fixture
def client(isolated_config: Path) -> TelemetryClient:
    return TelemetryClient.from_environment()


def _invoke(cli_runner, client: TelemetryClient, *args: str):
    return cli_runner.invoke(app, ["--no-color", *args], obj={"telemetry": client})


def _saved_prefs(path: Path) -> dict:
    return yaml.safe_load(path.read_text(encoding="utf-8"))["preferences"]


class TestTelemetryStatus:
    def test_disabled_by_default(self, cli_runner, client) -> None:
        result = _invoke(cli_runner, client, "-o", "json", "telemetry", "status")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data == {
            "enabled": False,
            "source": "config",
            "endpoint": "https://api.stackeye.io/v1/telemetry/cli",
        }

    def test_env_source(self, cli_runner, client, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STACKEYE_TELEMETRY", "1")
        client.reload()
        result = _invoke(cli_runner, client, "-o", "json", "telemetry", "status")
        data = json.loads(result.stdout)
        assert data["enabled"] is True
        assert data["source"] == "env (STACKEYE_TELEMETRY)"

    def test_plain_output(self, cli_runner, client) -> None:
        result = _invoke(cli_runner, client, "telemetry", "status")
        assert result.exit_code == 0
        assert "enabled\tFalse" in result.stdout

    def test_records_command_name(self, cli_runner, client) -> None:
        obj = {"telemetry": client}
        cli_runner.invoke(app, ["telemetry", "status"], obj=obj)
        assert obj["command"] == "telemetry status"


class TestTelemetryEnableDisable:
    def test_enable_persists(self, cli_runner, client, isolated_config: Path) -> None:
        result = _invoke(cli_runner, client, "telemetry", "enable")
        assert result.exit_code == 0
        assert "Telemetry enabled." in result.output
        assert client.is_enabled() is True
        prefs = _saved_prefs(isolated_config)
        assert prefs["telemetry_enabled"] is True
        assert prefs["telemetry_prompted"] is True

    def test_disable_persists(self, cli_runner, client, isolated_config: Path) -> None:
        _invoke(cli_runner, client, "telemetry", "enable")
        result = _invoke(cli_runner, client, "telemetry", "disable")
        assert result.exit_code == 0
        assert "Telemetry disabled." in result.output
        assert client.is_enabled() is False
        assert _saved_prefs(isolated_config)["telemetry_enabled"] is False

    def test_env_override_wins_and_warns(
        self, cli_runner, client, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STACKEYE_TELEMETRY", "off")
        result = _invoke(cli_runner, client, "telemetry", "enable")
        assert result.exit_code == 0
        assert "STACKEYE_TELEMETRY is set and disables telemetry" in result.output
        assert client.is_enabled() is False
        assert _saved_prefs(isolated_config)["telemetry_enabled"] is True

    def test_context_override_not_persisted(
        self, cli_runner, client, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        isolated_config.parent.mkdir(parents=True, exist_ok=True)
        isolated_config.write_text(
            yaml.safe_dump({"current_context": "prod", "contexts": {"prod": {}, "dev": {}}}),
            encoding="utf-8",
        )
        monkeypatch.setenv("STACKEYE_CONTEXT", "dev")
        _invoke(cli_runner, client, "telemetry", "enable")
        saved = Config.model_validate(yaml.safe_load(isolated_config.read_text(encoding="utf-8")))
        assert saved.current_context == "prod"

    def test_works_without_injected_client(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["telemetry", "enable"])
        assert result.exit_code == 0
        assert _saved_prefs(isolated_config)["telemetry_enabled"] is True
