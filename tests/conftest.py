"""Fixtures shared across the stackeye test suite.

Every test runs with STACKEYE_* variables cleared and a fresh global
OutputManager. Tests that touch config request ``isolated_config``; tests
that classify errors request ``classifier`` and read ``err_stream``.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from typer.testing import CliRunner

from stackeye.errors import ErrorClassifier, ErrorFormatter, MessageCatalog
from stackeye.output import reset_output


@pytest.fixture(autouse=True)
def _fresh_output() -> None:
    # Consoles bind sys.stdout/sys.stderr when built; capsys swaps those per test.
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear STACKEYE_* variables and colour overrides that change behaviour."""
    for var in [
        "STACKEYE_CONFIG",
        "STACKEYE_CONTEXT",
        "STACKEYE_DEBUG",
        "STACKEYE_TELEMETRY",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect the config file under *tmp_path* and return its location.

    The file itself is not created.
    """
    xdg_home = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg_home))
    monkeypatch.setattr("stackeye.config._is_xdg_platform", lambda: True)
    monkeypatch.chdir(tmp_path)
    return xdg_home / "stackeye" / "config.yaml"


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------


@pytest.fixture
def err_stream() -> io.StringIO:
    """In-memory error stream for formatter assertions."""
    return io.StringIO()


@pytest.fixture
def classifier(err_stream: io.StringIO) -> ErrorClassifier:
    """An ErrorClassifier writing plain text to :func:`err_stream`, debug off."""
    formatter = ErrorFormatter(stream=err_stream, no_color=True)
    return ErrorClassifier(formatter=formatter, catalog=MessageCatalog.default(), debug=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()
