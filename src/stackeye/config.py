"""Configuration management with XDG paths, atomic writes, and env overrides.

This module handles the persisted configuration for stackeye:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD
  (``$XDG_CONFIG_HOME/stackeye/``), ``~/.stackeye/`` on macOS and Windows.
* **Config file** -- a single ``config.yaml`` deserialised into
  :class:`~stackeye.models.Config`. ``STACKEYE_CONFIG`` points at an
  alternative file.
* **Context override** -- ``STACKEYE_CONTEXT`` selects the active context
  for one invocation without touching the file.

All writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) so a crash never leaves a truncated config behind.
"""

from __future__ import annotations

import contextlib
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from stackeye.exceptions import ConfigError
from stackeye.models import Config

_APP_NAME = "stackeye"
_CONFIG_FILENAME = "config.yaml"

ENV_CONFIG = "STACKEYE_CONFIG"
"""Path to an alternative config file."""

ENV_CONTEXT = "STACKEYE_CONTEXT"
"""Context name to use instead of ``current_context``."""

ENV_DEBUG = "STACKEYE_DEBUG"
"""Any non-empty value enables debug diagnostics on stderr."""


# --- Locations ---


def _is_xdg_platform() -> bool:
    """Linux and the BSDs follow the XDG base directory layout."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def get_config_dir() -> Path:
    """Return (and create) the directory that holds ``config.yaml``.

    ``$XDG_CONFIG_HOME/stackeye`` (default ``~/.config/stackeye``) on Linux
    and BSD, ``~/.stackeye`` everywhere else.
    """
    if _is_xdg_platform():
        root = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
        directory = root / _APP_NAME
    else:
        directory = Path.home() / f".{_APP_NAME}"
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def config_path() -> Path:
    """Return the config file path, honouring ``STACKEYE_CONFIG``."""
    override = os.environ.get(ENV_CONFIG, "")
    if override:
        return Path(override).expanduser()
    return get_config_dir() / _CONFIG_FILENAME


def debug_enabled() -> bool:
    """Return True when ``STACKEYE_DEBUG`` is set to any non-empty value."""
    return bool(os.environ.get(ENV_DEBUG))


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* in a single rename.

    The temp file sits next to *path* so ``os.replace`` never crosses a
    filesystem. ``mkstemp`` creates it with mode ``0600``; contexts hold API
    keys.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


# --- Load / save ---


def load_config(path: Optional[Path] = None, apply_overrides: bool = True) -> Config:
    """Load ``config.yaml`` and apply the ``STACKEYE_CONTEXT`` override.

    Args:
        path: Explicit file to read. Defaults to :func:`config_path`.
        apply_overrides: Apply ``STACKEYE_CONTEXT``. Pass False when the
            result will be saved back, so the override is not persisted.

    Returns:
        The deserialised :class:`~stackeye.models.Config`. A missing file
        yields an empty default config.

    Raises:
        ConfigError: If the file is not valid YAML, fails validation, or the
            context named by ``STACKEYE_CONTEXT`` does not exist.
    """
    path = path or config_path()
    cfg = Config()
    if path.is_file():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
            cfg = Config.model_validate(data or {})
        except (yaml.YAMLError, ValidationError, OSError, UnicodeDecodeError) as exc:
            raise ConfigError(
                f"Invalid config at {path}: {exc}",
                hint="Config file is corrupted. Run 'stackeye config reset' to fix.",
            ) from exc

    ctx_name = os.environ.get(ENV_CONTEXT, "") if apply_overrides else ""
    if ctx_name:
        cfg.use_context(ctx_name)
    return cfg


def save_config(cfg: Config, path: Optional[Path] = None) -> None:
    """Persist *cfg* atomically as YAML.

    Args:
        cfg: The configuration to write.
        path: Destination file. Defaults to :func:`config_path`.
    """
    data = cfg.model_dump(mode="json", exclude_none=True)
    _atomic_write(path or config_path(), yaml.safe_dump(data, sort_keys=False))
