"""First-run telemetry consent prompt.

The prompt is shown at most once per config file, and only when stdin is an
interactive terminal. The answer is persisted as
``preferences.telemetry_enabled`` together with
``preferences.telemetry_prompted = true`` and applied to the running
:class:`~stackeye.telemetry.client.TelemetryClient`.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional, TextIO

from stackeye.config import load_config, save_config
from stackeye.exceptions import ConfigError
from stackeye.telemetry.client import ENV_TELEMETRY, TelemetryClient, parse_env_override

logger = logging.getLogger(__name__)

CONSENT_MESSAGE = (
    "StackEye would like to collect anonymous usage data to improve the CLI.\n"
    "\n"
    "This includes: command usage frequency, error rates, and feature adoption.\n"
    "No personal data or API keys are collected.\n"
    "\n"
)

CONSENT_PROMPT = "Enable telemetry? [y/N]: "

ENABLED_REPLY = "Telemetry enabled. Thank you for helping improve StackEye!"
DISABLED_REPLY = "Telemetry disabled. No data will be collected."


def is_interactive(stream: Optional[TextIO] = None) -> bool:
    """Return True if *stream* (default ``sys.stdin``) is a terminal."""
    stream = stream if stream is not None else sys.stdin
    return hasattr(stream, "isatty") and stream.isatty()


def prompt_consent(stdin: TextIO, stdout: TextIO) -> Optional[bool]:
    """Ask the consent question once.

    Returns:
        True for ``y``/``yes``, False for any other answer, ``None`` if
        *stdin* is closed before a line is read.
    """
    stdout.write(CONSENT_MESSAGE)
    stdout.write(CONSENT_PROMPT)
    stdout.flush()

    line = stdin.readline()
    if not line:
        return None

    if line.strip().lower() in ("y", "yes"):
        print(ENABLED_REPLY, file=stdout)
        return True
    print(DISABLED_REPLY, file=stdout)
    return False


def check_and_prompt_consent(
    client: TelemetryClient,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    path: Optional[Path] = None,
    interactive: Optional[bool] = None,
) -> bool:
    """Prompt for consent if it was never asked, and return the decision.

    When ``STACKEYE_TELEMETRY`` holds a recognised value it decides alone:
    nothing is asked and nothing is persisted.

    Args:
        client: Client to enable or disable after a fresh answer.
        stdin: Input stream; ``sys.stdin`` by default.
        stdout: Stream for the prompt; ``sys.stderr`` by default so that
            stdout stays reserved for command data.
        path: Config file; :func:`~stackeye.config.config_path` by default.
        interactive: Override terminal detection.

    Returns:
        The effective telemetry decision. Unreadable config, a
        non-interactive session, or a closed stdin all yield False without
        persisting anything.
    """
    override = parse_env_override(os.environ.get(ENV_TELEMETRY))
    if override is not None:
        return override

    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stderr

    try:
        cfg = load_config(path, apply_overrides=False)
    except ConfigError as exc:
        logger.debug("Skipping consent prompt: %s", exc)
        return False

    if cfg.preferences is not None and cfg.preferences.telemetry_prompted:
        return cfg.preferences.telemetry_enabled

    if not (is_interactive(stdin) if interactive is None else interactive):
        return False

    enabled = prompt_consent(stdin, stdout)
    if enabled is None:
        return False

    try:
        mark_prompted(path, enabled=enabled)
    except (ConfigError, OSError) as exc:
        logger.debug("Could not persist telemetry consent: %s", exc)
        return enabled

    client.set_enabled(enabled)
    return enabled


def mark_prompted(path: Optional[Path] = None, enabled: Optional[bool] = None) -> None:
    """Record that the consent question has been answered.

    Args:
        path: Config file; :func:`~stackeye.config.config_path` by default.
        enabled: The answer to store as ``telemetry_enabled``. ``None``
            leaves the stored preference unchanged.

    Raises:
        ConfigError: If the config file cannot be read.
        OSError: If the config file cannot be written.
    """
    cfg = load_config(path, apply_overrides=False)
    prefs = cfg.ensure_preferences()
    if enabled is not None:
        prefs.telemetry_enabled = enabled
    prefs.telemetry_prompted = True
    save_config(cfg, path)
