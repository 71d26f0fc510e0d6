"""Fire-and-forget delivery of anonymous usage events.

:class:`TelemetryClient` sends one :class:`~stackeye.models.TelemetryEvent`
per invocation to the StackEye telemetry endpoint:

* **Opt-in** -- ``STACKEYE_TELEMETRY`` (``1/true/yes/on`` or
  ``0/false/no/off``) overrides ``preferences.telemetry_enabled`` in the
  config file. No value, an unrecognised value, or an unreadable config
  means disabled.
* **Non-blocking** -- :meth:`TelemetryClient.track` hands the event to a
  daemon thread and returns. At most ``max_in_flight`` sends run at once;
  further events are dropped rather than queued.
* **Bounded drain** -- :meth:`TelemetryClient.flush` waits for in-flight
  sends but never longer than its timeout. Abandoned sends keep running
  in the background and die with the process.
* **Best effort** -- transport failures and non-2xx responses are logged at
  debug level and otherwise ignored.

Events carry the CLI version, the command name without arguments, the exit
code, the duration, the OS and architecture, and the first 16 hex chars of
``sha256(organization_id)``. Never API keys, arguments, or error text.
"""

from __future__ import annotations

import hashlib
import logging
import os
import platform
import threading
import time
from typing import Callable, Optional

import httpx

from stackeye import __version__
from stackeye.config import load_config
from stackeye.exceptions import ConfigError
from stackeye.models import Config, TelemetryEvent

logger = logging.getLogger(__name__)

ENV_TELEMETRY = "STACKEYE_TELEMETRY"
"""Force telemetry on or off, overriding the persisted preference."""

DEFAULT_ENDPOINT = "https://api.stackeye.io/v1/telemetry/cli"

SEND_TIMEOUT = 5.0
"""Total timeout in seconds for one event POST."""

DEFAULT_MAX_IN_FLIGHT = 8

USER_AGENT = f"stackeye-cli/{__version__}"

_ENV_FALSE = frozenset({"0", "false", "no", "off"})
_ENV_TRUE = frozenset({"1", "true", "yes", "on"})

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
}


# --- Pure helpers ---


def parse_env_override(value: Optional[str]) -> Optional[bool]:
    """Interpret a ``STACKEYE_TELEMETRY`` value.

    Returns:
        True or False for a recognised value (case-insensitive), ``None``
        when the value is absent or unrecognised.
    """
    if not value:
        return None
    lowered = value.strip().lower()
    if lowered in _ENV_FALSE:
        return False
    if lowered in _ENV_TRUE:
        return True
    return None


def sanitize_command(command: str) -> str:
    """Reduce a command line to its leading subcommand words.

    Stops at the first token starting with ``-`` or ``/`` so flag values and
    paths never leave the machine.

    Example::

        >>> sanitize_command("probe create --name test")
        'probe create'
        >>> sanitize_command("--help")
        'unknown'
    """
    words: list[str] = []
    for token in command.split():
        if token.startswith(("-", "/")):
            break
        words.append(token)
    return " ".join(words) if words else "unknown"


def hash_org_id(org_id: str) -> str:
    """Return the first 16 hex chars of ``sha256(org_id)``."""
    return hashlib.sha256(org_id.encode("utf-8")).hexdigest()[:16]


def platform_os() -> str:
    return platform.system().lower() or "unknown"


def platform_arch() -> str:
    machine = platform.machine().lower()
    return _ARCH_ALIASES.get(machine, machine or "unknown")


# --- Client ---


class TelemetryClient:
    """Sends usage events without ever blocking or failing the caller.

    Args:
        enabled: Initial enabled flag. :meth:`from_environment` resolves it
            from the environment and config instead.
        endpoint: URL events are POSTed to.
        config_loader: Returns the current :class:`~stackeye.models.Config`;
            used for the preference and the organization hash.
        transport: Optional :class:`httpx.BaseTransport` (tests pass an
            :class:`httpx.MockTransport`).
        max_in_flight: Maximum number of concurrent sends.
        timeout: Total time one send may take, in seconds. A stalled read
            is also cut off after *timeout* by httpx.

    Example::

        client = TelemetryClient.from_environment()
        client.track("probe list", 0, 0.42)
        client.flush(2.0)
    """

    def __init__(
        self,
        enabled: bool = False,
        endpoint: str = DEFAULT_ENDPOINT,
        config_loader: Callable[[], Config] = load_config,
        transport: Optional[httpx.BaseTransport] = None,
        max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
        timeout: float = SEND_TIMEOUT,
    ) -> None:
        self._config_loader = config_loader
        self._timeout = timeout

        self._enabled_lock = threading.Lock()
        self._enabled = enabled

        self._endpoint_lock = threading.Lock()
        self._endpoint = endpoint

        self._event_lock = threading.Lock()
        self._last_event: Optional[TelemetryEvent] = None

        self._pending_cond = threading.Condition()
        self._pending = 0
        self._slots = threading.BoundedSemaphore(max(1, max_in_flight))

        self._http = httpx.Client(
            transport=transport,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT, "Content-Type": "application/json"},
        )

    @classmethod
    def from_environment(
        cls,
        config_loader: Callable[[], Config] = load_config,
        **kwargs,
    ) -> TelemetryClient:
        """Build a client whose enabled flag comes from env and config."""
        client = cls(config_loader=config_loader, **kwargs)
        client.reload()
        return client

    # ------------------------------------------------------------------ #
    # Enabled flag
    # ------------------------------------------------------------------ #

    def is_enabled(self) -> bool:
        with self._enabled_lock:
            return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        with self._enabled_lock:
            self._enabled = enabled

    def reload(self) -> None:
        """Re-read ``STACKEYE_TELEMETRY`` and the persisted preference."""
        enabled = self._resolve_enabled()
        self.set_enabled(enabled)

    def _resolve_enabled(self) -> bool:
        override = parse_env_override(os.environ.get(ENV_TELEMETRY))
        if override is not None:
            return override
        try:
            cfg = self._config_loader()
        except ConfigError as exc:
            logger.debug("Telemetry disabled, config unreadable: %s", exc)
            return False
        return bool(cfg.preferences and cfg.preferences.telemetry_enabled)

    # ------------------------------------------------------------------ #
    # Endpoint and introspection
    # ------------------------------------------------------------------ #

    @property
    def endpoint(self) -> str:
        with self._endpoint_lock:
            return self._endpoint

    def set_endpoint(self, endpoint: str) -> None:
        with self._endpoint_lock:
            self._endpoint = endpoint

    @property
    def last_event(self) -> Optional[TelemetryEvent]:
        """The most recently submitted event, sent or not."""
        with self._event_lock:
            return self._last_event

    @property
    def pending(self) -> int:
        with self._pending_cond:
            return self._pending

    # ------------------------------------------------------------------ #
    # Tracking
    # ------------------------------------------------------------------ #

    def track(self, command: str, exit_code: int, duration: float) -> None:
        """Record one invocation and send it in the background.

        Args:
            command: Raw command text; only leading subcommand words are kept.
            exit_code: Final process exit code.
            duration: Wall-clock duration in seconds.
        """
        if not self.is_enabled():
            return

        event = self.build_event(command, exit_code, duration)
        with self._event_lock:
            self._last_event = event

        if not self._slots.acquire(blocking=False):
            logger.debug("Telemetry event dropped, %d sends already in flight", self.pending)
            return

        with self._pending_cond:
            self._pending += 1
        worker = threading.Thread(
            target=self._send_and_release,
            args=(event,),
            name="stackeye-telemetry",
            daemon=True,
        )
        try:
            worker.start()
        except RuntimeError as exc:
            logger.debug("Telemetry worker could not start: %s", exc)
            self._release()

    def build_event(self, command: str, exit_code: int, duration: float) -> TelemetryEvent:
        return TelemetryEvent(
            cli_version=__version__,
            command=sanitize_command(command),
            exit_code=exit_code,
            duration_ms=max(0, int(duration * 1000)),
            os=platform_os(),
            arch=platform_arch(),
            org_id_hash=self._org_id_hash(),
        )

    def _org_id_hash(self) -> Optional[str]:
        try:
            ctx = self._config_loader().get_current_context()
        except ConfigError:
            return None
        if not ctx.organization_id:
            return None
        return hash_org_id(ctx.organization_id)

    # ------------------------------------------------------------------ #
    # Draining
    # ------------------------------------------------------------------ #

    def flush(self, timeout: float) -> bool:
        """Wait up to *timeout* seconds for in-flight sends to finish.

        Returns:
            True if nothing is left in flight, False if the wait timed out.
        """
        with self._pending_cond:
            return self._pending_cond.wait_for(lambda: self._pending == 0, timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client. Call after :meth:`flush`."""
        self._http.close()

    # ------------------------------------------------------------------ #
    # Worker
    # ------------------------------------------------------------------ #

    def _send_and_release(self, event: TelemetryEvent) -> None:
        try:
            self._send(event)
        except Exception as exc:
            # Telemetry must never surface an error.
            logger.debug("Telemetry send failed: %s", exc)
        finally:
            self._release()

    def _send(self, event: TelemetryEvent) -> None:
        # httpx timeouts apply per connect/read/write; the total is checked here.
        deadline = time.monotonic() + self._timeout
        with self._http.stream("POST", self.endpoint, content=event.to_json()) as response:
            for _ in response.iter_bytes():
                if time.monotonic() > deadline:
                    raise httpx.ReadTimeout(
                        f"send exceeded {self._timeout}s total", request=response.request
                    )
        logger.debug("Telemetry endpoint answered %d", response.status_code)

    def _release(self) -> None:
        self._slots.release()
        with self._pending_cond:
            self._pending -= 1
            self._pending_cond.notify_all()
