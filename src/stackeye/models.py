"""Canonical Pydantic models shared across stackeye modules.

**Configuration models** -- serialised as YAML in the user's config directory
(see :mod:`stackeye.config`): :class:`Preferences`, :class:`Context`, and
:class:`Config`.

**Telemetry models** -- built once per invocation and sent to the telemetry
endpoint: :class:`TelemetryEvent`.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from stackeye.exceptions import ConfigError

DEFAULT_API_URL = "https://api.stackeye.io"


# --- Configuration ---


class Preferences(BaseModel):
    """User preferences stored under the ``preferences`` key."""

    model_config = ConfigDict(extra="allow")

    telemetry_enabled: bool = Field(
        default=False, description="Send anonymous usage events"
    )
    telemetry_prompted: bool = Field(
        default=False, description="Whether the consent prompt was already shown"
    )
    output_format: str = Field(
        default="table", description="Default output format: table, json, yaml, wide"
    )
    color: str = Field(default="auto", description="Color mode: auto, always, never")


class Context(BaseModel):
    """A named connection target (API URL plus credentials and organization)."""

    model_config = ConfigDict(extra="allow")

    api_url: str = DEFAULT_API_URL
    api_key: Optional[str] = None
    organization_id: Optional[str] = None
    organization_name: Optional[str] = None


class Config(BaseModel):
    """Root of ``config.yaml``.

    Loaded and saved by :func:`~stackeye.config.load_config` and
    :func:`~stackeye.config.save_config`.
    """

    model_config = ConfigDict(extra="allow")

    current_context: Optional[str] = None
    contexts: dict[str, Context] = Field(default_factory=dict)
    preferences: Optional[Preferences] = None

    def get_current_context(self) -> Context:
        """Return the active :class:`Context`.

        Raises:
            ConfigError: If no context is selected or the selected name does
                not exist.
        """
        if not self.current_context:
            raise ConfigError("No current context set", hint="Run 'stackeye login' to authenticate.")
        ctx = self.contexts.get(self.current_context)
        if ctx is None:
            raise ConfigError(f"Context '{self.current_context}' not found")
        return ctx

    def use_context(self, name: str) -> None:
        """Switch the active context to *name*.

        Raises:
            ConfigError: If *name* is not a known context.
        """
        if name not in self.contexts:
            raise ConfigError(f"Context '{name}' not found")
        self.current_context = name

    def ensure_preferences(self) -> Preferences:
        """Return the preferences block, creating a default one if missing."""
        if self.preferences is None:
            self.preferences = Preferences()
        return self.preferences


# --- Telemetry ---


class TelemetryEvent(BaseModel):
    """One anonymous usage event, created after a command finishes.

    Never carries API keys, error text, arguments, or raw organization IDs.
    """

    model_config = ConfigDict(frozen=True)

    cli_version: str
    command: str
    exit_code: int
    duration_ms: int = 0
    os: str
    arch: str
    org_id_hash: Optional[str] = Field(
        default=None, description="First 16 hex chars of sha256(organization_id)"
    )

    def to_json(self) -> str:
        """Serialise for the wire, omitting an absent ``org_id_hash``."""
        return self.model_dump_json(exclude_none=True)
