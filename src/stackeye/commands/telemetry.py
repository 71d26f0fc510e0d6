"""Telemetry commands -- show and change the anonymous usage opt-in.

Provides the ``stackeye telemetry`` sub-command group. ``enable`` and
``disable`` persist ``preferences.telemetry_enabled`` (and mark the consent
prompt as answered) and update the running
:class:`~stackeye.telemetry.TelemetryClient` held in ``ctx.obj``.
"""

from __future__ import annotations

import os

import typer

from stackeye.output import format_response, success, warning
from stackeye.telemetry.client import ENV_TELEMETRY, TelemetryClient, parse_env_override
from stackeye.telemetry.consent import mark_prompted


telemetry_app = typer.Typer(no_args_is_help=True)


def _client(ctx: typer.Context) -> TelemetryClient:
    obj = ctx.ensure_object(dict)
    client = obj.get("telemetry")
    if client is None:
        client = TelemetryClient.from_environment()
        obj["telemetry"] = client
    return client


@telemetry_app.callback()
def telemetry_callback(ctx: typer.Context) -> None:
    """Manage anonymous usage telemetry."""
    obj = ctx.ensure_object(dict)
    if ctx.invoked_subcommand:
        obj["command"] = f"telemetry {ctx.invoked_subcommand}"


@telemetry_app.command("status")
def telemetry_status(ctx: typer.Context) -> None:
    """Show whether telemetry is enabled and where the setting comes from.

    Example::

        stackeye telemetry status
        stackeye -o json telemetry status
    """
    client = _client(ctx)
    source = "config"
    if parse_env_override(os.environ.get(ENV_TELEMETRY)) is not None:
        source = f"env ({ENV_TELEMETRY})"
    format_response({
        "enabled": client.is_enabled(),
        "source": source,
        "endpoint": client.endpoint,
    })


def _persist(ctx: typer.Context, enabled: bool) -> None:
    mark_prompted(enabled=enabled)

    _client(ctx).reload()

    override = parse_env_override(os.environ.get(ENV_TELEMETRY))
    if override is not None and override != enabled:
        state = "enables" if override else "disables"
        warning(f"{ENV_TELEMETRY} is set and {state} telemetry for this environment.")


@telemetry_app.command("enable")
def telemetry_enable(ctx: typer.Context) -> None:
    """Opt in to anonymous usage telemetry."""
    _persist(ctx, True)
    success("Telemetry enabled. Thank you for helping improve StackEye!")


@telemetry_app.command("disable")
def telemetry_disable(ctx: typer.Context) -> None:
    """Opt out of anonymous usage telemetry."""
    _persist(ctx, False)
    success("Telemetry disabled. No data will be collected.")
