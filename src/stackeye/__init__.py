"""stackeye -- command-line client for the StackEye uptime monitoring platform.

This package holds the process-lifecycle core of the CLI: the pieces that
decide how a single invocation starts, how it ends, and what the parent shell
sees when it does.

Modules:
    app: Typer application, dispatch loop, and console entry point.
    exit_codes: Stable numeric exit codes (a public contract for scripts).
    exceptions: Exception hierarchy, including the typed :class:`APIError`.
    errors: Error classification, message catalog, and "did you mean" help.
    signals: SIGINT/SIGTERM coordination and cooperative cancellation.
    telemetry: Opt-in anonymous usage events with a bounded drain.
    config: XDG-aware YAML configuration and environment overrides.
    models: Pydantic models for persisted config and telemetry events.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.9.0"
