"""Typer application, dispatch loop, and CLI entry point for stackeye.

:func:`run` owns one invocation from start to finish:

1. Install the :class:`~stackeye.signals.SignalCoordinator` (fatal on failure).
2. Register the telemetry drain as a cleanup.
3. Invoke the Typer app with ``standalone_mode=False`` so that errors come
   back here instead of being printed by Click.
4. Turn any error into an exit code with
   :class:`~stackeye.errors.ErrorClassifier`. Click usage errors keep
   Click's own message and exit ``2``.
5. Let a recorded signal override the code (``130``/``143``).
6. Record one telemetry event, run the cleanups, and release the signal
   handlers.

:func:`main` is the console-script entry point declared in ``pyproject.toml``.

See Also:
    :mod:`stackeye.config`: Configuration and environment overrides.
    :mod:`stackeye.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Any, Optional, Sequence

import click
import typer
from rich.console import Console
from rich.logging import RichHandler

from stackeye import __version__
from stackeye.commands.telemetry import telemetry_app
from stackeye.config import debug_enabled
from stackeye.errors import ErrorClassifier, ErrorFormatter
from stackeye.errors.suggestions import VALID_OUTPUT_FORMATS, validate_choice
from stackeye.exceptions import OperationCancelled, StackEyeError
from stackeye.exit_codes import EXIT_ERROR, EXIT_SUCCESS
from stackeye.output import OutputManager, format_from_flag, set_output
from stackeye.signals import install
from stackeye.telemetry import TelemetryClient, check_and_prompt_consent

logger = logging.getLogger(__name__)

FLUSH_TIMEOUT = 2.0
"""Seconds the process waits for telemetry sends before exiting."""

PROG_NAME = "stackeye"


app = typer.Typer(
    name=PROG_NAME,
    help="Command-line client for the StackEye uptime monitoring platform.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(telemetry_app, name="telemetry", help="Manage anonymous usage telemetry.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"{PROG_NAME} {__version__}")
        raise typer.Exit()


def _configure_logging(debug: bool) -> None:
    """Route ``stackeye.*`` log records to stderr through Rich when debugging."""
    root = logging.getLogger("stackeye")
    if not debug:
        return
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output format: table, json, yaml, wide."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Print diagnostic detail to stderr."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Validates ``--output``, installs the global
    :class:`~stackeye.output.OutputManager`, enables debug logging, records
    the flags in ``ctx.obj`` for :func:`run`, and shows the one-time
    telemetry consent prompt on interactive terminals.

    Raises:
        InvalidUsageError: If ``--output`` is not a known format. The error
            carries a "did you mean" hint when one is close.
    """
    output_format = validate_choice("--output", output, VALID_OUTPUT_FORMATS) if output else "table"
    debug = debug or debug_enabled()

    set_output(OutputManager(
        format=format_from_flag(output_format),
        no_color=no_color,
        quiet=quiet,
    ))
    _configure_logging(debug)

    obj = ctx.ensure_object(dict)
    obj["no_color"] = no_color
    obj["debug"] = debug
    obj["output"] = output_format
    if ctx.invoked_subcommand:
        obj["command"] = ctx.invoked_subcommand

    telemetry = obj.get("telemetry")
    if telemetry is not None and ctx.invoked_subcommand != "telemetry":
        check_and_prompt_consent(telemetry)


@app.command("version")
def version_command() -> None:
    """Print the CLI version."""
    typer.echo(f"{PROG_NAME} {__version__}")


# ------------------------------------------------------------------ #
# Dispatch loop
# ------------------------------------------------------------------ #


def _invoke(args: list[str], obj: dict[str, Any]) -> tuple[int, Optional[BaseException]]:
    """Run the Click command tree once.

    Returns:
        ``(exit_code, error)``. When *error* is set the exit code is a
        placeholder and the caller must classify the error.
    """
    command = typer.main.get_command(app)
    try:
        rv = command.main(
            args=args,
            prog_name=PROG_NAME,
            standalone_mode=False,
            obj=obj,
        )
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code, None
    except click.exceptions.Abort:
        # Click turns KeyboardInterrupt and EOF on a prompt into Abort.
        return EXIT_ERROR, OperationCancelled()
    except Exception as exc:
        return EXIT_ERROR, exc
    return (rv if isinstance(rv, int) else EXIT_SUCCESS), None


def _make_classifier(obj: dict[str, Any]) -> ErrorClassifier:
    formatter = ErrorFormatter(no_color=bool(obj.get("no_color")))
    return ErrorClassifier(formatter=formatter, debug=True if obj.get("debug") else None)


def run(
    argv: Optional[Sequence[str]] = None,
    telemetry: Optional[TelemetryClient] = None,
    classifier: Optional[ErrorClassifier] = None,
) -> int:
    """Execute one CLI invocation and return its exit code.

    Args:
        argv: Arguments without the program name; ``sys.argv[1:]`` by default.
        telemetry: Telemetry client to use. A client built from the
            environment is created (and closed) when omitted.
        classifier: Error classifier to use. Built from the parsed
            ``--no-color`` / ``--debug`` flags when omitted.

    Returns:
        The final process exit code.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    started = time.monotonic()

    try:
        token, coordinator = install()
    except StackEyeError as exc:
        return (classifier or ErrorClassifier()).handle(exc)

    try:
        owns_telemetry = telemetry is None
        if telemetry is None:
            telemetry = TelemetryClient.from_environment()
        if owns_telemetry:
            coordinator.on_cleanup(telemetry.close)
        client = telemetry
        coordinator.on_cleanup(lambda: client.flush(FLUSH_TIMEOUT))

        obj: dict[str, Any] = {
            "token": token,
            "coordinator": coordinator,
            "telemetry": client,
        }
        code, err = _invoke(args, obj)
        if err is not None:
            code = (classifier or _make_classifier(obj)).handle(err)

        final = coordinator.resolve_exit_code(code)
        if final != code:
            logger.debug("Exit code %d replaced by %d after %s", code, final, coordinator.signal)

        command_text = obj.get("command") or " ".join(args)
        client.track(command_text, final, time.monotonic() - started)
        coordinator.run_cleanups()
        return final
    finally:
        coordinator.cancel()


def main() -> None:
    """CLI entry point invoked by the ``stackeye`` console script.

    Raises:
        SystemExit: Always, with the code returned by :func:`run`.
    """
    sys.exit(run(sys.argv[1:]))
