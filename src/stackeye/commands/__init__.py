"""Built-in CLI sub-commands for stackeye.

* :mod:`~stackeye.commands.telemetry` -- inspect and change the telemetry
  opt-in.

Each module exports a :class:`typer.Typer` sub-application that
:mod:`stackeye.app` mounts on the root command.
"""
