"""Command output for stackeye: data on stdout, status lines on stderr.

Scripts pipe ``stackeye ... -o json`` into other tools, so stdout carries
nothing but the command's result. Status lines (``Telemetry enabled.``) and
warnings go to stderr. ``Error:`` banners are not written here at all; they
belong to :class:`~stackeye.errors.ErrorFormatter`.

The ``--output`` flag picks the rendering:

==========  ================================================================
``table``   key/value table on a colour terminal, tab-separated otherwise
``wide``    same as ``table``
``json``    indented JSON
``yaml``    block-style YAML
==========  ================================================================

Colour is off when ``NO_COLOR`` is set, ``TERM=dumb``, or ``--no-color`` is
given.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Mapping, Optional

import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table


class OutputFormat(str, Enum):
    """How :meth:`OutputManager.format_response` renders data.

    ``AUTO`` is resolved once, at construction: ``RICH`` for a colour
    terminal, ``PLAIN`` for pipes and files.
    """

    AUTO = "auto"
    JSON = "json"
    YAML = "yaml"
    PLAIN = "plain"
    RICH = "rich"


_FLAG_FORMATS = {
    "table": OutputFormat.AUTO,
    "wide": OutputFormat.AUTO,
    "json": OutputFormat.JSON,
    "yaml": OutputFormat.YAML,
}


def format_from_flag(value: str) -> OutputFormat:
    """Map an ``--output`` value to an :class:`OutputFormat`. Unknown values mean ``AUTO``."""
    return _FLAG_FORMATS.get(value.lower(), OutputFormat.AUTO)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def should_disable_color() -> bool:
    """Return True when ``NO_COLOR`` is present (even empty) or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


class OutputManager:
    """Writes command results and status lines for one invocation.

    Args:
        format: Requested format; ``AUTO`` is resolved against the terminal.
        no_color: Never emit colour or markup.
        quiet: Drop success lines. Warnings are always shown.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
    ) -> None:
        self._no_color = no_color or should_disable_color()
        self._quiet = quiet

        if format is OutputFormat.AUTO:
            format = OutputFormat.PLAIN if self._no_color or not _is_tty() else OutputFormat.RICH
        self._format = format

        self._stdout = Console(file=sys.stdout, no_color=self._no_color)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def no_color(self) -> bool:
        return self._no_color

    @property
    def quiet(self) -> bool:
        return self._quiet

    # --- stdout ---

    def format_response(self, data: Any) -> None:
        """Write *data* (usually a dict) to stdout in the active format."""
        if self._format is OutputFormat.JSON:
            self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        elif self._format is OutputFormat.YAML:
            self.print_data(yaml.safe_dump(data, sort_keys=False).rstrip("\n"))
        elif self._format is OutputFormat.RICH and isinstance(data, Mapping):
            self._stdout.print(_key_value_table(data))
        else:
            for line in _plain_lines(data):
                self.print_data(line)

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    # --- stderr ---

    def success(self, message: str) -> None:
        """Write a status line to stderr unless ``--quiet`` is active."""
        if self._quiet:
            return
        self._status(message, f"[green]{escape(message)}[/green]")

    def warning(self, message: str) -> None:
        self._status(f"Warning: {message}", f"[yellow]Warning:[/yellow] {escape(message)}")

    def _status(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup)


def _key_value_table(data: Mapping[str, Any]) -> Table:
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column(style="bold")
    table.add_column()
    for key, value in data.items():
        table.add_row(escape(str(key)), escape(str(value)))
    return table


def _plain_lines(data: Any) -> list[str]:
    if isinstance(data, Mapping):
        return [f"{key}\t{value}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, Mapping) else str(item)
            for item in data
        ]
    return [str(data)]


# --- Process-wide instance, installed by the root callback ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager so the next :func:`get_output` builds a fresh one."""
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)
