"""Rendering of classified errors to the error stream.

Layout::

    Error: Invalid request.
      name: must not be empty
      url: must start with http:// or https://
      Request ID: req_123 (include this when contacting support)

The ``Error:`` prefix is bold red and labels are dimmed when colour is on.
Colour follows the same rules as :class:`~stackeye.output.OutputManager`.
"""

from __future__ import annotations

import sys
from typing import Mapping, Optional, TextIO

from rich.console import Console
from rich.markup import escape

from stackeye.output import should_disable_color

HINT_INDENT = "  "
REQUEST_ID_NOTE = "(include this when contacting support)"


class ErrorFormatter:
    """Writes error banners, hints and context lines.

    Args:
        stream: Destination; defaults to ``sys.stderr`` looked up at write time.
        no_color: Force plain output.
    """

    def __init__(self, stream: Optional[TextIO] = None, no_color: bool = False) -> None:
        self._stream = stream
        self._no_color = no_color or should_disable_color()
        self._console = Console(
            file=stream,
            stderr=True,
            no_color=self._no_color,
            highlight=False,
            soft_wrap=True,
        )

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    @property
    def no_color(self) -> bool:
        return self._no_color

    def print_error(self, message: str) -> None:
        self._emit(f"Error: {message}", f"[bold red]Error:[/bold red] {escape(message)}")

    def print_hint(self, hint: str) -> None:
        """Print *hint* as an indented follow-up line. Empty hints are skipped."""
        if not hint:
            return
        self._emit(f"{HINT_INDENT}{hint}", f"{HINT_INDENT}{escape(hint)}")

    def print_request_id(self, request_id: str) -> None:
        if not request_id:
            return
        self._emit(
            f"{HINT_INDENT}Request ID: {request_id} {REQUEST_ID_NOTE}",
            f"{HINT_INDENT}[dim]Request ID:[/dim] {escape(request_id)} [dim]{REQUEST_ID_NOTE}[/dim]",
        )

    def print_validation_errors(self, fields: Mapping[str, str]) -> None:
        """Print one ``<field>: <message>`` line per field, sorted by field name."""
        for name in sorted(fields):
            line = f"{HINT_INDENT}{name}: {fields[name]}"
            self._emit(line, escape(line))

    def print_debug(self, message: str) -> None:
        self._emit(f"[debug] {message}", f"[dim]\\[debug] {escape(message)}[/dim]")

    def _emit(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=self.stream, flush=True)
        else:
            self._console.print(markup)
