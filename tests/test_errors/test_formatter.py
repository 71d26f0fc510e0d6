"""Tests for stackeye.errors.formatter -- the error-stream layout."""

from __future__ import annotations

import io

import pytest

from stackeye.errors.formatter import ErrorFormatter


@pytest.fixture
def stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def plain(stream: io.StringIO) -> ErrorFormatter:
    return ErrorFormatter(stream=stream, no_color=True)


class TestPlainLayout:
    def test_error_line(self, plain: ErrorFormatter, stream: io.StringIO) -> None:
        plain.print_error("Resource not found.")
        assert stream.getvalue() == "Error: Resource not found.\n"

    def test_hint_is_indented(self, plain: ErrorFormatter, stream: io.StringIO) -> None:
        plain.print_hint("Run 'stackeye login' to authenticate.")
        assert stream.getvalue() == "  Run 'stackeye login' to authenticate.\n"

    def test_empty_hint_prints_nothing(self, plain: ErrorFormatter, stream: io.StringIO) -> None:
        plain.print_hint("")
        assert stream.getvalue() == ""

    def test_request_id(self, plain: ErrorFormatter, stream: io.StringIO) -> None:
        plain.print_request_id("req_abc")
        plain.print_request_id("")
        assert stream.getvalue() == "  Request ID: req_abc (include this when contacting support)\n"

    def test_validation_errors_sorted(self, plain: ErrorFormatter, stream: io.StringIO) -> None:
        plain.print_validation_errors({"url": "is invalid", "name": "is required"})
        assert stream.getvalue() == "  name: is required\n  url: is invalid\n"

    def test_debug_prefix(self, plain: ErrorFormatter, stream: io.StringIO) -> None:
        plain.print_debug("Error type: builtins.ValueError")
        assert stream.getvalue() == "[debug] Error type: builtins.ValueError\n"


class TestColor:
    def test_no_color_env_forces_plain(self, stream: io.StringIO, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        assert ErrorFormatter(stream=stream).no_color is True

    def test_rich_output_to_non_terminal_has_no_escape_codes(self, stream: io.StringIO) -> None:
        fmt = ErrorFormatter(stream=stream)
        fmt.print_error("Access [denied].")
        fmt.print_request_id("req_1")
        text = stream.getvalue()
        assert "\x1b[" not in text
        assert "Error: Access [denied]." in text
        assert "Request ID: req_1 (include this when contacting support)" in text

    def test_defaults_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        ErrorFormatter(no_color=True).print_error("boom")
        captured = capsys.readouterr()
        assert captured.err == "Error: boom\n"
        assert captured.out == ""
