"""Numeric process exit codes for the ``stackeye`` CLI.

These values are a public contract: CI scripts and shell wrappers inspect the
exit code to decide what went wrong without parsing stderr. Never renumber an
existing constant.

Codes ``130`` and ``143`` follow the POSIX ``128 + signal`` convention and are
reserved for :class:`~stackeye.signals.SignalCoordinator`; the error
classifier never produces them.

Example::

    $ stackeye probe get 1234
    $ echo $?
    5   # EXIT_NOT_FOUND -- the probe does not exist
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_ERROR = 1
"""An unclassified error occurred (also used for user cancellation)."""

EXIT_MISUSE = 2
"""The command was invoked with invalid arguments or the request failed validation."""

EXIT_AUTH = 3
"""Authentication is required or the credentials were rejected."""

EXIT_FORBIDDEN = 4
"""The authenticated user lacks permission for the operation."""

EXIT_NOT_FOUND = 5
"""The requested resource does not exist."""

EXIT_RATE_LIMITED = 6
"""The API rejected the request because of rate limiting."""

EXIT_SERVER_ERROR = 7
"""The API reported a server-side failure."""

EXIT_NETWORK = 8
"""A network-level failure occurred (DNS, refused or reset connection)."""

EXIT_TIMEOUT = 9
"""The operation or connection timed out."""

EXIT_PLAN_LIMIT = 10
"""The organization's plan limit was exceeded."""

EXIT_SIGINT = 130
"""The process was interrupted by SIGINT (Ctrl+C)."""

EXIT_SIGTERM = 143
"""The process was terminated by SIGTERM."""


RESERVED_SIGNAL_CODES = frozenset({EXIT_SIGINT, EXIT_SIGTERM})
"""Exit codes only the signal coordinator may return."""

_NAMES = {
    EXIT_SUCCESS: "success",
    EXIT_ERROR: "error",
    EXIT_MISUSE: "misuse",
    EXIT_AUTH: "auth_required",
    EXIT_FORBIDDEN: "forbidden",
    EXIT_NOT_FOUND: "not_found",
    EXIT_RATE_LIMITED: "rate_limited",
    EXIT_SERVER_ERROR: "server_error",
    EXIT_NETWORK: "network_error",
    EXIT_TIMEOUT: "timeout",
    EXIT_PLAN_LIMIT: "plan_limit",
    EXIT_SIGINT: "sigint",
    EXIT_SIGTERM: "sigterm",
}

ALL_EXIT_CODES = frozenset(_NAMES)
"""The closed set of exit codes the CLI can return."""


def exit_code_name(code: int) -> str:
    """Return the symbolic name of *code*, or ``unknown(<code>)``."""
    return _NAMES.get(code, f"unknown({code})")
