"""Exception hierarchy for stackeye.

All exceptions inherit from :class:`StackEyeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`stackeye.exit_codes`.
Nothing raises-and-prints: errors travel up to the dispatch loop in
:func:`stackeye.app.run`, where :class:`~stackeye.errors.ErrorClassifier`
is the single place that turns them into an ``Error:`` banner and an exit
code.

Subclass hierarchy::

    StackEyeError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 1)
    +-- SignalSetupError    (exit 1)
    +-- OperationCancelled  (exit 1, printed silently)
    +-- DeadlineExceeded    (exit 9)
    +-- APIError            (exit depends on status / code)
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from stackeye.exit_codes import EXIT_ERROR, EXIT_MISUSE, EXIT_TIMEOUT


class StackEyeError(Exception):
    """Base exception for all stackeye errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
        hint: Optional follow-up line shown indented under the error.
    """

    exit_code: int = EXIT_ERROR

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        hint: str | None = None,
    ):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code
        self.hint = hint


class InvalidUsageError(StackEyeError):
    """Raised for invalid CLI arguments or flag values."""

    exit_code = EXIT_MISUSE


class ConfigError(StackEyeError):
    """Raised for configuration problems (unreadable YAML, unknown context)."""

    exit_code = EXIT_ERROR


class SignalSetupError(StackEyeError):
    """Raised when SIGINT/SIGTERM handlers cannot be installed. Always fatal."""

    exit_code = EXIT_ERROR


class OperationCancelled(StackEyeError):
    """Raised by cooperating code when its cancellation token fired.

    The classifier treats this as a deliberate user action and prints nothing.
    """

    exit_code = EXIT_ERROR

    def __init__(self, message: str = "operation canceled") -> None:
        super().__init__(message)


class DeadlineExceeded(StackEyeError):
    """Raised when a token created with a deadline runs out of time."""

    exit_code = EXIT_TIMEOUT

    def __init__(self, message: str = "deadline exceeded") -> None:
        super().__init__(message)


# --- Typed API error ---


_PLAN_LIMIT_CODES = frozenset({
    "plan_limit_exceeded",
    "probe_limit_exceeded",
    "team_limit_exceeded",
    "channel_limit_exceeded",
    "feature_not_available",
    "upgrade_required",
})

_DEFAULT_CODES = {
    400: "validation",
    401: "unauthorized",
    402: "plan_limit_exceeded",
    403: "forbidden",
    404: "not_found",
    422: "validation",
    429: "rate_limited",
}


class APIError(StackEyeError):
    """A structured error returned by the StackEye API.

    This is the boundary type between the HTTP layer and the error
    classifier: responses are converted with :meth:`from_response` and the
    classifier only ever looks at the predicates below.

    Args:
        status_code: HTTP status code of the response.
        code: Symbolic API error code (e.g. ``unauthorized``).
        message: Human message from the API body, possibly empty.
        request_id: Server-side request identifier for support tickets.
        fields: Per-field validation messages keyed by field name.
    """

    def __init__(
        self,
        status_code: int,
        code: str = "",
        message: str = "",
        request_id: str = "",
        fields: Optional[dict[str, str]] = None,
    ) -> None:
        super().__init__(message or code or f"HTTP {status_code}")
        self.status_code = status_code
        self.code = code
        self.message = message
        self.request_id = request_id
        self.fields: dict[str, str] = dict(fields or {})

    def __repr__(self) -> str:
        return (
            f"APIError(status_code={self.status_code!r}, code={self.code!r}, "
            f"message={self.message!r}, request_id={self.request_id!r})"
        )

    # ------------------------------------------------------------------ #
    # Predicates
    # ------------------------------------------------------------------ #

    def is_unauthorized(self) -> bool:
        return self.status_code == 401 or self.code.lower() == "unauthorized"

    def is_forbidden(self) -> bool:
        return self.status_code == 403 or self.code.lower() == "forbidden"

    def is_plan_limit_exceeded(self) -> bool:
        return self.status_code == 402 or self.code.lower() in _PLAN_LIMIT_CODES

    def is_not_found(self) -> bool:
        return self.status_code == 404 or self.code.lower() == "not_found"

    def is_rate_limited(self) -> bool:
        return self.status_code == 429 or self.code.lower() == "rate_limited"

    def is_validation_error(self) -> bool:
        return self.status_code in (400, 422) or self.code.lower() == "validation"

    def is_server_error(self) -> bool:
        return self.status_code >= 500

    def validation_errors(self) -> dict[str, str]:
        """Return a copy of the per-field validation messages."""
        return dict(self.fields)

    # ------------------------------------------------------------------ #
    # Construction from an HTTP response
    # ------------------------------------------------------------------ #

    @classmethod
    def from_response(cls, response: httpx.Response) -> APIError:
        """Build an :class:`APIError` from a non-2xx :class:`httpx.Response`.

        Understands both the enveloped form
        ``{"error": {"code", "message", "fields"}, "request_id"}`` and a flat
        ``{"code", "message", "fields"}`` body. Bodies that are not JSON
        fall back to a code derived from the status.
        """
        status = response.status_code
        try:
            body: Any = response.json()
        except ValueError:
            body = None

        payload: dict[str, Any] = {}
        message = ""
        if isinstance(body, dict):
            inner = body.get("error")
            if isinstance(inner, dict):
                payload = inner
            else:
                payload = body
                # ``{"error": "text"}`` style bodies.
                if isinstance(inner, str):
                    message = inner

        code = str(payload.get("code") or _default_code(status))
        if isinstance(payload.get("message"), str):
            message = payload["message"]

        request_id = ""
        if isinstance(body, dict) and body.get("request_id"):
            request_id = str(body["request_id"])
        elif response.headers.get("X-Request-ID"):
            request_id = response.headers["X-Request-ID"]

        fields: dict[str, str] = {}
        raw_fields = payload.get("fields")
        if raw_fields is None and isinstance(payload.get("details"), dict):
            raw_fields = payload["details"].get("fields")
        if isinstance(raw_fields, dict):
            fields = {str(k): str(v) for k, v in raw_fields.items()}

        return cls(
            status_code=status,
            code=code,
            message=message,
            request_id=request_id,
            fields=fields,
        )


def _default_code(status: int) -> str:
    if status >= 500:
        return "internal_server"
    return _DEFAULT_CODES.get(status, "")


def raise_for_api_error(response: httpx.Response) -> None:
    """Raise :class:`APIError` for any non-2xx *response*."""
    if response.is_success:
        return
    raise APIError.from_response(response)
