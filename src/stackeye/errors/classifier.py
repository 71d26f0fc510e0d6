"""Mapping of arbitrary errors to exit codes and user-facing messages.

:class:`ErrorClassifier` is the single place where an exception becomes an
``Error:`` banner and a process exit code. Classification is split into a
pure half (:meth:`ErrorClassifier.classify`, returning a
:class:`ClassifiedError`) and a rendering half (:meth:`ErrorClassifier.render`);
:meth:`ErrorClassifier.handle` does both.

Checks run in a fixed order and the first match wins:

1. A typed :class:`~stackeye.exceptions.APIError` anywhere in the chain.
2. An HTTP status literal in the top-level message (``401 Unauthorized``,
   ``status: 403``, ...).
3. A timeout (:class:`httpx.TimeoutException`, :class:`TimeoutError`).
4. A network fault: DNS, refused, reset, or another transport error.
5. A network failure phrase in any layer whose text does not look like an
   HTTP error.
6. Context origin: a token deadline, or a cancellation (printed silently).
7. Fallback: the raw error text.

Typed errors come first because text heuristics are ambiguous; the digits
``401`` inside a transport message must not beat a structured answer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from stackeye.config import debug_enabled
from stackeye.errors.adapter import (
    ContextReason,
    ErrorKind,
    ErrorVariant,
    NetworkFault,
    adapt,
    contains_http_error,
    contains_network_error,
    detect_http_status_code,
)
from stackeye.errors.catalog import MessageCatalog
from stackeye.errors.formatter import ErrorFormatter
from stackeye.exceptions import APIError, StackEyeError
from stackeye.exit_codes import (
    EXIT_AUTH,
    EXIT_ERROR,
    EXIT_FORBIDDEN,
    EXIT_MISUSE,
    EXIT_NETWORK,
    EXIT_NOT_FOUND,
    EXIT_PLAN_LIMIT,
    EXIT_RATE_LIMITED,
    EXIT_SERVER_ERROR,
    EXIT_SUCCESS,
    EXIT_TIMEOUT,
    RESERVED_SIGNAL_CODES,
    exit_code_name,
)

TIMEOUT_HINT = "The server took too long to respond. Try again later."


@dataclass(frozen=True)
class ClassifiedError:
    """The outcome of classifying one error.

    Attributes:
        exit_code: Process exit code.
        message: Summary shown after ``Error:``.
        hints: Indented follow-up lines.
        request_id: Server request id, shown at most once.
        field_errors: ``(field, message)`` pairs sorted by field.
        branch: Name of the classification branch taken, for debug output.
        silent: When True nothing is rendered.
    """

    exit_code: int
    message: str = ""
    hints: tuple[str, ...] = ()
    request_id: str = ""
    field_errors: tuple[tuple[str, str], ...] = ()
    branch: str = ""
    silent: bool = False


class ErrorClassifier:
    """Classifies errors and renders them through an :class:`ErrorFormatter`.

    Args:
        formatter: Output destination; a stderr formatter by default.
        catalog: Hint and API-message tables; the stock catalog by default.
        debug: Force debug output on or off. ``None`` defers to
            ``STACKEYE_DEBUG`` at the time :meth:`handle` runs.
    """

    def __init__(
        self,
        formatter: Optional[ErrorFormatter] = None,
        catalog: Optional[MessageCatalog] = None,
        debug: Optional[bool] = None,
    ) -> None:
        self._formatter = formatter or ErrorFormatter()
        self._catalog = catalog or MessageCatalog.default()
        self._debug = debug

    @property
    def formatter(self) -> ErrorFormatter:
        return self._formatter

    @property
    def catalog(self) -> MessageCatalog:
        return self._catalog

    @property
    def debug(self) -> bool:
        return debug_enabled() if self._debug is None else self._debug

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def handle(self, err: Optional[BaseException]) -> int:
        """Classify *err*, print it, and return the exit code.

        ``None`` means success: nothing is printed and ``0`` is returned.
        Debug lines never change the returned code.
        """
        if err is None:
            return EXIT_SUCCESS
        result = self.classify(err)
        if self.debug:
            self._print_debug(err, result)
        self.render(result)
        return result.exit_code

    def classify(self, err: Optional[BaseException]) -> ClassifiedError:
        """Return the :class:`ClassifiedError` for *err* without printing."""
        if err is None:
            return ClassifiedError(EXIT_SUCCESS, branch="none", silent=True)

        variant = adapt(err)
        if variant.kind is ErrorKind.API and variant.api_error is not None:
            return self._classify_api(variant.api_error)

        status = detect_http_status_code(variant.message)
        if status:
            result = self._classify_http_status(status)
            if result is not None:
                return result

        if variant.kind is ErrorKind.TIMEOUT:
            return ClassifiedError(
                EXIT_TIMEOUT,
                "Connection timed out.",
                hints=(TIMEOUT_HINT,),
                branch="timeout",
            )

        if variant.kind is ErrorKind.NETWORK:
            return self._classify_network(variant)

        if any(contains_network_error(m) and not contains_http_error(m) for m in variant.messages):
            return self._network_error("network.pattern")

        if variant.kind is ErrorKind.CONTEXT:
            if variant.reason is ContextReason.DEADLINE:
                return ClassifiedError(
                    EXIT_TIMEOUT,
                    "Operation timed out.",
                    hints=self._hints("timeout"),
                    branch="context.deadline",
                )
            return ClassifiedError(EXIT_ERROR, branch="context.cancelled", silent=True)

        return self._classify_fallback(variant)

    def render(self, result: ClassifiedError) -> None:
        """Print *result*. Silent results print nothing."""
        if result.silent:
            return
        fmt = self._formatter
        fmt.print_error(result.message)
        if result.field_errors:
            fmt.print_validation_errors(dict(result.field_errors))
        fmt.print_request_id(result.request_id)
        for hint in result.hints:
            fmt.print_hint(hint)

    # ------------------------------------------------------------------ #
    # Branches
    # ------------------------------------------------------------------ #

    def _classify_api(self, api: APIError) -> ClassifiedError:
        catalog = self._catalog

        if api.is_unauthorized():
            return ClassifiedError(
                EXIT_AUTH,
                catalog.user_message(api.code, "Authentication required."),
                hints=self._hints("auth_required"),
                branch="api.unauthorized",
            )

        # Plan limits often arrive as 403, so they must be checked first.
        if api.is_plan_limit_exceeded():
            return ClassifiedError(
                EXIT_PLAN_LIMIT,
                api.message or "Plan limit exceeded.",
                hints=self._hints("plan_limit"),
                branch="api.plan_limit",
            )

        if api.is_forbidden():
            if api.message:
                msg = f"Permission denied: {api.message}"
            else:
                msg = catalog.user_message(api.code, "Permission denied.")
            return ClassifiedError(
                EXIT_FORBIDDEN, msg, hints=self._hints("forbidden"), branch="api.forbidden"
            )

        if api.is_not_found():
            return ClassifiedError(
                EXIT_NOT_FOUND,
                api.message or catalog.user_message(api.code, "Resource not found."),
                branch="api.not_found",
            )

        if api.is_rate_limited():
            return ClassifiedError(
                EXIT_RATE_LIMITED,
                catalog.user_message(api.code, "Rate limit exceeded."),
                hints=self._hints("rate_limited"),
                branch="api.rate_limited",
            )

        if api.is_validation_error():
            fields = api.validation_errors()
            if fields:
                return ClassifiedError(
                    EXIT_MISUSE,
                    "Invalid request.",
                    field_errors=tuple(sorted(fields.items())),
                    branch="api.validation",
                )
            hints = (api.message,) if api.message else self._hints("validation")
            return ClassifiedError(
                EXIT_MISUSE, "Invalid request.", hints=hints, branch="api.validation"
            )

        if api.is_server_error():
            return ClassifiedError(
                EXIT_SERVER_ERROR,
                catalog.user_message(api.code, "Server error occurred."),
                hints=self._hints("server_error"),
                request_id=api.request_id,
                branch="api.server_error",
            )

        return ClassifiedError(
            EXIT_ERROR,
            catalog.user_message(api.code, api.message),
            request_id=api.request_id,
            branch="api.unknown",
        )

    def _classify_http_status(self, status: int) -> Optional[ClassifiedError]:
        branch = f"http_status.{status}"
        if status == 401:
            return ClassifiedError(
                EXIT_AUTH, "Authentication failed.", hints=self._hints("auth_required"), branch=branch
            )
        if status == 403:
            return ClassifiedError(
                EXIT_FORBIDDEN, "Access denied.", hints=self._hints("permission_denied"), branch=branch
            )
        if status == 404:
            return ClassifiedError(EXIT_NOT_FOUND, "Resource not found.", branch=branch)
        if status >= 500:
            return ClassifiedError(
                EXIT_SERVER_ERROR,
                "Server error occurred.",
                hints=self._hints("server_error"),
                branch=branch,
            )
        return None

    def _classify_network(self, variant: ErrorVariant) -> ClassifiedError:
        if variant.fault is NetworkFault.DNS:
            msg = f"DNS lookup failed: {variant.host}" if variant.host else "DNS lookup failed."
            return ClassifiedError(
                EXIT_NETWORK, msg, hints=self._hints("dns_failure"), branch="network.dns"
            )
        if variant.fault is NetworkFault.REFUSED:
            return ClassifiedError(
                EXIT_NETWORK,
                "Connection refused.",
                hints=self._hints("connection_refused"),
                branch="network.refused",
            )
        if variant.fault is NetworkFault.RESET:
            return ClassifiedError(
                EXIT_NETWORK,
                "Connection reset by server.",
                hints=self._hints("connection_reset"),
                branch="network.reset",
            )
        return self._network_error("network.generic")

    def _network_error(self, branch: str) -> ClassifiedError:
        return ClassifiedError(
            EXIT_NETWORK,
            "Network error occurred.",
            hints=self._hints("network_error"),
            branch=branch,
        )

    def _classify_fallback(self, variant: ErrorVariant) -> ClassifiedError:
        err = variant.error
        if isinstance(err, StackEyeError):
            code = err.exit_code
            if code in RESERVED_SIGNAL_CODES or code == EXIT_SUCCESS:
                code = EXIT_ERROR
            hints = (err.hint,) if err.hint else ()
            return ClassifiedError(code, variant.message, hints=hints, branch="fallback.stackeye")
        return ClassifiedError(EXIT_ERROR, variant.message, branch="fallback")

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _hints(self, topic: str) -> tuple[str, ...]:
        hint = self._catalog.hint(topic)
        return (hint,) if hint else ()

    def _print_debug(self, err: BaseException, result: ClassifiedError) -> None:
        fmt = self._formatter
        fmt.print_debug(f"Error type: {type(err).__module__}.{type(err).__qualname__}")
        fmt.print_debug(f"Error message: {err}")
        if isinstance(err, APIError):
            fmt.print_debug(f"Detected APIError: status={err.status_code} code={err.code}")
        fmt.print_debug(f"Classification: {result.branch} -> {exit_code_name(result.exit_code)}")
