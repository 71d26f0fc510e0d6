"""Boundary adaptation of arbitrary exceptions into tagged error variants.

The classifier never probes exception types itself. Instead :func:`adapt`
walks the exception's cause chain once and produces an :class:`ErrorVariant`
tagged with one :class:`ErrorKind`:

* ``API`` -- a :class:`~stackeye.exceptions.APIError` somewhere in the chain.
* ``TIMEOUT`` -- an :class:`httpx.TimeoutException` or :class:`TimeoutError`.
* ``NETWORK`` -- a transport fault, refined by :class:`NetworkFault`.
* ``CONTEXT`` -- cooperative cancellation or a token deadline.
* ``OPAQUE`` -- anything else.

The chain is followed through ``__cause__`` (explicit ``raise ... from``)
and otherwise ``__context__`` unless suppressed, and is capped at
:data:`MAX_CAUSE_DEPTH` layers so malformed or cyclic chains terminate.

The text-pattern helpers at the bottom (:func:`detect_http_status_code`,
:func:`contains_http_error`, :func:`contains_network_error`) back the
message-based fallbacks used for errors that never got a typed shape.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import errno
import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

import httpx

from stackeye.exceptions import APIError, DeadlineExceeded, OperationCancelled

MAX_CAUSE_DEPTH = 8
"""Maximum number of chain layers inspected, including the top-level error."""


class ErrorKind(str, Enum):
    API = "api"
    TIMEOUT = "timeout"
    NETWORK = "network"
    CONTEXT = "context"
    OPAQUE = "opaque"


class NetworkFault(str, Enum):
    DNS = "dns"
    REFUSED = "refused"
    RESET = "reset"
    GENERIC = "generic"


class ContextReason(str, Enum):
    DEADLINE = "deadline"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ErrorVariant:
    """An exception reduced to the facts the classifier dispatches on.

    Attributes:
        kind: The variant tag.
        error: The original top-level exception.
        message: Display text of the top-level exception.
        messages: Display text of every inspected chain layer, outermost first.
        api_error: The typed API error, for ``ErrorKind.API``.
        fault: The network fault category, for ``ErrorKind.NETWORK``.
        host: The host that failed to resolve, for ``NetworkFault.DNS``.
        reason: The context reason, for ``ErrorKind.CONTEXT``.
    """

    kind: ErrorKind
    error: BaseException
    message: str
    messages: tuple[str, ...] = field(default_factory=tuple)
    api_error: Optional[APIError] = None
    fault: Optional[NetworkFault] = None
    host: str = ""
    reason: Optional[ContextReason] = None


# --- Cause chain ---


def error_text(exc: BaseException) -> str:
    """Return the display text of *exc*, falling back to its type name."""
    return str(exc) or type(exc).__name__


def iter_causes(exc: BaseException, max_depth: int = MAX_CAUSE_DEPTH) -> Iterator[BaseException]:
    """Yield *exc* and the exceptions it wraps, outermost first.

    Stops after *max_depth* layers or when a layer repeats.
    """
    seen: set[int] = set()
    current: Optional[BaseException] = exc
    depth = 0
    while current is not None and depth < max_depth and id(current) not in seen:
        seen.add(id(current))
        yield current
        depth += 1
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


# --- Network fault detection ---

_RESOLVER_PATTERNS = (
    "name or service not known",
    "nodename nor servname provided",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
)

_GENERIC_NETWORK_TYPES = (httpx.NetworkError, httpx.ProxyError, ConnectionError)

_CANCELLED_TYPES = (
    OperationCancelled,
    KeyboardInterrupt,
    asyncio.CancelledError,
    concurrent.futures.CancelledError,
)


def _specific_fault(exc: BaseException) -> Optional[NetworkFault]:
    if isinstance(exc, socket.gaierror):
        return NetworkFault.DNS
    if isinstance(exc, ConnectionRefusedError):
        return NetworkFault.REFUSED
    if isinstance(exc, ConnectionResetError):
        return NetworkFault.RESET
    if isinstance(exc, OSError):
        if exc.errno == errno.ECONNREFUSED:
            return NetworkFault.REFUSED
        if exc.errno == errno.ECONNRESET:
            return NetworkFault.RESET
    if isinstance(exc, (httpx.ConnectError, OSError)):
        lower = str(exc).lower()
        if any(p in lower for p in _RESOLVER_PATTERNS):
            return NetworkFault.DNS
    return None


def _request_host(chain: list[BaseException]) -> str:
    for exc in chain:
        if isinstance(exc, httpx.RequestError):
            try:
                return exc.request.url.host
            except RuntimeError:
                # ``.request`` is unset on errors raised outside a client.
                continue
    return ""


def _network_fault(chain: list[BaseException]) -> Optional[NetworkFault]:
    for exc in chain:
        fault = _specific_fault(exc)
        if fault is not None:
            return fault
    if any(isinstance(exc, _GENERIC_NETWORK_TYPES) for exc in chain):
        return NetworkFault.GENERIC
    return None


def _context_reason(chain: list[BaseException]) -> Optional[ContextReason]:
    for exc in chain:
        if isinstance(exc, DeadlineExceeded):
            return ContextReason.DEADLINE
        if isinstance(exc, _CANCELLED_TYPES):
            return ContextReason.CANCELLED
    return None


# --- Adaptation ---


def adapt(exc: BaseException) -> ErrorVariant:
    """Reduce *exc* to a tagged :class:`ErrorVariant`.

    Tags are assigned with a fixed precedence over the whole chain: a typed
    API error beats a timeout, a timeout beats a network fault, and a network
    fault beats cancellation.
    """
    chain = list(iter_causes(exc))
    base = {
        "error": exc,
        "message": error_text(exc),
        "messages": tuple(error_text(e) for e in chain),
    }

    for layer in chain:
        if isinstance(layer, APIError):
            return ErrorVariant(kind=ErrorKind.API, api_error=layer, **base)

    if any(isinstance(layer, (httpx.TimeoutException, TimeoutError)) for layer in chain):
        return ErrorVariant(kind=ErrorKind.TIMEOUT, **base)

    fault = _network_fault(chain)
    if fault is not None:
        host = _request_host(chain) if fault is NetworkFault.DNS else ""
        return ErrorVariant(kind=ErrorKind.NETWORK, fault=fault, host=host, **base)

    reason = _context_reason(chain)
    if reason is not None:
        return ErrorVariant(kind=ErrorKind.CONTEXT, reason=reason, **base)

    return ErrorVariant(kind=ErrorKind.OPAQUE, **base)


# --- Message patterns ---

# Ordered: the first literal found decides the status.
_STATUS_PHRASES = (
    ("401 unauthorized", 401),
    ("403 forbidden", 403),
    ("404 not found", 404),
    ("500 internal server", 500),
    ("502 bad gateway", 502),
    ("503 service unavailable", 503),
)

_STATUS_PREFIXES = ("status: ", "status ", "returned ")
_STATUS_PREFIX_CODES = (401, 403, 404, 500)

_HTTP_ERROR_PATTERNS = (
    "status code",
    "status:",
    "401",
    "403",
    "404",
    "500",
    "502",
    "503",
    "unauthorized",
    "forbidden",
    "not found",
)

_NETWORK_PATTERNS = (
    "connection refused",
    "no such host",
    "network is unreachable",
    "no route to host",
    "connection reset by peer",
    "broken pipe",
    "i/o timeout",
)


def detect_http_status_code(text: str) -> int:
    """Return the HTTP status named by a known literal in *text*, or 0.

    Only a narrow set of phrasings is recognised, e.g. ``401 Unauthorized``,
    ``status: 403`` or ``returned 404``.
    """
    lower = text.lower()
    for phrase, code in _STATUS_PHRASES:
        if phrase in lower:
            return code
    for code in _STATUS_PREFIX_CODES:
        for prefix in _STATUS_PREFIXES:
            if f"{prefix}{code}" in lower:
                return code
    return 0


def contains_http_error(text: str) -> bool:
    """Return True if *text* looks like an HTTP response error."""
    lower = text.lower()
    return any(p in lower for p in _HTTP_ERROR_PATTERNS)


def contains_network_error(text: str) -> bool:
    """Return True if *text* contains a known network failure phrase."""
    lower = text.lower()
    return any(p in lower for p in _NETWORK_PATTERNS)
