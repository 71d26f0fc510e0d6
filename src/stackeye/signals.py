"""SIGINT/SIGTERM coordination and cooperative cancellation.

:func:`install` replaces the SIGINT and SIGTERM handlers for the duration of
one invocation and returns a :class:`CancelToken` plus the
:class:`SignalCoordinator` that owns it.

* The first signal wins. It is recorded, the token is cancelled, and the
  previous handlers are put back, so a second Ctrl+C reaches Python's
  default handling (``KeyboardInterrupt``) and a second SIGTERM terminates
  the process.
* Nothing is interrupted forcibly. Long-running code is expected to poll
  :attr:`CancelToken.cancelled` or call :meth:`CancelToken.raise_if_cancelled`.
* :meth:`SignalCoordinator.resolve_exit_code` turns a recorded signal into
  ``130`` (SIGINT) or ``143`` (SIGTERM), whatever the command returned.
* Cleanups run once, newest first, via :meth:`SignalCoordinator.run_cleanups`.
  They are expected to handle their own errors; an exception raised by a
  cleanup propagates and the remaining cleanups do not run.

Example::

    token, coordinator = install()
    coordinator.on_cleanup(lambda: telemetry.flush(2.0))
    try:
        code = run_command(token)
    finally:
        code = coordinator.resolve_exit_code(code)
        coordinator.run_cleanups()
        coordinator.cancel()
"""

from __future__ import annotations

import logging
import signal
import threading
import time
from typing import Any, Callable, Optional

from stackeye.exceptions import DeadlineExceeded, OperationCancelled, SignalSetupError
from stackeye.exit_codes import EXIT_SIGINT, EXIT_SIGTERM

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)

_SIGNAL_EXIT_CODES = {
    signal.SIGINT: EXIT_SIGINT,
    signal.SIGTERM: EXIT_SIGTERM,
}


# --- Cancellation token ---


class CancelToken:
    """A cancellation flag shared between the coordinator and running code.

    A token derived with :meth:`with_timeout` is cancelled when its parent
    is, and additionally expires at its deadline.

    Args:
        deadline: Absolute :func:`time.monotonic` value after which the token
            counts as expired, or ``None`` for no deadline.
    """

    def __init__(self, deadline: Optional[float] = None) -> None:
        self._event = threading.Event()
        self._deadline = deadline
        # Reentrant: cancel() may run inside a signal handler on the main thread.
        self._lock = threading.RLock()
        self._children: list[CancelToken] = []

    @property
    def cancelled(self) -> bool:
        """True once cancelled explicitly, through a parent, or by expiry."""
        return self._event.is_set() or self.expired

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline (never negative), or ``None``."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        """Cancel this token and every token derived from it. Idempotent."""
        with self._lock:
            self._event.set()
            children, self._children = self._children, []
        for child in children:
            child.cancel()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the token is cancelled or *timeout* seconds pass.

        Returns:
            True if the token is cancelled, False on timeout.
        """
        remaining = self.remaining()
        if remaining is not None and (timeout is None or remaining < timeout):
            timeout = remaining
        return self._event.wait(timeout) or self.cancelled

    def raise_if_cancelled(self) -> None:
        """Raise if the token is no longer live.

        Raises:
            OperationCancelled: If cancelled explicitly or through a parent.
            DeadlineExceeded: If the deadline has passed.
        """
        if self._event.is_set():
            raise OperationCancelled()
        if self.expired:
            raise DeadlineExceeded()

    def with_timeout(self, seconds: float) -> CancelToken:
        """Return a child token that also expires after *seconds*.

        The child never outlives this token's own deadline.
        """
        deadline = time.monotonic() + seconds
        if self._deadline is not None:
            deadline = min(deadline, self._deadline)
        child = CancelToken(deadline=deadline)
        with self._lock:
            if self._event.is_set():
                child.cancel()
            else:
                self._children.append(child)
        return child


# --- Coordinator ---


class SignalCoordinator:
    """Records the first termination signal and owns the cleanup list.

    Args:
        token: Token to cancel when a signal arrives. A fresh one by default.
    """

    def __init__(self, token: Optional[CancelToken] = None) -> None:
        self._token = token or CancelToken()

        # One lock per structure. All are reentrant because the signal
        # handler runs on the main thread between bytecodes.
        self._signal_lock = threading.RLock()
        self._signal: Optional[signal.Signals] = None

        self._cleanup_lock = threading.RLock()
        self._cleanups: list[Callable[[], Any]] = []

        self._handler_lock = threading.RLock()
        self._previous: dict[signal.Signals, Any] = {}

    @property
    def token(self) -> CancelToken:
        return self._token

    @property
    def installed(self) -> bool:
        with self._handler_lock:
            return bool(self._previous)

    # ------------------------------------------------------------------ #
    # Handler lifecycle
    # ------------------------------------------------------------------ #

    def install(self) -> CancelToken:
        """Install handlers for :data:`HANDLED_SIGNALS`.

        Raises:
            SignalSetupError: If a handler cannot be installed, for example
                when called outside the main thread.
        """
        with self._handler_lock:
            if self._previous:
                return self._token
            try:
                for sig in HANDLED_SIGNALS:
                    self._previous[sig] = signal.signal(sig, self._handle)
            except (ValueError, OSError) as exc:
                self._restore_handlers()
                raise SignalSetupError(f"cannot install signal handlers: {exc}") from exc
        logger.debug("Signal handlers installed for %s", ", ".join(s.name for s in HANDLED_SIGNALS))
        return self._token

    def cancel(self) -> None:
        """Restore the previous handlers and cancel the token. Idempotent."""
        self._restore_handlers()
        self._token.cancel()

    def _handle(self, signum: int, frame: Any) -> None:
        sig = signal.Signals(signum)
        with self._signal_lock:
            if self._signal is not None:
                return
            self._signal = sig
        logger.debug("Received %s, cancelling", sig.name)
        self._token.cancel()
        self._restore_handlers()

    def _restore_handlers(self) -> None:
        with self._handler_lock:
            previous, self._previous = self._previous, {}
            for sig, handler in previous.items():
                # None means the handler was not installed from Python.
                signal.signal(sig, handler if handler is not None else signal.SIG_DFL)

    # ------------------------------------------------------------------ #
    # Signal state
    # ------------------------------------------------------------------ #

    @property
    def signaled(self) -> bool:
        with self._signal_lock:
            return self._signal is not None

    @property
    def signal(self) -> Optional[signal.Signals]:
        """The recorded signal, or ``None``."""
        with self._signal_lock:
            return self._signal

    def resolve_exit_code(self, code: int) -> int:
        """Return ``130``/``143`` after SIGINT/SIGTERM, otherwise *code*."""
        sig = self.signal
        if sig is None:
            return code
        return _SIGNAL_EXIT_CODES.get(sig, code)

    # ------------------------------------------------------------------ #
    # Cleanups
    # ------------------------------------------------------------------ #

    def on_cleanup(self, fn: Callable[[], Any]) -> None:
        """Register *fn* to run during :meth:`run_cleanups`."""
        with self._cleanup_lock:
            self._cleanups.append(fn)

    def run_cleanups(self) -> None:
        """Run registered cleanups newest first, each at most once.

        The list is swapped out under the lock, so concurrent or repeated
        calls find it empty.
        """
        with self._cleanup_lock:
            pending, self._cleanups = self._cleanups, []
        for fn in reversed(pending):
            fn()


def install(token: Optional[CancelToken] = None) -> tuple[CancelToken, SignalCoordinator]:
    """Create a :class:`SignalCoordinator`, install its handlers, and return both halves.

    Raises:
        SignalSetupError: If the handlers cannot be installed.
    """
    coordinator = SignalCoordinator(token)
    return coordinator.install(), coordinator
