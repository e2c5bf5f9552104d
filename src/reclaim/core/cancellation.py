"""Cooperative cancellation shared between walks, hash loops and worker pools."""

from __future__ import annotations

import logging
import threading
from typing import Callable

log = logging.getLogger(__name__)


class CancellationToken:
    """Shared abort signal.

    Pass the same instance to every loop that cooperates in one scan.  Loops
    check :attr:`cancelled` before starting new work; work that cannot poll
    (an external process, say) registers a callback with :meth:`on_cancel`.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "") -> None:
        """Request cancellation. Only the first call has any effect."""
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()

        log.debug("Cancellation requested%s", f": {reason}" if reason else "")
        for callback in callbacks:
            self._invoke(callback)

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run *callback* on cancellation, or right away if already cancelled.

        Returns a function that unregisters the callback again.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._discard(callback)
        self._invoke(callback)
        return lambda: None

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or *timeout* elapses. Returns the flag."""
        return self._event.wait(timeout)

    def _discard(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @staticmethod
    def _invoke(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            log.exception("Cancellation callback failed")
