"""Cooperative cancellation token shared between long-lived actors."""

from __future__ import annotations

from threading import Event, RLock
from typing import Callable


class CancelToken:
    """Single-fire stop signal that can wake blocked waiters.

    Blocking primitives register a callback which is invoked once when the
    token fires, so a thread parked in a wait notices the request at its
    current blocking point instead of at its next loop check.
    """

    def __init__(self) -> None:
        self._event = Event()
        self._lock = RLock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    def child(self) -> "CancelToken":
        """Return a token that fires with this one but can also be cancelled alone."""

        token = CancelToken()
        self.add_callback(token.cancel)
        return token

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""

        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)

                def _remove() -> None:
                    with self._lock:
                        try:
                            self._callbacks.remove(callback)
                        except ValueError:
                            pass

                return _remove
        callback()
        return lambda: None


__all__ = ["CancelToken"]
