"""Unbounded thread-safe FIFO channel with a cancellable blocking take."""

from __future__ import annotations

from collections import deque
from threading import Condition, RLock
from typing import Deque, Generic, TypeVar

from .cancel import CancelToken

T = TypeVar("T")


class Interrupted(Exception):
    """Raised when a blocking take is woken by a cancellation request."""


class Channel(Generic[T]):
    """Multi-producer/multi-consumer queue used between the dispatcher and workers.

    ``put`` never blocks. Every item is handed to exactly one ``take`` caller.
    Unfinished-task accounting mirrors :class:`queue.Queue` so observers can
    ``join`` until everything taken has been processed.
    """

    def __init__(self) -> None:
        self._items: Deque[T] = deque()
        self._lock = RLock()
        self._cond = Condition(self._lock)
        self._all_done = Condition(self._lock)
        self._unfinished = 0

    def put(self, item: T) -> None:
        with self._cond:
            self._items.append(item)
            self._unfinished += 1
            self._cond.notify()

    def take(self, token: CancelToken | None = None) -> T:
        """Block until an item is available; raise :class:`Interrupted` once ``token`` fires."""

        remove = token.add_callback(self._wake) if token is not None else None
        try:
            with self._cond:
                while True:
                    if token is not None and token.cancelled:
                        raise Interrupted()
                    if self._items:
                        return self._items.popleft()
                    self._cond.wait()
        finally:
            if remove is not None:
                remove()

    def task_done(self) -> None:
        with self._cond:
            if self._unfinished <= 0:
                raise ValueError("task_done() called too many times")
            self._unfinished -= 1
            if self._unfinished == 0:
                self._all_done.notify_all()

    def join(self, timeout: float | None = None) -> bool:
        """Block until every queued item has been marked done; False on timeout."""

        with self._cond:
            return self._all_done.wait_for(lambda: self._unfinished == 0, timeout)

    def drain(self) -> list[T]:
        """Remove and return everything currently queued, in FIFO order.

        Observer helper for inspecting a channel once its consumers are idle or
        stopped; drained items count as done.
        """

        with self._cond:
            items = list(self._items)
            self._items.clear()
            self._unfinished -= len(items)
            if self._unfinished == 0:
                self._all_done.notify_all()
            return items

    def qsize(self) -> int:
        with self._cond:
            return len(self._items)

    def empty(self) -> bool:
        return self.qsize() == 0

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()


__all__ = ["Channel", "Interrupted"]
