"""Dispatcher: turns input records into work items, then persists matches."""

from __future__ import annotations

import os
from threading import Event
from typing import TextIO

import structlog

from ..exceptions import InputError, OutputError
from .cancel import CancelToken
from .channel import Channel, Interrupted
from .matcher import MatchPredicate
from .work import DEFAULT_SCHEME, WorkItem, iter_locators, normalize_identifier

LINE_SEPARATOR = os.linesep


class Dispatcher:
    """Single control actor of a search run.

    :meth:`run` first enqueues one work item per valid input record, fires
    :attr:`input_exhausted`, then drains the result channel into the output
    stream until shutdown is requested. Draining never ends on its own: how
    many results are still to come is unknown, so only an explicit
    :meth:`shutdown` stops it.

    The caller owns ``input`` and ``output`` and closes them.
    """

    def __init__(
        self,
        input: TextIO,
        output: TextIO,
        matcher: MatchPredicate,
        work: Channel[WorkItem],
        results: Channel[str],
        token: CancelToken | None = None,
        default_scheme: str = DEFAULT_SCHEME,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if input is None:
            raise ValueError("Input stream is required")
        if output is None:
            raise ValueError("Output stream is required")
        if matcher is None:
            raise ValueError("Match predicate is required")
        if work is None:
            raise ValueError("Work channel is required")
        if results is None:
            raise ValueError("Result channel is required")
        self.input = input
        self.output = output
        self.matcher = matcher
        self.work = work
        self.results = results
        self.token = token.child() if token is not None else CancelToken()
        self.default_scheme = default_scheme
        self.logger = logger or structlog.get_logger("site_searcher.dispatcher")
        self.input_exhausted = Event()
        self.queued = 0
        self.written = 0

    @property
    def running(self) -> bool:
        return not self.token.cancelled

    def shutdown(self) -> None:
        """Stop this dispatcher; the token it was built from is left untouched."""

        self.token.cancel()

    def run(self) -> None:
        self.produce()
        self.drain()

    # ------------------------------------------------------------------
    def produce(self) -> int:
        """Enqueue a work item per valid record; return how many were queued."""

        if self.input_exhausted.is_set():
            raise RuntimeError("Input has already been consumed")
        try:
            for locator in iter_locators(self.input):
                identifier = normalize_identifier(locator, self.default_scheme)
                self.work.put(WorkItem(self.matcher, identifier))
                self.queued += 1
                self.logger.debug("work_item_queued", identifier=identifier)
        except (OSError, UnicodeDecodeError) as exc:
            raise InputError(f"Error reading from input: {exc}") from exc
        finally:
            self.input_exhausted.set()
            self.logger.info("input_exhausted", queued=self.queued)
        return self.queued

    def drain(self) -> int:
        """Write results as they arrive until shutdown; return the number written."""

        while not self.token.cancelled:
            try:
                identifier = self.results.take(self.token)
            except Interrupted:
                break
            try:
                self._write(identifier)
            finally:
                self.results.task_done()
        self.logger.info("dispatcher_stopped", written=self.written)
        return self.written

    def _write(self, identifier: str) -> None:
        try:
            self.output.write(identifier)
            self.output.write(LINE_SEPARATOR)
            self.output.flush()
        except (OSError, ValueError) as exc:
            raise OutputError(f"Failed to write to output: {exc}") from exc
        self.written += 1
        self.logger.debug("result_written", identifier=identifier)


__all__ = ["Dispatcher", "LINE_SEPARATOR"]
