"""Search session wiring the dispatcher, worker pool, files and shutdown."""

from __future__ import annotations

import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from dataclasses import asdict, dataclass
from pathlib import Path
from threading import Lock
from typing import TextIO

import structlog

from .config import SearchConfig
from .engine import CancelToken, Channel, Dispatcher, FetchCapability, WorkerPool, WorkItem, build_fetcher
from .exceptions import InputError, OutputError

IDLE_POLL_SECONDS = 0.05


@dataclass(slots=True)
class SearchSummary:
    """Counts reported at the end of a run."""

    queued: int
    matched: int
    workers: int


class SearchSession:
    """Central coordinator managing one search run from start to STOPPED.

    The session, never the dispatcher, decides when a run is over: either on
    an external :meth:`shutdown` or, with ``exit_when_idle``, once all input
    was queued, every work item was processed and every result was written.
    """

    def __init__(
        self,
        config: SearchConfig,
        fetcher: FetchCapability | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher if fetcher is not None else build_fetcher(config.user_agent, config.fetch_timeout)
        self.logger = (logger or structlog.get_logger("site_searcher")).bind(component="session")
        self.token = CancelToken()
        self.work: Channel[WorkItem] = Channel()
        self.results: Channel[str] = Channel()
        self.pool = WorkerPool(
            config.workers,
            self.work,
            self.results,
            self.fetcher,
            token=self.token,
            logger=structlog.get_logger("site_searcher.worker"),
        )
        self.dispatcher: Dispatcher | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._dispatch_future: Future | None = None
        self._input: TextIO | None = None
        self._output: TextIO | None = None
        self._lock = Lock()
        self._stopped = False

    # ------------------------------------------------------------------
    def prepare(self) -> None:
        """Fail fast on unusable paths; clear a previous output file."""

        input_path = Path(self.config.input_path)
        output_path = Path(self.config.output_path)
        if not input_path.is_file():
            raise InputError(f"File does not exist or is unreadable: {input_path.resolve()}")
        if output_path.exists():
            if not output_path.is_file():
                raise OutputError(f"Output file exists and is not a regular file: {output_path.resolve()}")
            try:
                output_path.unlink()
            except OSError as exc:
                raise OutputError(f"Output file exists and could not be deleted: {output_path.resolve()}") from exc

    def start(self) -> Dispatcher:
        """Open the streams, start the workers and launch the dispatcher thread."""

        with self._lock:
            if self._stopped or self.dispatcher is not None:
                raise RuntimeError("Search session cannot be started twice")
            try:
                self._input = open(self.config.input_path, "r", encoding="utf-8")
            except OSError as exc:
                raise InputError(f"Cannot open input {self.config.input_path}: {exc}") from exc
            try:
                self._output = open(self.config.output_path, "w", encoding="utf-8", newline="")
            except OSError as exc:
                self._input.close()
                raise OutputError(f"Cannot open output {self.config.output_path}: {exc}") from exc
            self.dispatcher = Dispatcher(
                self._input,
                self._output,
                self.config.build_matcher(),
                self.work,
                self.results,
                token=self.token,
                default_scheme=self.config.default_scheme,
                logger=structlog.get_logger("site_searcher.dispatcher"),
            )
            self.pool.start()
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="searcher-dispatcher")
            self._dispatch_future = self._executor.submit(self.dispatcher.run)
        self.logger.info(
            "search_started",
            workers=self.config.workers,
            pattern=self.config.pattern,
            input=str(self.config.input_path),
            output=str(self.config.output_path),
        )
        return self.dispatcher

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the dispatcher has stopped; False when ``timeout`` elapsed first.

        With ``exit_when_idle`` the session requests shutdown itself once the
        run is idle. A fatal dispatcher error is re-raised in the calling thread.
        """

        if self.dispatcher is None or self._dispatch_future is None:
            raise RuntimeError("Search session has not been started")
        deadline = None if timeout is None else time.monotonic() + timeout
        future = self._dispatch_future
        while not future.done():
            if self.config.exit_when_idle and not self.token.cancelled and self._is_idle():
                self.logger.info("search_idle")
                self.request_stop()
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return False
            wait_futures([future], timeout=IDLE_POLL_SECONDS if remaining is None else min(remaining, IDLE_POLL_SECONDS))
        future.result()
        return True

    def _is_idle(self) -> bool:
        # Work first: once it is done and input is exhausted no new result can appear.
        return (
            self.dispatcher is not None
            and self.dispatcher.input_exhausted.is_set()
            and self.work.join(0)
            and self.results.join(0)
        )

    def request_stop(self) -> None:
        """Ask every actor to stop at its next blocking point; safe from signal handlers."""

        self.token.cancel()

    def run(self) -> SearchSummary:
        """Prepare, start and wait for a full run; always shuts down."""

        try:
            self.prepare()
            self.start()
            self.wait()
        finally:
            self.shutdown()
        return self.summary()

    def summary(self) -> SearchSummary:
        queued = self.dispatcher.queued if self.dispatcher else 0
        matched = self.dispatcher.written if self.dispatcher else 0
        return SearchSummary(queued=queued, matched=matched, workers=self.config.workers)

    def shutdown(self) -> None:
        """Stop every actor and release streams and connections. Idempotent."""

        with self._lock:
            if self._stopped:
                return
            self._stopped = True
        self.logger.info("shutdown_requested")
        self.token.cancel()
        self.pool.shutdown(wait=True)
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        for stream in (self._input, self._output):
            if stream is not None:
                try:
                    stream.close()
                except OSError as exc:
                    self.logger.warning("stream_close_failed", error=str(exc))
        if self._owns_fetcher:
            close = getattr(self.fetcher, "close", None)
            if close is not None:
                close()
        self.logger.info("search_stopped", **asdict(self.summary()))


__all__ = ["SearchSession", "SearchSummary"]
