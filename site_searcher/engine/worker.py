"""Worker loop and the fixed-size pool running it."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock

import structlog

from .cancel import CancelToken
from .channel import Channel, Interrupted
from .fetcher import FetchCapability
from .work import WorkItem


class Worker:
    """Take work items, fetch their content and report the first matching line.

    A failure while fetching or reading one item is logged and the loop moves
    on to the next item; only a cancellation ends the loop.
    """

    def __init__(
        self,
        work: Channel[WorkItem],
        results: Channel[str],
        fetcher: FetchCapability,
        token: CancelToken | None = None,
        name: str = "worker",
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if work is None:
            raise ValueError("Work channel is required")
        if results is None:
            raise ValueError("Result channel is required")
        if fetcher is None:
            raise ValueError("Fetch capability is required")
        self.work = work
        self.results = results
        self.fetcher = fetcher
        self.token = token.child() if token is not None else CancelToken()
        self.name = name
        self.logger = (logger or structlog.get_logger("site_searcher.worker")).bind(worker=name)

    @property
    def running(self) -> bool:
        return not self.token.cancelled

    def shutdown(self) -> None:
        """Stop this worker only; the token it was built from is left untouched."""

        self.token.cancel()

    def run(self) -> None:
        while not self.token.cancelled:
            try:
                item = self.work.take(self.token)
            except Interrupted:
                break
            try:
                self.process(item)
            finally:
                self.work.task_done()
        self.logger.debug("worker_stopped")

    def process(self, item: WorkItem) -> bool:
        """Scan one item's content; True when a match was reported."""

        try:
            with self.fetcher.fetch(item.identifier) as lines:
                for line in lines:
                    if item.matcher.matches(line):
                        self.results.put(item.identifier)
                        self.logger.debug("match_found", identifier=item.identifier)
                        return True
        except Exception as exc:  # noqa: BLE001
            self.logger.warning(
                "fetch_failed",
                identifier=item.identifier,
                error=str(exc),
                exc_info=True,
            )
        return False


class WorkerPool:
    """Run a fixed number of workers on a dedicated thread pool.

    Each worker holds a child of the pool token, so cancelling the token given
    at construction stops the whole pool while :meth:`Worker.shutdown` stops
    one worker.
    """

    def __init__(
        self,
        size: int,
        work: Channel[WorkItem],
        results: Channel[str],
        fetcher: FetchCapability,
        token: CancelToken | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if size < 1:
            raise ValueError("Worker pool size must be a positive integer")
        self.size = size
        self.token = token.child() if token is not None else CancelToken()
        self.logger = logger or structlog.get_logger("site_searcher.worker")
        self.workers = [
            Worker(work, results, fetcher, token=self.token, name=f"worker-{index}", logger=self.logger)
            for index in range(size)
        ]
        self._executor: ThreadPoolExecutor | None = None
        self._futures: list[Future] = []
        self._lock = Lock()

    def start(self) -> None:
        with self._lock:
            if self._executor is not None or self.token.cancelled:
                raise RuntimeError("Worker pool already started or stopped")
            self._executor = ThreadPoolExecutor(max_workers=self.size, thread_name_prefix="searcher-worker")
            self._futures = [self._executor.submit(worker.run) for worker in self.workers]

    def shutdown(self, wait: bool = True) -> None:
        """Stop every worker of the pool; with ``wait`` also join their threads."""

        self.token.cancel()
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is None:
            return
        executor.shutdown(wait=wait)
        if not wait:
            return
        for future in self._futures:
            error = future.exception()
            if error is not None:
                self.logger.error("worker_crashed", error=str(error))


__all__ = ["Worker", "WorkerPool"]
