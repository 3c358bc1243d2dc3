"""Pytest configuration providing fake fetchers and shared fixtures."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, Iterator

import pytest

from site_searcher.config import SearchConfig
from site_searcher.engine import CancelToken, Channel, RegexMatcher, Worker, WorkItem
from site_searcher.exceptions import FetchError

JOIN_TIMEOUT = 5.0


class StaticFetcher:
    """Serve canned lines per identifier and record what was read and released."""

    def __init__(self, pages: dict[str, list[str] | Exception] | None = None) -> None:
        self.pages = dict(pages or {})
        self.read: dict[str, list[str]] = {}
        self.opened: list[str] = []
        self.released: list[str] = []
        self._lock = threading.Lock()

    @contextmanager
    def fetch(self, identifier: str) -> Iterator[Iterator[str]]:
        page = self.pages.get(identifier, [])
        if isinstance(page, Exception):
            raise page
        with self._lock:
            self.opened.append(identifier)
        try:
            yield self._lines(identifier, page)
        finally:
            with self._lock:
                self.released.append(identifier)

    def _lines(self, identifier: str, page: Iterable[str | Exception]) -> Iterator[str]:
        for line in page:
            if isinstance(line, Exception):
                raise line
            with self._lock:
                self.read.setdefault(identifier, []).append(line)
            yield line


@pytest.fixture
def work_channel() -> Channel[WorkItem]:
    return Channel()


@pytest.fixture
def result_channel() -> Channel[str]:
    return Channel()


@pytest.fixture
def and_matcher() -> RegexMatcher:
    return RegexMatcher.compile()


@pytest.fixture
def static_fetcher() -> Callable[..., StaticFetcher]:
    def _builder(pages: dict | None = None) -> StaticFetcher:
        return StaticFetcher(pages)

    return _builder


@pytest.fixture
def fetch_failure() -> Callable[[str], FetchError]:
    def _builder(identifier: str) -> FetchError:
        return FetchError(identifier, "connection refused")

    return _builder


@pytest.fixture
def start_worker(work_channel, result_channel) -> Iterator[Callable[..., tuple[Worker, threading.Thread]]]:
    """Start workers on background threads and stop them after the test."""

    started: list[tuple[Worker, threading.Thread]] = []

    def _start(fetcher, token: CancelToken | None = None) -> tuple[Worker, threading.Thread]:
        worker = Worker(work_channel, result_channel, fetcher, token=token)
        thread = threading.Thread(target=worker.run, daemon=True)
        thread.start()
        started.append((worker, thread))
        return worker, thread

    yield _start
    for worker, thread in started:
        worker.shutdown()
        thread.join(JOIN_TIMEOUT)


@pytest.fixture
def search_files(tmp_path: Path) -> Callable[[str], SearchConfig]:
    def _builder(content: str, **overrides) -> SearchConfig:
        input_path = tmp_path / "urls.txt"
        input_path.write_text(content, encoding="utf-8")
        base = {
            "input_path": input_path,
            "output_path": tmp_path / "results.txt",
            "workers": 2,
            "log_dir": tmp_path / "logs",
        }
        base.update(overrides)
        return SearchConfig(**base)

    return _builder
