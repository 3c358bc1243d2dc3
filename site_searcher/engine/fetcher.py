"""Resource fetch capabilities turning an identifier into a stream of text lines."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import ContextManager, Iterator, Mapping, Protocol
from urllib.parse import unquote, urlparse

import httpx
import structlog

from ..exceptions import FetchError

DEFAULT_USER_AGENT = "Mozilla/5.0"


class FetchCapability(Protocol):
    """Open a resource and expose its content line by line.

    The returned context manager owns whatever was opened; leaving it releases
    the resource whether the lines were read to the end or not. Implementations
    raise :class:`FetchError` and never retry.
    """

    def fetch(self, identifier: str) -> ContextManager[Iterator[str]]:
        ...


class HttpFetcher:
    """Stream page bodies over HTTP(S) with a shared httpx client."""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float | None = 15.0,
        transport: httpx.BaseTransport | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.logger = logger or structlog.get_logger("site_searcher.fetcher")
        # Some sites answer 403 to clients without a browser-like agent.
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=timeout,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    @contextmanager
    def fetch(self, identifier: str) -> Iterator[Iterator[str]]:
        try:
            with self._client.stream("GET", identifier) as response:
                if self._is_failure(response):
                    raise FetchError(identifier, f"unexpected status {response.status_code}")
                self.logger.debug("fetch_opened", identifier=identifier, status=response.status_code)
                yield response.iter_lines()
        except httpx.HTTPError as exc:
            raise FetchError(identifier, str(exc) or exc.__class__.__name__) from exc

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _is_failure(response: httpx.Response) -> bool:
        return response.status_code >= 400


class FileFetcher:
    """Read ``file://`` resources from the local filesystem."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    @contextmanager
    def fetch(self, identifier: str) -> Iterator[Iterator[str]]:
        path = self._path_for(identifier)
        try:
            with path.open("r", encoding=self.encoding, errors="replace") as stream:
                yield (line.rstrip("\r\n") for line in stream)
        except OSError as exc:
            raise FetchError(identifier, str(exc)) from exc

    @staticmethod
    def _path_for(identifier: str) -> Path:
        parsed = urlparse(identifier)
        if parsed.scheme != "file":
            raise FetchError(identifier, f"unsupported scheme {parsed.scheme!r}")
        return Path(unquote(parsed.netloc + parsed.path))


class RoutingFetcher:
    """Delegate to a fetcher chosen by the identifier's scheme."""

    def __init__(self, routes: Mapping[str, FetchCapability]) -> None:
        self.routes = dict(routes)

    @contextmanager
    def fetch(self, identifier: str) -> Iterator[Iterator[str]]:
        scheme = urlparse(identifier).scheme.lower()
        target = self.routes.get(scheme)
        if target is None:
            raise FetchError(identifier, f"unsupported scheme {scheme!r}")
        with target.fetch(identifier) as lines:
            yield lines

    def close(self) -> None:
        closed: set[int] = set()
        for target in self.routes.values():
            close = getattr(target, "close", None)
            if close is not None and id(target) not in closed:
                closed.add(id(target))
                close()


def build_fetcher(user_agent: str = DEFAULT_USER_AGENT, timeout: float | None = 15.0) -> RoutingFetcher:
    """Return the default fetcher: HTTP(S) through httpx plus local files."""

    http = HttpFetcher(user_agent=user_agent, timeout=timeout)
    return RoutingFetcher({"http": http, "https": http, "file": FileFetcher()})


__all__ = [
    "DEFAULT_USER_AGENT",
    "FetchCapability",
    "FileFetcher",
    "HttpFetcher",
    "RoutingFetcher",
    "build_fetcher",
]
