"""Engine components coordinating dispatch → fetch → match → persist."""

from .cancel import CancelToken
from .channel import Channel, Interrupted
from .dispatcher import Dispatcher
from .fetcher import FetchCapability, FileFetcher, HttpFetcher, RoutingFetcher, build_fetcher
from .matcher import DEFAULT_PATTERN, MatchPredicate, RegexMatcher
from .work import WorkItem, normalize_identifier
from .worker import Worker, WorkerPool

__all__ = [
    "CancelToken",
    "Channel",
    "DEFAULT_PATTERN",
    "Dispatcher",
    "FetchCapability",
    "FileFetcher",
    "HttpFetcher",
    "Interrupted",
    "MatchPredicate",
    "RegexMatcher",
    "RoutingFetcher",
    "WorkItem",
    "Worker",
    "WorkerPool",
    "build_fetcher",
    "normalize_identifier",
]
