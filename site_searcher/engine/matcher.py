"""Line match predicates shared read-only across workers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

DEFAULT_PATTERN = r".*\sand\s.*"


@runtime_checkable
class MatchPredicate(Protocol):
    """Anything that can decide whether a single line of text matches."""

    def matches(self, line: str) -> bool:
        ...


@dataclass(frozen=True, slots=True)
class RegexMatcher:
    """Compiled regular expression searched anywhere within a line."""

    regex: re.Pattern[str]

    @classmethod
    def compile(cls, pattern: str = DEFAULT_PATTERN, case_sensitive: bool = False) -> "RegexMatcher":
        flags = 0 if case_sensitive else re.IGNORECASE
        return cls(re.compile(pattern, flags))

    @property
    def pattern(self) -> str:
        return self.regex.pattern

    def matches(self, line: str) -> bool:
        return self.regex.search(line) is not None


__all__ = ["DEFAULT_PATTERN", "MatchPredicate", "RegexMatcher"]
