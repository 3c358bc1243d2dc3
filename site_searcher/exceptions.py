"""Error taxonomy shared by the searcher engine and CLI."""

from __future__ import annotations


class SearchError(Exception):
    """Base class for all searcher failures."""


class InputError(SearchError):
    """The input source could not be read."""


class InvalidIdentifierError(InputError, ValueError):
    """A resource locator could not be normalised into a valid reference."""

    def __init__(self, identifier: str, reason: str | None = None) -> None:
        self.identifier = identifier
        message = f"Invalid resource identifier: {identifier!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class OutputError(SearchError):
    """The output sink could not be written."""


class FetchError(SearchError):
    """A single resource could not be fetched or read."""

    def __init__(self, identifier: str, reason: str) -> None:
        self.identifier = identifier
        super().__init__(f"Failed to fetch {identifier}: {reason}")


__all__ = [
    "FetchError",
    "InputError",
    "InvalidIdentifierError",
    "OutputError",
    "SearchError",
]
