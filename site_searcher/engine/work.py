"""Work items and the record parsing that produces them."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, TextIO

import httpx

from ..exceptions import InvalidIdentifierError
from .matcher import MatchPredicate

DEFAULT_SCHEME = "http://"
FIELD_DELIMITER = ","
LOCATOR_FIELD = 1

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
_QUOTED_RE = re.compile(r'^"[^"]+"$')


@dataclass(frozen=True, slots=True)
class WorkItem:
    """One resource to fetch together with the predicate to test it against."""

    matcher: MatchPredicate
    identifier: str


def normalize_identifier(raw: str, default_scheme: str = DEFAULT_SCHEME) -> str:
    """Trim, unquote and scheme-prefix a locator taken from an input record.

    Raises :class:`InvalidIdentifierError` when the result is not a usable URL.
    """

    value = raw.strip()
    if _QUOTED_RE.match(value):
        value = value[1:-1]
    if not _SCHEME_RE.match(value):
        value = default_scheme + value
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as exc:
        raise InvalidIdentifierError(value, str(exc)) from exc
    if url.scheme in ("http", "https") and not url.host:
        raise InvalidIdentifierError(value, "missing host")
    return value


def extract_locator(record: str) -> str | None:
    """Return the raw locator field of a record, or None when the record is short."""

    fields = record.rstrip("\r\n").split(FIELD_DELIMITER)
    if len(fields) <= LOCATOR_FIELD:
        return None
    locator = fields[LOCATOR_FIELD].strip()
    return locator or None


def iter_locators(source: TextIO) -> Iterator[str]:
    """Yield raw locators from every data record, discarding the header."""

    header = source.readline()
    if not header:
        return
    for record in source:
        locator = extract_locator(record)
        if locator is not None:
            yield locator


__all__ = [
    "DEFAULT_SCHEME",
    "WorkItem",
    "extract_locator",
    "iter_locators",
    "normalize_identifier",
]
