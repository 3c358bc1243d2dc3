from __future__ import annotations

import io

import pytest

from site_searcher.engine.work import extract_locator, iter_locators, normalize_identifier
from site_searcher.exceptions import InvalidIdentifierError


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("http://a.example", "http://a.example"),
        ("b.example", "http://b.example"),
        ('"c.example"', "http://c.example"),
        ("  www.fakesite.com  ", "http://www.fakesite.com"),
        ("https://secure.example/path", "https://secure.example/path"),
        ('"http://quoted.example"', "http://quoted.example"),
    ],
)
def test_normalize_identifier(raw: str, expected: str) -> None:
    assert normalize_identifier(raw) == expected


def test_normalize_identifier_uses_given_scheme() -> None:
    assert normalize_identifier("a.example", default_scheme="https://") == "https://a.example"


def test_normalize_identifier_rejects_bad_port() -> None:
    with pytest.raises(InvalidIdentifierError) as excinfo:
        normalize_identifier("example.com:notaport")
    assert excinfo.value.identifier == "http://example.com:notaport"


def test_extract_locator_skips_short_records() -> None:
    assert extract_locator("1,a.example\n") == "a.example"
    assert extract_locator("1,a.example,extra") == "a.example"
    assert extract_locator("only-one-field") is None
    assert extract_locator("1,   ") is None
    assert extract_locator("") is None


def test_iter_locators_discards_header() -> None:
    source = io.StringIO('HEADER\n1,a.example\nbroken\n2,"b.example"\n\n3,c.example')
    assert list(iter_locators(source)) == ["a.example", '"b.example"', "c.example"]


def test_iter_locators_empty_source() -> None:
    assert list(iter_locators(io.StringIO(""))) == []
    assert list(iter_locators(io.StringIO("HEADER only\n"))) == []
