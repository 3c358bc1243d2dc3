from __future__ import annotations

import io
import os
import threading

import pytest

from site_searcher.engine import Dispatcher, RegexMatcher
from site_searcher.exceptions import InputError, InvalidIdentifierError, OutputError

SITE_1 = "http://www.fakesite.com"
SITE_2 = "http://www.somewhereelse.com"
SITE_3 = "http://foobar.quux"
INPUT_STRING = os.linesep.join(["HEADER", f"1,{SITE_1}", f"2,{SITE_2}", f"3,{SITE_3}"])
TIMEOUT = 5.0


class BrokenWriter(io.StringIO):
    def write(self, _text: str) -> int:
        raise OSError("disk full")


class BrokenReader(io.StringIO):
    def readline(self, *_args) -> str:
        raise OSError("device not ready")


def _start(dispatcher: Dispatcher) -> threading.Thread:
    thread = threading.Thread(target=dispatcher.run, daemon=True)
    thread.start()
    return thread


@pytest.fixture
def search_pattern() -> RegexMatcher:
    return RegexMatcher.compile("anything")


@pytest.mark.parametrize("missing", ["input", "output", "matcher", "work", "results"])
def test_dispatcher_requires_all_collaborators(missing, search_pattern, work_channel, result_channel) -> None:
    kwargs = {
        "input": io.StringIO(""),
        "output": io.StringIO(),
        "matcher": search_pattern,
        "work": work_channel,
        "results": result_channel,
    }
    kwargs[missing] = None
    with pytest.raises(ValueError):
        Dispatcher(**kwargs)


def test_empty_input_file(search_pattern, work_channel, result_channel) -> None:
    dispatcher = Dispatcher(io.StringIO(""), io.StringIO(), search_pattern, work_channel, result_channel)
    thread = _start(dispatcher)
    try:
        assert dispatcher.input_exhausted.wait(TIMEOUT)
        assert work_channel.qsize() == 0
        assert result_channel.qsize() == 0
    finally:
        dispatcher.shutdown()
        thread.join(TIMEOUT)
    assert not thread.is_alive()


def test_non_empty_input_file(search_pattern, work_channel, result_channel) -> None:
    dispatcher = Dispatcher(io.StringIO(INPUT_STRING), io.StringIO(), search_pattern, work_channel, result_channel)
    assert dispatcher.produce() == 3
    assert dispatcher.input_exhausted.is_set()

    items = work_channel.drain()
    assert [item.identifier for item in items] == [SITE_1, SITE_2, SITE_3]
    assert all(item.matcher is search_pattern for item in items)


def test_identifiers_are_quote_stripped_and_scheme_prefixed(search_pattern, work_channel, result_channel) -> None:
    source = io.StringIO('HEADER\n1,http://a.example\n2,b.example\n3,"c.example"')
    dispatcher = Dispatcher(source, io.StringIO(), search_pattern, work_channel, result_channel)
    dispatcher.produce()
    assert [item.identifier for item in work_channel.drain()] == [
        "http://a.example",
        "http://b.example",
        "http://c.example",
    ]


def test_invalid_records_are_skipped(search_pattern, work_channel, result_channel) -> None:
    source = io.StringIO("HEADER\nno-comma\n1,a.example\n\n2,\nsingle\n3,b.example\n")
    dispatcher = Dispatcher(source, io.StringIO(), search_pattern, work_channel, result_channel)
    assert dispatcher.produce() == 2
    assert [item.identifier for item in work_channel.drain()] == ["http://a.example", "http://b.example"]


def test_malformed_identifier_is_fatal(search_pattern, work_channel, result_channel) -> None:
    source = io.StringIO("HEADER\n1,a.example\n2,bad.example:port\n3,c.example\n")
    dispatcher = Dispatcher(source, io.StringIO(), search_pattern, work_channel, result_channel)
    with pytest.raises(InvalidIdentifierError):
        dispatcher.run()
    assert dispatcher.input_exhausted.is_set()
    assert [item.identifier for item in work_channel.drain()] == ["http://a.example"]


def test_unreadable_input_is_fatal(search_pattern, work_channel, result_channel) -> None:
    dispatcher = Dispatcher(BrokenReader(), io.StringIO(), search_pattern, work_channel, result_channel)
    with pytest.raises(InputError):
        dispatcher.produce()
    assert dispatcher.input_exhausted.is_set()


def test_write_to_output(search_pattern, work_channel, result_channel) -> None:
    output = io.StringIO()
    dispatcher = Dispatcher(io.StringIO(INPUT_STRING), output, search_pattern, work_channel, result_channel)
    thread = _start(dispatcher)
    try:
        assert dispatcher.input_exhausted.wait(TIMEOUT)
        assert work_channel.qsize() == 3
        result_channel.put(SITE_2)
        result_channel.put(SITE_3)
        assert result_channel.join(TIMEOUT)
    finally:
        dispatcher.shutdown()
        thread.join(TIMEOUT)

    assert output.getvalue() == SITE_2 + os.linesep + SITE_3 + os.linesep
    assert dispatcher.written == 2


def test_unwritable_output_is_fatal(search_pattern, work_channel, result_channel) -> None:
    dispatcher = Dispatcher(io.StringIO("HEADER\n"), BrokenWriter(), search_pattern, work_channel, result_channel)
    result_channel.put(SITE_1)
    with pytest.raises(OutputError):
        dispatcher.run()


def test_shutdown_while_waiting_for_results(search_pattern, work_channel, result_channel) -> None:
    output = io.StringIO()
    dispatcher = Dispatcher(io.StringIO(INPUT_STRING), output, search_pattern, work_channel, result_channel)
    thread = _start(dispatcher)
    assert dispatcher.input_exhausted.wait(TIMEOUT)
    assert dispatcher.running

    dispatcher.shutdown()
    dispatcher.shutdown()
    thread.join(2.0)

    assert not thread.is_alive()
    assert not dispatcher.running
    assert output.getvalue() == ""
    result_channel.put(SITE_1)
    assert output.getvalue() == ""
