from __future__ import annotations

import asyncio
import json
import threading
from collections.abc import AsyncIterator, Iterator, Sequence

import pytest

from access_log_parser.core.config import ParserOptions
from access_log_parser.core.errors import ParseAbortedError
from access_log_parser.core.filters import LineFilter
from access_log_parser.core.engine import Engine
from access_log_parser.core.handlers import Handlers, json_line_handler, json_metadata_handler, raw_unmatched_handler
from access_log_parser.core.models import Matched, Metadata, RunState, Skipped, Unmatched
from access_log_parser.core.parser import Parser
from access_log_parser.core.patterns import PatternSet

TRIPLE = r"([!-~]+) ([!-~]+) ([!-~]+)"
FIELDS = ["field1", "field2", "field3"]


def _parser(**kwargs) -> Parser:
    return Parser(PatternSet().add_pattern(TRIPLE, FIELDS), **kwargs)


class ListSink:
    def __init__(self, fail_after: int | None = None) -> None:
        self.lines: list[str] = []
        self.fail_after = fail_after

    def write(self, s: str) -> int:
        if self.fail_after is not None and len(self.lines) >= self.fail_after:
            raise OSError("disk full")
        self.lines.append(s)
        return len(s)


@pytest.mark.asyncio
async def test_end_to_end_three_matched_lines() -> None:
    result = await _parser().parse_string("aaa bbb ccc\nxxx yyy zzz\n111 222 333")

    assert result.data == [
        '{"index":1,"field1":"aaa","field2":"bbb","field3":"ccc"}',
        '{"index":2,"field1":"xxx","field2":"yyy","field3":"zzz"}',
        '{"index":3,"field1":"111","field2":"222","field3":"333"}',
    ]
    assert result.summary == (
        '{"total":3,"matched":3,"unmatched":0,"skipped":0,"source":"","errors":null}'
    )
    assert result.state is RunState.COMPLETED
    assert not result.cancelled


@pytest.mark.asyncio
async def test_label_projection() -> None:
    parser = _parser(options=ParserOptions(labels=["field3", "field1"]))
    result = await parser.parse_string("aaa bbb ccc")
    assert result.data == ['{"index":1,"field3":"ccc","field1":"aaa"}']


@pytest.mark.asyncio
async def test_pattern_priority_uses_first_added() -> None:
    ps = PatternSet()
    ps.add_pattern(r"(?P<first>\w+) (?P<second>\w+)")
    ps.add_pattern(r"(?P<whole>.+)")
    result = await Parser(ps).parse_string("hello world")
    assert json.loads(result.data[0]) == {"index": 1, "first": "hello", "second": "world"}


@pytest.mark.asyncio
async def test_unmatched_line_counts_once() -> None:
    result = await _parser().parse_string("aaa bbb ccc\nbroken\n111 222 333")
    m = result.metadata
    assert (m.total, m.matched, m.unmatched, m.skipped) == (3, 2, 1, 0)
    assert result.data[1] == "broken"
    # match indexes only advance on matched lines
    assert json.loads(result.data[2])["index"] == 2


@pytest.mark.asyncio
async def test_unmatched_output_can_be_disabled() -> None:
    result = await _parser(options=ParserOptions(disable_unmatched=True)).parse_string(
        "aaa bbb ccc\nbroken"
    )
    assert len(result.data) == 1
    assert result.metadata.unmatched == 1


@pytest.mark.asyncio
async def test_skip_and_keyword_filtered_line_counted_once() -> None:
    parser = _parser(options=ParserOptions(keywords=["keep"], skip_lines=[2]))
    result = await parser.parse_string("keep b c\ndrop b c\nkeep y z\ndrop y z")
    m = result.metadata
    assert (m.total, m.matched, m.unmatched, m.skipped) == (4, 2, 0, 2)
    assert all("drop" not in rec for rec in result.data)


@pytest.mark.asyncio
async def test_counters_invariant_holds() -> None:
    parser = _parser(options=ParserOptions(keywords=["a"], skip_lines=[5]))
    text = "a b c\nbad a\nzzz\na b c\na b c\n\na"
    m = (await parser.parse_string(text)).metadata
    assert m.total == 7
    assert m.total == m.matched + m.unmatched + m.skipped


@pytest.mark.asyncio
async def test_parsing_is_idempotent() -> None:
    parser = _parser(options=ParserOptions(line_number=True))
    text = "aaa bbb ccc\nbroken\n111 222 333\n"
    first = await parser.parse_string(text)
    second = await parser.parse_string(text)
    assert first == second


@pytest.mark.asyncio
async def test_line_number_field_and_numbered_unmatched() -> None:
    result = await _parser(options=ParserOptions(line_number=True)).parse_string(
        "aaa bbb ccc\nbroken"
    )
    assert result.data == [
        '{"index":1,"no":"1","field1":"aaa","field2":"bbb","field3":"ccc"}',
        "2: broken",
    ]


@pytest.mark.asyncio
async def test_sink_receives_prefixed_records_and_summary() -> None:
    sink = ListSink()
    parser = _parser(options=ParserOptions(prefix=True), sink=sink)
    result = await parser.parse_string("aaa bbb ccc\nbroken")

    assert sink.lines == [
        '[ PROCESSED ] {"index":1,"field1":"aaa","field2":"bbb","field3":"ccc"}\n',
        "[ UNMATCHED ] broken\n",
        result.summary + "\n",
    ]
    # in-memory records are never prefixed
    assert result.data[1] == "broken"


@pytest.mark.asyncio
async def test_async_sink_is_awaited() -> None:
    written: list[str] = []

    class AsyncSink:
        async def write(self, s: str) -> None:
            written.append(s)

    await _parser(sink=AsyncSink()).parse_string("aaa bbb ccc")
    assert len(written) == 2


@pytest.mark.asyncio
async def test_line_handler_error_is_recorded_and_run_continues() -> None:
    def picky(values: Sequence[str], labels: Sequence[str], index: int) -> str:
        if "boom" in values:
            raise ValueError("cannot render boom")
        return json_line_handler(values, labels, index)

    result = await _parser(line_handler=picky).parse_string("aaa bbb ccc\nboom b c\n111 222 333")

    assert len(result.data) == 2
    assert result.metadata.matched == 3
    assert result.metadata.errors is not None
    assert [(e.index, e.message) for e in result.metadata.errors] == [(2, "cannot render boom")]


@pytest.mark.asyncio
async def test_metadata_handler_error_is_recorded() -> None:
    def broken(metadata: Metadata) -> str:
        raise RuntimeError("no summary")

    result = await _parser(metadata_handler=broken).parse_string("aaa bbb ccc")

    assert result.summary is None
    assert result.metadata.errors is not None
    assert result.metadata.errors[-1].index == 0
    assert result.metadata.errors[-1].message == "no summary"


@pytest.mark.asyncio
async def test_sink_failure_aborts_with_partial_result() -> None:
    sink = ListSink(fail_after=2)
    parser = _parser(sink=sink)

    with pytest.raises(ParseAbortedError, match="cannot write to sink") as exc_info:
        await parser.parse_string("a b c\nd e f\ng h i\nj k l")

    partial = exc_info.value.result
    assert partial.state is RunState.FAILED
    assert partial.metadata.total == 3
    assert len(partial.data) == 3
    assert len(sink.lines) == 2
    assert isinstance(exc_info.value.__cause__, OSError)


@pytest.mark.asyncio
async def test_read_failure_aborts_with_partial_result() -> None:
    async def flaky() -> AsyncIterator[str]:
        yield "a b c"
        raise OSError("connection reset")

    with pytest.raises(ParseAbortedError, match="cannot read stream") as exc_info:
        await _parser().parse(flaky())

    partial = exc_info.value.result
    assert partial.metadata.total == 1
    assert partial.data == ['{"index":1,"field1":"a","field2":"b","field3":"c"}']


@pytest.mark.asyncio
async def test_line_read_after_signal_is_dropped() -> None:
    cancel = asyncio.Event()

    async def endless() -> AsyncIterator[str]:
        n = 0
        while True:
            n += 1
            if n == 3:
                cancel.set()
            yield f"line{n} b c"

    result = await _parser().parse(endless(), cancel=cancel)

    assert result.state is RunState.CANCELLED
    assert result.cancelled
    assert result.metadata.total == 2
    assert [json.loads(r)["field1"] for r in result.data] == ["line1", "line2"]


@pytest.mark.asyncio
async def test_cancel_while_read_is_pending() -> None:
    cancel = asyncio.Event()
    reader_closed = asyncio.Event()

    async def idle_after_one() -> AsyncIterator[str]:
        try:
            yield "a b c"
            await asyncio.Event().wait()
            yield "never read"
        finally:
            reader_closed.set()

    async def interrupt() -> None:
        await asyncio.sleep(0.01)
        cancel.set()

    task = asyncio.create_task(interrupt())
    result = await asyncio.wait_for(_parser().parse(idle_after_one(), cancel=cancel), timeout=5)
    await task

    assert result.state is RunState.CANCELLED
    assert result.metadata.total == 1
    assert result.data == ['{"index":1,"field1":"a","field2":"b","field3":"c"}']
    assert reader_closed.is_set()


@pytest.mark.asyncio
async def test_threading_event_is_checked_after_each_read() -> None:
    cancel = threading.Event()

    def lines() -> Iterator[str]:
        yield "a b c"
        cancel.set()
        yield "d e f"

    result = await _parser().parse(lines(), cancel=cancel)

    assert result.cancelled
    assert result.metadata.total == 1


@pytest.mark.asyncio
async def test_cancel_before_start_processes_nothing() -> None:
    cancel = asyncio.Event()
    cancel.set()
    result = await _parser().parse(["a b c"], cancel=cancel)
    assert result.cancelled
    assert result.metadata.total == 0
    assert result.data == []


def test_classify_precedence() -> None:
    engine = Engine(
        matcher=PatternSet().add_pattern(TRIPLE, FIELDS),
        handlers=Handlers(
            line=json_line_handler,
            metadata=json_metadata_handler,
            unmatched=raw_unmatched_handler,
        ),
        line_filter=LineFilter.build(keywords=["x"], skip_lines=[1]),
    )
    assert engine.classify(1, "x y z", 1) == Skipped(1)
    assert engine.classify(2, "a b c", 1) == Skipped(2)
    assert engine.classify(3, "x", 1) == Unmatched(line="x", line_no=3)
    assert engine.classify(4, "x y z", 1) == Matched(
        fields={"field1": "x", "field2": "y", "field3": "z"}, match_index=1
    )
