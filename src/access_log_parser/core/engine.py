"""Line-by-line parsing engine.

Consumes one line stream, applies the filter and matcher, renders records and
accumulates counters into a :class:`Result`. A run ends as completed,
cancelled (the token was set) or failed (read or sink error); partial progress
is never discarded.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field
from typing import Any, Protocol

from .config import PROCESSED_PREFIX, UNMATCHED_PREFIX
from .errors import ParseAbortedError
from .filters import LINE_NUMBER_FIELD, LineFilter
from .handlers import Handlers
from .models import (
    ErrorRecord,
    Matched,
    MatchOutcome,
    Metadata,
    Result,
    RunState,
    Skipped,
    Unmatched,
)
from .patterns import LineMatcher

logger = logging.getLogger(__name__)


class CancelToken(Protocol):
    """Anything exposing ``is_set()`` (asyncio.Event, threading.Event, ...)."""

    def is_set(self) -> bool: ...


class Sink(Protocol):
    """Live output destination; ``write`` may return an awaitable."""

    def write(self, s: str) -> Any: ...


@dataclass(slots=True)
class _RunState:
    """Mutable per-run state; never shared between runs."""

    data: list[str] = field(default_factory=list)
    errors: list[ErrorRecord] = field(default_factory=list)
    total: int = 0
    matched: int = 0
    unmatched: int = 0
    skipped: int = 0


async def _write(sink: Sink, text: str) -> None:
    out = sink.write(text + "\n")
    if inspect.isawaitable(out):
        await out


_CANCELLED = object()


async def _next_line(it: AsyncIterator[str], cancel: CancelToken | None) -> Any:
    """Read one line, racing the read against an asyncio cancel token.

    Returns ``_CANCELLED`` when the token is set while the read is pending;
    the pending read is cancelled. Other tokens are only polled between reads.
    """
    if not isinstance(cancel, asyncio.Event):
        return await anext(it)

    read = asyncio.ensure_future(anext(it))
    stop = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({read, stop}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        read.cancel()
        raise
    finally:
        stop.cancel()

    if not read.done():
        read.cancel()
        await asyncio.wait({read})
        return _CANCELLED
    return read.result()


@dataclass(frozen=True, slots=True)
class Engine:
    matcher: LineMatcher
    handlers: Handlers
    line_filter: LineFilter = LineFilter()
    line_number: bool = False
    disable_unmatched: bool = False
    prefix: bool = False
    sink: Sink | None = None

    def classify(self, line_no: int, line: str, match_index: int) -> MatchOutcome:
        """Decide what happens to one raw line (``match_index`` is the next index)."""
        if self.line_filter.is_skipped(line_no):
            return Skipped(line_no)
        # Lines failing the keyword filter count as skipped.
        if not self.line_filter.keep(line):
            return Skipped(line_no)
        fields = self.matcher.match(line)
        if fields is None:
            return Unmatched(line=line, line_no=line_no)
        return Matched(fields=fields, match_index=match_index)

    def _render(self, outcome: Matched | Unmatched, line_no: int) -> str:
        if isinstance(outcome, Unmatched):
            return self.handlers.unmatched(outcome.line, outcome.line_no)
        labels, values = self.line_filter.project(outcome.fields)
        if self.line_number:
            if LINE_NUMBER_FIELD in labels:
                # only reachable for matchers with per-line fields (LTSV)
                i = labels.index(LINE_NUMBER_FIELD)
                del labels[i], values[i]
            labels.insert(0, LINE_NUMBER_FIELD)
            values.insert(0, str(line_no))
        return self.handlers.line(values, labels, outcome.match_index)

    async def run(
        self,
        lines: AsyncIterable[str],
        *,
        source: str = "",
        cancel: CancelToken | None = None,
        render: bool = True,
    ) -> Result:
        """Process ``lines`` to exhaustion, cancellation or failure.

        Raises :class:`ParseAbortedError` (carrying the partial result) when
        reading the stream or writing to the sink fails. With ``render`` the
        metadata is rendered and written to the sink at the end of the run;
        without it ``Result.summary`` stays None and nothing is recorded for
        the metadata handler, so the caller can render a merged result once.
        """
        st = _RunState()
        state = RunState.RUNNING
        it = aiter(lines)
        line_no = 0
        logger.debug("run started (source=%r)", source)

        while True:
            if cancel is not None and cancel.is_set():
                state = RunState.CANCELLED
                break
            try:
                line = await _next_line(it, cancel)
            except StopAsyncIteration:
                state = RunState.COMPLETED
                break
            except Exception as exc:
                raise self._abort(st, source, f"cannot read stream: {exc}", render=render) from exc
            # A line that arrives after the signal is dropped.
            if line is _CANCELLED or (cancel is not None and cancel.is_set()):
                state = RunState.CANCELLED
                break

            line_no += 1
            st.total += 1
            outcome = self.classify(line_no, line, st.matched + 1)

            if isinstance(outcome, Skipped):
                st.skipped += 1
                continue
            if isinstance(outcome, Matched):
                st.matched += 1
                record_prefix = PROCESSED_PREFIX
            else:
                st.unmatched += 1
                if self.disable_unmatched:
                    continue
                record_prefix = UNMATCHED_PREFIX

            try:
                record = self._render(outcome, line_no)
            except Exception as exc:
                logger.warning("cannot render line %d: %s", line_no, exc)
                st.errors.append(ErrorRecord(index=line_no, message=str(exc)))
                continue

            st.data.append(record)
            if self.sink is None:
                continue
            try:
                await _write(self.sink, (record_prefix if self.prefix else "") + record)
            except Exception as exc:
                raise self._abort(st, source, f"cannot write to sink: {exc}", render=render) from exc

        logger.debug("run %s after %d line(s) (source=%r)", state.value, line_no, source)
        result = self._finalize(st, source=source, state=state, render=render)
        if render:
            await self.emit_summary(result)
        return result

    def _abort(self, st: _RunState, source: str, message: str, *, render: bool) -> ParseAbortedError:
        logger.debug("run failed (source=%r): %s", source, message)
        result = self._finalize(st, source=source, state=RunState.FAILED, render=render)
        return ParseAbortedError(message, result=result)

    def _finalize(self, st: _RunState, *, source: str, state: RunState, render: bool) -> Result:
        metadata = Metadata(
            total=st.total,
            matched=st.matched,
            unmatched=st.unmatched,
            skipped=st.skipped,
            source=source,
            errors=st.errors or None,
        )
        summary: str | None = None
        if render:
            try:
                summary = self.handlers.metadata(metadata)
            except Exception as exc:
                logger.warning("cannot render metadata: %s", exc)
                st.errors.append(ErrorRecord(index=0, message=str(exc)))
                metadata.errors = st.errors

        return Result(data=st.data, metadata=metadata, summary=summary, state=state)

    async def emit_summary(self, result: Result) -> None:
        """Write the rendered metadata to the sink, if both exist."""
        if self.sink is None or result.summary is None:
            return
        try:
            await _write(self.sink, result.summary)
        except Exception as exc:
            result.state = RunState.FAILED
            raise ParseAbortedError(f"cannot write to sink: {exc}", result=result) from exc
