"""Parser facade: binds a matcher, handlers and options to per-source entry points.

Each entry point only turns its source into a line stream plus a source name
and hands it to the :class:`~access_log_parser.core.engine.Engine`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from .config import ParserOptions, resolve_options
from .engine import CancelToken, Engine, Sink
from .errors import ConfigurationError, ParseAbortedError
from .filters import LINE_NUMBER_FIELD, LineFilter
from .handlers import (
    Handlers,
    LineHandler,
    MetadataHandler,
    UnmatchedHandler,
    json_line_handler,
    json_metadata_handler,
    numbered_unmatched_handler,
    raw_unmatched_handler,
)
from .models import ErrorRecord, Metadata, Result, RunState
from .patterns import LineMatcher, PatternSet
from .sources import (
    LineSource,
    iter_lines,
    matching_entries,
    open_gzip,
    open_string,
    open_text,
    open_zip,
    open_zip_entry,
    resolve_path,
)

logger = logging.getLogger(__name__)


def merge_results(results: Iterable[Result], *, source: str, entries: list[str]) -> Result:
    """Combine per-entry results in processing order."""
    merged = Result(metadata=Metadata(source=source, entries=list(entries)))
    errors: list[ErrorRecord] = []
    for name, r in zip(entries, results):
        merged.data.extend(r.data)
        m = r.metadata
        merged.metadata.total += m.total
        merged.metadata.matched += m.matched
        merged.metadata.unmatched += m.unmatched
        merged.metadata.skipped += m.skipped
        for e in m.errors or ():
            errors.append(ErrorRecord(index=e.index, message=f"{name}: {e.message}"))
        if merged.state is RunState.COMPLETED and r.state is not RunState.COMPLETED:
            merged.state = r.state
    merged.metadata.errors = errors or None
    return merged


class Parser:
    """Access-log parser bound to one matcher and one set of handlers."""

    def __init__(
        self,
        matcher: LineMatcher,
        *,
        line_handler: LineHandler | None = None,
        metadata_handler: MetadataHandler | None = None,
        unmatched_handler: UnmatchedHandler | None = None,
        options: ParserOptions | None = None,
        sink: Sink | None = None,
    ) -> None:
        if isinstance(matcher, PatternSet):
            if not len(matcher):
                raise ConfigurationError("cannot parse input: no patterns provided")
            # Later changes to the caller's set must not leak into this parser.
            matcher = PatternSet(matcher.patterns)

        self._options = opts = resolve_options(options)
        field_names = matcher.field_names
        if opts.line_number and field_names is not None and LINE_NUMBER_FIELD in field_names:
            raise ConfigurationError(
                f"field name '{LINE_NUMBER_FIELD}' is reserved when line numbers are shown"
            )

        if unmatched_handler is None:
            unmatched_handler = (
                numbered_unmatched_handler if opts.line_number else raw_unmatched_handler
            )
        self._handlers = Handlers(
            line=line_handler or json_line_handler,
            metadata=metadata_handler or json_metadata_handler,
            unmatched=unmatched_handler,
        )
        self._matcher = matcher
        self._engine = Engine(
            matcher=matcher,
            handlers=self._handlers,
            line_filter=LineFilter.build(
                keywords=opts.keywords,
                labels=opts.labels,
                skip_lines=opts.skip_lines,
                field_names=field_names,
            ),
            line_number=opts.line_number,
            disable_unmatched=opts.disable_unmatched,
            prefix=opts.prefix,
            sink=sink,
        )

    @property
    def matcher(self) -> LineMatcher:
        return self._matcher

    @property
    def handlers(self) -> Handlers:
        return self._handlers

    @property
    def options(self) -> ParserOptions:
        return self._options

    def _lines(self, source: LineSource):
        return iter_lines(
            source,
            encoding=self._options.encoding,
            decode_errors=self._options.decode_errors,
        )

    async def parse(
        self, stream: LineSource, *, source: str = "", cancel: CancelToken | None = None
    ) -> Result:
        """Parse a live or in-memory stream (async iterable, iterable or text IO)."""
        return await self._engine.run(self._lines(stream), source=source, cancel=cancel)

    async def parse_string(self, text: str, *, cancel: CancelToken | None = None) -> Result:
        async with open_string(text) as f:
            return await self._engine.run(self._lines(f), source="", cancel=cancel)

    async def parse_file(self, path: str | Path, *, cancel: CancelToken | None = None) -> Result:
        p = resolve_path(path)
        opts = self._options
        async with open_text(p, encoding=opts.encoding, decode_errors=opts.decode_errors) as f:
            return await self._engine.run(self._lines(f), source=p.name, cancel=cancel)

    async def parse_gzip(self, path: str | Path, *, cancel: CancelToken | None = None) -> Result:
        p = resolve_path(path)
        opts = self._options
        async with open_gzip(p, encoding=opts.encoding, decode_errors=opts.decode_errors) as f:
            return await self._engine.run(self._lines(f), source=p.name, cancel=cancel)

    async def parse_zip_entries(
        self,
        path: str | Path,
        glob_pattern: str = "*",
        *,
        cancel: CancelToken | None = None,
    ) -> Result:
        """Parse matching archive entries one after another and merge the results."""
        p = resolve_path(path)
        opts = self._options
        results: list[Result] = []
        names: list[str] = []

        with open_zip(p) as z:
            for info in matching_entries(z, glob_pattern):
                logger.debug("parsing zip entry %s from %s", info.filename, p.name)
                names.append(info.filename)
                try:
                    async with open_zip_entry(
                        z, info, encoding=opts.encoding, decode_errors=opts.decode_errors
                    ) as f:
                        r = await self._engine.run(
                            self._lines(f), source=info.filename, cancel=cancel, render=False
                        )
                except ParseAbortedError as exc:
                    results.append(exc.result)
                    merged = self._merge(results, source=p.name, entries=names)
                    raise ParseAbortedError(str(exc), result=merged) from exc
                results.append(r)
                if r.state is RunState.CANCELLED:
                    break

        merged = self._merge(results, source=p.name, entries=names)
        await self._engine.emit_summary(merged)
        return merged

    def _merge(self, results: list[Result], *, source: str, entries: list[str]) -> Result:
        merged = merge_results(results, source=source, entries=entries)
        try:
            merged.summary = self._handlers.metadata(merged.metadata)
        except Exception as exc:
            logger.warning("cannot render metadata: %s", exc)
            merged.metadata.errors = [
                *(merged.metadata.errors or ()),
                ErrorRecord(index=0, message=str(exc)),
            ]
        return merged
