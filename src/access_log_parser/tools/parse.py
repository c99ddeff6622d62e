"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from access_log_parser.core.config import ParserOptions
from access_log_parser.core.errors import ConfigurationError
from access_log_parser.core.handlers import OUTPUT_FORMATS
from access_log_parser.core.models import Result
from access_log_parser.core.parser import Parser
from access_log_parser.core.presets import build_parser

DEFAULT_LIMIT = 200
HARD_LIMIT = 5000
COMPRESSIONS = ("auto", "none", "gzip", "zip")


def _detect_compression(path: str, compression: str) -> str:
    """Resolve ``auto`` from the file suffix."""
    if compression not in COMPRESSIONS:
        valid = ", ".join(COMPRESSIONS)
        raise ConfigurationError(f"Unknown compression '{compression}'. Valid values: {valid}.")
    if compression != "auto":
        return compression
    suffix = Path(path).suffix.lower()
    if suffix == ".gz":
        return "gzip"
    if suffix == ".zip":
        return "zip"
    return "none"


async def _run(parser: Parser, log_path: str, compression: str, zip_glob: str) -> Result:
    if compression == "gzip":
        return await parser.parse_gzip(log_path)
    if compression == "zip":
        return await parser.parse_zip_entries(log_path, zip_glob)
    return await parser.parse_file(log_path)


async def parse_log_impl(
    *,
    log_path: str,
    preset: str | None = None,
    patterns: Sequence[str] | None = None,
    keywords: Sequence[str] | None = None,
    labels: Sequence[str] | None = None,
    skip_lines: Sequence[int] | None = None,
    line_number: bool = False,
    include_unmatched: bool = True,
    output_format: str = "json",
    compression: str = "auto",
    zip_glob: str = "*",
    limit: int | None = None,
) -> dict[str, Any]:
    """Implementation for the `parse_log` MCP tool.

    Notes
    -----
    - exactly one of preset/patterns selects the matcher
    - limit caps the returned records only; metadata always covers the whole run
    """
    if not preset and not patterns:
        raise ConfigurationError("Either preset or patterns is required.")
    if output_format not in OUTPUT_FORMATS:
        valid = ", ".join(sorted(OUTPUT_FORMATS))
        raise ConfigurationError(f"Unknown output format '{output_format}'. Valid values: {valid}.")
    if limit is None:
        limit = DEFAULT_LIMIT
    if limit <= 0:
        raise ConfigurationError("limit must be > 0")
    if limit > HARD_LIMIT:
        limit = HARD_LIMIT

    line_handler, metadata_handler = OUTPUT_FORMATS[output_format]
    parser = build_parser(
        preset=preset,
        patterns=patterns or (),
        line_handler=line_handler,
        metadata_handler=metadata_handler,
        options=ParserOptions(
            keywords=tuple(keywords or ()),
            labels=tuple(labels or ()),
            skip_lines=tuple(skip_lines or ()),
            line_number=line_number,
            disable_unmatched=not include_unmatched,
        ),
    )

    result = await _run(parser, log_path, _detect_compression(log_path, compression), zip_glob)
    return {
        "count": len(result.data),
        "truncated": len(result.data) > limit,
        "data": result.data[:limit],
        "metadata": result.metadata.model_dump(mode="json", exclude_none=True),
        "state": result.state.value,
    }
