"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: callable actions (parse a log file into structured records)
- Resources: addressable data blobs (presets, metadata schema, sample log)

Run locally (stdio):
    python -m access_log_parser.server.log_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from access_log_parser.resources.registry import register_resources
from access_log_parser.tools.parse import parse_log_impl

LOGGER = logging.getLogger(__name__)

LOG_LEVEL_ENV = "ACCESS_LOG_PARSER_LOG_LEVEL"


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("access-log-parser", json_response=True)

register_resources(mcp)


@mcp.tool()
async def parse_log(
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
    """Parse an access log file into structured records.

    Parameters
    ----------
    log_path:
        Path to a local log file. Plain text, .gz and .zip are supported.
    preset:
        Built-in layout: apache_clf, apache_clf_vhost, s3, cloudfront, alb,
        nlb, clb or ltsv. Mutually exclusive with patterns.
    patterns:
        Regexes with named capture groups, tried in order; the first match wins.
    keywords:
        Keep only lines containing at least one keyword (case-sensitive).
    labels:
        Output only these fields, in this order.
    skip_lines:
        1-based raw line numbers to skip.
    line_number:
        Add the raw line number to each record as field "no".
    include_unmatched:
        Whether lines matching no pattern appear in the output.
    output_format:
        json, pretty, ltsv, kv or tsv.
    compression:
        auto (by suffix), none, gzip or zip.
    zip_glob:
        Glob selecting archive entries when compression is zip.
    limit:
        Maximum number of records returned (hard-capped in the implementation).

    Returns
    -------
    dict:
        {"count": int, "truncated": bool, "data": list[str], "metadata": dict, "state": str}
    """
    return await parse_log_impl(
        log_path=log_path,
        preset=preset,
        patterns=patterns,
        keywords=keywords,
        labels=labels,
        skip_lines=skip_lines,
        line_number=line_number,
        include_unmatched=include_unmatched,
        output_format=output_format,
        compression=compression,
        zip_glob=zip_glob,
        limit=limit,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
