from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from collections.abc import Sequence

from access_log_parser.core.config import ParserOptions
from access_log_parser.core.errors import ConfigurationError, ParseAbortedError
from access_log_parser.core.handlers import OUTPUT_FORMATS
from access_log_parser.core.models import Result
from access_log_parser.core.parser import Parser
from access_log_parser.core.presets import PRESETS, build_parser
from access_log_parser.core.sources import thread_lines

LOG_LEVEL_ENV = "ACCESS_LOG_PARSER_LOG_LEVEL"

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _positive_int(s: str) -> int:
    try:
        n = int(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not a line number: {s!r}") from e
    if n < 1:
        raise argparse.ArgumentTypeError("line numbers start at 1")
    return n


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="access-log-parser",
        description="Parse access logs line by line into structured records.",
    )
    p.add_argument("source", help="Log file path, or '-' to stream from stdin")

    which = p.add_mutually_exclusive_group(required=True)
    which.add_argument("--preset", choices=sorted(PRESETS), help="Built-in log layout")
    which.add_argument(
        "--pattern",
        dest="patterns",
        action="append",
        help="Regex with named capture groups; repeat for lower-priority fallbacks",
    )

    p.add_argument("--keyword", dest="keywords", action="append", default=[], help="Keep lines containing any keyword")
    p.add_argument("--label", dest="labels", action="append", default=[], help="Output only these fields, in this order")
    p.add_argument("--skip", dest="skip_lines", action="append", type=_positive_int, default=[], help="Skip line N (1-based)")
    p.add_argument("--line-number", action="store_true", help="Add the raw line number as field 'no'")
    p.add_argument("--no-unmatched", dest="disable_unmatched", action="store_true", help="Do not emit unmatched lines")
    p.add_argument("--prefix", action="store_true", help="Prefix output with [ PROCESSED ] / [ UNMATCHED ]")
    p.add_argument("--format", choices=sorted(OUTPUT_FORMATS), default="json", help="Output format (default: json)")

    archive = p.add_mutually_exclusive_group()
    archive.add_argument("--gzip", action="store_true", help="Source is gzip-compressed")
    archive.add_argument("--zip", dest="zip_glob", metavar="GLOB", default=None, help="Source is a zip archive; parse entries matching GLOB")
    return p


def _make_parser(args: argparse.Namespace) -> Parser:
    line_handler, metadata_handler = OUTPUT_FORMATS[args.format]
    options = ParserOptions(
        keywords=tuple(args.keywords),
        labels=tuple(args.labels),
        skip_lines=tuple(args.skip_lines),
        line_number=args.line_number,
        disable_unmatched=args.disable_unmatched,
        prefix=args.prefix,
    )
    return build_parser(
        preset=args.preset,
        patterns=args.patterns or (),
        line_handler=line_handler,
        metadata_handler=metadata_handler,
        options=options,
        sink=sys.stdout,
    )


async def _run(parser: Parser, args: argparse.Namespace) -> Result:
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    handles_sigint = True
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
    except NotImplementedError:
        handles_sigint = False
        logger.debug("SIGINT handler not supported on this platform")

    try:
        if args.source == "-":
            return await parser.parse(thread_lines(sys.stdin.buffer), source="-", cancel=cancel)
        if args.zip_glob is not None:
            return await parser.parse_zip_entries(args.source, args.zip_glob, cancel=cancel)
        if args.gzip:
            return await parser.parse_gzip(args.source, cancel=cancel)
        return await parser.parse_file(args.source, cancel=cancel)
    finally:
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)


def main(argv: Sequence[str] | None = None) -> None:
    _configure_logging()
    p = _build_arg_parser()
    args = p.parse_args(argv)
    if args.source == "-" and (args.gzip or args.zip_glob is not None):
        p.error("--gzip and --zip need a file path, not stdin")

    try:
        parser = _make_parser(args)
        result = asyncio.run(_run(parser, args))
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)
    except ParseAbortedError as e:
        sys.stdout.flush()
        m = e.result.metadata
        print(f"Aborted after {m.total} line(s): {e}", file=sys.stderr)
        raise SystemExit(1)

    if result.cancelled:
        logger.info("interrupted after %d line(s)", result.metadata.total)


if __name__ == "__main__":
    main()
