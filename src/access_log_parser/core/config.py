"""Parser options and environment overrides."""

from __future__ import annotations

import codecs
import os
from collections.abc import Sequence
from dataclasses import dataclass, replace

from .errors import ConfigurationError

ENCODING_ENV = "ACCESS_LOG_PARSER_ENCODING"
DECODE_ERRORS_ENV = "ACCESS_LOG_PARSER_DECODE_ERRORS"

PROCESSED_PREFIX = "[ PROCESSED ] "
UNMATCHED_PREFIX = "[ UNMATCHED ] "


@dataclass(frozen=True, slots=True)
class ParserOptions:
    keywords: Sequence[str] = ()
    labels: Sequence[str] = ()
    skip_lines: Sequence[int] = ()

    # Display
    line_number: bool = False
    disable_unmatched: bool = False
    prefix: bool = False  # prefix sink writes with [ PROCESSED ] / [ UNMATCHED ]

    # Decoding of file/stream sources
    encoding: str = "utf-8"
    decode_errors: str = "replace"


def _check_encoding(value: str, *, name: str) -> str:
    try:
        codecs.lookup(value)
    except LookupError as exc:
        raise ConfigurationError(f"{name} is not a known encoding: {value!r}") from exc
    return value


def _check_error_handler(value: str, *, name: str) -> str:
    try:
        codecs.lookup_error(value)
    except LookupError as exc:
        raise ConfigurationError(f"{name} is not a known error handler: {value!r}") from exc
    return value


def resolve_options(opts: ParserOptions | None) -> ParserOptions:
    """Return options with optional env overrides applied."""
    if opts is None:
        opts = ParserOptions()

    changes: dict[str, str] = {}
    env = os.getenv(ENCODING_ENV)
    if env:
        changes["encoding"] = _check_encoding(env, name=ENCODING_ENV)
    env = os.getenv(DECODE_ERRORS_ENV)
    if env:
        changes["decode_errors"] = _check_error_handler(env, name=DECODE_ERRORS_ENV)

    _check_encoding(changes.get("encoding", opts.encoding), name="encoding")
    _check_error_handler(changes.get("decode_errors", opts.decode_errors), name="decode_errors")

    if not changes:
        return opts
    return replace(opts, **changes)
