"""Record and metadata renderers.

A default renderer is used unless another is registered when the parser is
constructed. ``OUTPUT_FORMATS`` pairs line and metadata renderers by name.
"""

from __future__ import annotations

from .base import Handlers, LineHandler, MetadataHandler, UnmatchedHandler
from .jsonl import (
    json_line_handler,
    json_metadata_handler,
    pretty_json_line_handler,
    pretty_json_metadata_handler,
)
from .kv import kv_line_handler, kv_metadata_handler
from .ltsv import ltsv_line_handler, ltsv_metadata_handler
from .tsv import tsv_line_handler
from .unmatched import numbered_unmatched_handler, raw_unmatched_handler

OUTPUT_FORMATS: dict[str, tuple[LineHandler, MetadataHandler]] = {
    "json": (json_line_handler, json_metadata_handler),
    "pretty": (pretty_json_line_handler, pretty_json_metadata_handler),
    "ltsv": (ltsv_line_handler, ltsv_metadata_handler),
    "kv": (kv_line_handler, kv_metadata_handler),
    "tsv": (tsv_line_handler, json_metadata_handler),
}

__all__ = [
    "OUTPUT_FORMATS",
    "Handlers",
    "LineHandler",
    "MetadataHandler",
    "UnmatchedHandler",
    "json_line_handler",
    "json_metadata_handler",
    "kv_line_handler",
    "kv_metadata_handler",
    "ltsv_line_handler",
    "ltsv_metadata_handler",
    "numbered_unmatched_handler",
    "pretty_json_line_handler",
    "pretty_json_metadata_handler",
    "raw_unmatched_handler",
    "tsv_line_handler",
]
