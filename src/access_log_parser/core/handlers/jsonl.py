"""JSON renderers (compact and indented)."""

from __future__ import annotations

import json
from collections.abc import Sequence

from ..models import Metadata


def _record(values: Sequence[str], labels: Sequence[str], index: int) -> dict[str, object]:
    obj: dict[str, object] = {"index": index}
    for label, value in zip(labels, values):
        obj[label] = value
    return obj


def json_line_handler(values: Sequence[str], labels: Sequence[str], index: int) -> str:
    """Compact JSON object: ``{"index":1,"field":"value",...}``."""
    return json.dumps(_record(values, labels, index), ensure_ascii=False, separators=(",", ":"))


def pretty_json_line_handler(values: Sequence[str], labels: Sequence[str], index: int) -> str:
    return json.dumps(_record(values, labels, index), ensure_ascii=False, indent=2)


def _metadata_excludes(m: Metadata) -> set[str] | None:
    # entries only exist for archive runs
    return {"entries"} if m.entries is None else None


def json_metadata_handler(metadata: Metadata) -> str:
    """Compact JSON metadata; ``errors`` is null when nothing failed."""
    return metadata.model_dump_json(exclude=_metadata_excludes(metadata))


def pretty_json_metadata_handler(metadata: Metadata) -> str:
    return metadata.model_dump_json(indent=2, exclude=_metadata_excludes(metadata))
