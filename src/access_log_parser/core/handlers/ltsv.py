"""LTSV (Labeled Tab-Separated Values) renderers."""

from __future__ import annotations

import json
from collections.abc import Sequence

from ..models import Metadata


def _value(value: str) -> str:
    return value if value else "-"


def ltsv_line_handler(values: Sequence[str], labels: Sequence[str], index: int) -> str:
    parts = [f"index:{index}"]
    parts.extend(f"{label}:{_value(value)}" for label, value in zip(labels, values))
    return "\t".join(parts)


def ltsv_metadata_handler(metadata: Metadata) -> str:
    errors = json.dumps(
        [e.model_dump() for e in metadata.errors] if metadata.errors else None,
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return "\t".join(
        [
            f"total:{metadata.total}",
            f"matched:{metadata.matched}",
            f"unmatched:{metadata.unmatched}",
            f"skipped:{metadata.skipped}",
            f"source:{_value(metadata.source)}",
            f"errors:{errors}",
        ]
    )
