"""Key-value (``label="value"``) renderers."""

from __future__ import annotations

import json
from collections.abc import Sequence

from ..models import Metadata


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def kv_line_handler(values: Sequence[str], labels: Sequence[str], index: int) -> str:
    parts = [f"index={index}"]
    parts.extend(f"{label}={_quote(value)}" for label, value in zip(labels, values))
    return " ".join(parts)


def kv_metadata_handler(metadata: Metadata) -> str:
    errors = json.dumps(
        [e.model_dump() for e in metadata.errors] if metadata.errors else None,
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return (
        f"total={metadata.total} matched={metadata.matched} "
        f"unmatched={metadata.unmatched} skipped={metadata.skipped} "
        f"source={_quote(metadata.source)} errors={errors}"
    )
