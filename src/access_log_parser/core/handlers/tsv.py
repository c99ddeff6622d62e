"""TSV row renderer."""

from __future__ import annotations

from collections.abc import Sequence


def tsv_line_handler(values: Sequence[str], labels: Sequence[str], index: int) -> str:
    """Index followed by the values, tab separated (labels are not emitted)."""
    return "\t".join([str(index), *values])
