"""Handler interfaces and the handler bundle bound to a parser."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from ..models import Metadata


class LineHandler(Protocol):
    """Render one matched record."""

    def __call__(self, values: Sequence[str], labels: Sequence[str], index: int) -> str: ...


class UnmatchedHandler(Protocol):
    """Render a raw line that matched no pattern."""

    def __call__(self, line: str, line_no: int) -> str: ...


class MetadataHandler(Protocol):
    """Render end-of-run metadata."""

    def __call__(self, metadata: Metadata) -> str: ...


@dataclass(frozen=True, slots=True)
class Handlers:
    """Renderers fixed for the lifetime of a parser; they must be pure."""

    line: LineHandler
    metadata: MetadataHandler
    unmatched: UnmatchedHandler
