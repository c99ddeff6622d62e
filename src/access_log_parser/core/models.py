"""Core data models for access-log parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field


class RunState(str, Enum):
    """Lifecycle of a single engine run."""

    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ErrorRecord(BaseModel):
    """Non-fatal error raised while rendering one record."""

    index: int = Field(description="Raw line number of the record (0 for metadata).")
    message: str


class Metadata(BaseModel):
    """Run-level counters; total == matched + unmatched + skipped."""

    total: int = Field(default=0, ge=0)
    matched: int = Field(default=0, ge=0)
    unmatched: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    source: str = ""
    errors: list[ErrorRecord] | None = None
    entries: list[str] | None = None  # only set for archive runs


@dataclass(frozen=True, slots=True)
class Matched:
    """A line matched a pattern."""

    fields: dict[str, str]
    match_index: int


@dataclass(frozen=True, slots=True)
class Unmatched:
    """A line matched no pattern."""

    line: str
    line_no: int


@dataclass(frozen=True, slots=True)
class Skipped:
    """A line was excluded before matching (skip set or keyword filter)."""

    line_no: int


MatchOutcome = Matched | Unmatched | Skipped


@dataclass(slots=True)
class Result:
    """Formatted records plus metadata, produced once per run."""

    data: list[str] = field(default_factory=list)
    metadata: Metadata = field(default_factory=Metadata)
    summary: str | None = None  # rendered metadata; None when rendering failed
    state: RunState = RunState.COMPLETED

    @property
    def cancelled(self) -> bool:
        return self.state is RunState.CANCELLED
