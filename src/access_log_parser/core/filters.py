"""Keyword, skip-line and label filters applied around matching."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from .errors import ConfigurationError

LINE_NUMBER_FIELD = "no"


@dataclass(frozen=True, slots=True)
class LineFilter:
    """Pre-match and post-match filtering for one parser configuration."""

    keywords: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    skip_lines: frozenset[int] = frozenset()

    @classmethod
    def build(
        cls,
        *,
        keywords: Iterable[str] | None = None,
        labels: Sequence[str] | None = None,
        skip_lines: Iterable[int] | None = None,
        field_names: Sequence[str] | None = None,
    ) -> LineFilter:
        """Validate filter settings against the matcher's field names.

        ``field_names`` is None for matchers whose fields are only known per
        line; label validation is skipped for those.
        """
        kw = tuple(k for k in (keywords or ()) if k)
        lbl = tuple(labels or ())
        skips = frozenset(skip_lines or ())

        if len(set(lbl)) != len(lbl):
            raise ConfigurationError("duplicate label in label set")
        if field_names is not None:
            known = set(field_names)
            unknown = [name for name in lbl if name not in known]
            if unknown:
                raise ConfigurationError(f"unknown label(s): {', '.join(unknown)}")
        bad = sorted(n for n in skips if n < 1)
        if bad:
            raise ConfigurationError(f"skip line numbers must be >= 1, got {bad[0]}")

        return cls(keywords=kw, labels=lbl, skip_lines=skips)

    def is_skipped(self, line_no: int) -> bool:
        return line_no in self.skip_lines

    def keep(self, line: str) -> bool:
        """Keyword test (OR, case-sensitive); no keywords keeps every line."""
        if not self.keywords:
            return True
        return any(k in line for k in self.keywords)

    def project(self, fields: Mapping[str, str]) -> tuple[list[str], list[str]]:
        """Return (labels, values) restricted to and ordered by the label set."""
        if not self.labels:
            return list(fields.keys()), list(fields.values())
        labels: list[str] = []
        values: list[str] = []
        for name in self.labels:
            if name in fields:
                labels.append(name)
                values.append(fields[name])
        return labels, values
