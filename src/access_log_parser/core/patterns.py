"""Ordered regex patterns and the line matchers built on them."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from .errors import ConfigurationError


class LineMatcher(Protocol):
    """Matcher interface: return field values if the line matches, else None."""

    @property
    def field_names(self) -> tuple[str, ...] | None:
        """All field names the matcher can produce, or None when dynamic."""
        ...

    def match(self, line: str) -> dict[str, str] | None:
        """Return an ordered field->value mapping for the line, or None."""
        ...


@dataclass(frozen=True, slots=True)
class Pattern:
    """A compiled regex and the field names its capture groups populate."""

    regex: re.Pattern[str]
    fields: tuple[str, ...]

    @classmethod
    def compile(cls, regex: str | re.Pattern[str], fields: Sequence[str] | None = None) -> Pattern:
        """Compile and validate a pattern.

        With ``fields`` omitted, every capture group must be named and the
        group names become the field names.
        """
        try:
            compiled = re.compile(regex) if isinstance(regex, str) else regex
        except re.error as e:
            raise ConfigurationError(f"invalid pattern: {e}") from e

        groups = compiled.groups
        if fields is None:
            if groups == 0:
                raise ConfigurationError("invalid pattern: capture group not found")
            names = [""] * groups
            for name, idx in compiled.groupindex.items():
                names[idx - 1] = name
            if "" in names:
                raise ConfigurationError("invalid pattern: non-named capture group detected")
            field_names = tuple(names)
        else:
            field_names = tuple(fields)
            if not field_names:
                raise ConfigurationError("invalid pattern: field list is empty")
            if len(field_names) != groups:
                raise ConfigurationError(
                    f"invalid pattern: {groups} capture group(s) for {len(field_names)} field(s)"
                )

        seen: set[str] = set()
        for name in field_names:
            if name in seen:
                raise ConfigurationError(f"invalid pattern: duplicate field name '{name}'")
            seen.add(name)

        return cls(regex=compiled, fields=field_names)

    def match(self, line: str) -> dict[str, str] | None:
        m = self.regex.search(line)
        if m is None:
            return None
        return {name: (value or "") for name, value in zip(self.fields, m.groups())}


class PatternSet:
    """Ordered patterns tried in priority order; the first match wins."""

    def __init__(self, patterns: Iterable[Pattern] = ()) -> None:
        self._patterns: list[Pattern] = list(patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self):
        return iter(self._patterns)

    @property
    def patterns(self) -> tuple[Pattern, ...]:
        return tuple(self._patterns)

    @property
    def field_names(self) -> tuple[str, ...]:
        """Ordered union of the field names of every pattern."""
        out: dict[str, None] = {}
        for p in self._patterns:
            for name in p.fields:
                out.setdefault(name, None)
        return tuple(out)

    def add_pattern(
        self, regex: str | re.Pattern[str], fields: Sequence[str] | None = None
    ) -> PatternSet:
        """Append a pattern at the lowest priority."""
        self._patterns.append(Pattern.compile(regex, fields))
        return self

    def add_patterns(
        self, patterns: Iterable[str | re.Pattern[str] | tuple[str | re.Pattern[str], Sequence[str]]]
    ) -> PatternSet:
        """Append several patterns; nothing is added if any of them is invalid."""
        compiled: list[Pattern] = []
        for item in patterns:
            if isinstance(item, tuple):
                regex, fields = item
                compiled.append(Pattern.compile(regex, fields))
            else:
                compiled.append(Pattern.compile(item))
        self._patterns.extend(compiled)
        return self

    def match(self, line: str) -> dict[str, str] | None:
        for p in self._patterns:
            out = p.match(line)
            if out is not None:
                return out
        return None


@dataclass(frozen=True, slots=True)
class LtsvMatcher:
    """Match Labeled Tab-Separated Values lines (``label:value<TAB>...``)."""

    @property
    def field_names(self) -> None:
        return None

    def match(self, line: str) -> dict[str, str] | None:
        fields: dict[str, str] = {}
        for part in line.split("\t"):
            if ":" not in part:
                return None
            key, value = part.split(":", 1)
            fields[key] = value
        return fields
