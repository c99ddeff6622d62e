"""Renderers for lines that matched no pattern."""

from __future__ import annotations


def raw_unmatched_handler(line: str, line_no: int) -> str:
    return line


def numbered_unmatched_handler(line: str, line_no: int) -> str:
    return f"{line_no}: {line}"
