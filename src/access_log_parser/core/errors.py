"""Exception types raised by the parser."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Result


class AccessLogParserError(Exception):
    """Base class for parser errors."""


class ConfigurationError(AccessLogParserError, ValueError):
    """Invalid setup detected before a run starts."""


class SourceNotFoundError(ConfigurationError, FileNotFoundError):
    """The source path is empty or does not name a readable file."""


class ParseAbortedError(AccessLogParserError):
    """A run was aborted by a read or sink failure.

    The partial result accumulated before the failure is kept on ``result``.
    """

    def __init__(self, message: str, *, result: Result) -> None:
        super().__init__(message)
        self.result = result
