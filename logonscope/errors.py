"""Exception types raised by LogonScope."""

from typing import Optional


class LogonScopeError(Exception):
    """Base class for all LogonScope errors."""


class InvalidQueryError(LogonScopeError, ValueError):
    """The query was rejected before anything was fetched."""


class FetchError(LogonScopeError):
    """An event source could not be read for one event kind."""

    def __init__(self, message: str, kind=None):
        super().__init__(message)
        self.kind = kind


class EventParseError(LogonScopeError, ValueError):
    """A structured event payload could not be decoded."""


class ExportError(LogonScopeError):
    """The export destination could not be written."""

    def __init__(self, message: str, destination: Optional[str] = None):
        super().__init__(message)
        self.destination = destination


class QueryCancelled(LogonScopeError):
    """The query was cancelled before it produced a result."""
