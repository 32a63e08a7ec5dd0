"""Adapters for reading logon events from event stores."""

from .memory import InMemoryEventSource
from .sqlalchemy_source import SQLAlchemyEventSource
from .win32_eventlog import Win32EventLogSource, eventlog_available

__all__ = [
    "InMemoryEventSource",
    "SQLAlchemyEventSource",
    "Win32EventLogSource",
    "eventlog_available",
]
