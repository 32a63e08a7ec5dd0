"""Core domain models used by the login report pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Dict, Mapping, Optional, Sequence, Union


class Outcome(str, Enum):
    """Result of an authentication attempt."""

    SUCCESS = "Success"
    FAILURE = "Failure"


class EventKind(IntEnum):
    """Security log event identifiers the pipeline understands."""

    SUCCESS = 4624
    FAILURE = 4625

    @property
    def outcome(self) -> Outcome:
        return Outcome.SUCCESS if self is EventKind.SUCCESS else Outcome.FAILURE


LOGON_TYPES: Dict[str, str] = {
    "0": "System",
    "2": "Interactive",
    "3": "Network",
    "4": "Batch",
    "5": "Service",
    "7": "Unlock",
    "8": "NetworkCleartext",
    "9": "NewCredentials",
    "10": "RemoteInteractive",
    "11": "CachedInteractive",
    "12": "CachedRemoteInteractive",
    "13": "CachedUnlock",
}


@dataclass(frozen=True)
class RawEvent:
    """A logon event as returned by an event source.

    ``data`` is either the decoded event data fields or the structured payload
    exactly as the source produced it (rendered event XML or a JSON object).
    """

    event_id: int
    time_created: Optional[datetime]
    data: Union[str, Mapping[str, str]]


@dataclass(frozen=True)
class LoginRecord:
    """A logon attempt by the queried user from a known source."""

    timestamp: datetime
    username: str
    source: str
    outcome: Outcome
    logon_type: Optional[str] = None
    workstation: Optional[str] = None
    process_name: Optional[str] = None
    auth_package: Optional[str] = None

    @property
    def logon_type_name(self) -> Optional[str]:
        if self.logon_type is None:
            return None
        return LOGON_TYPES.get(self.logon_type, f"Type {self.logon_type}")


LOGIN_RECORD_FIELDS = (
    "timestamp",
    "username",
    "source",
    "outcome",
    "logon_type",
    "workstation",
    "process_name",
    "auth_package",
)


@dataclass(frozen=True)
class SourceSummary:
    """Per-source rollup of login records."""

    source: str
    total: int
    successes: int
    failures: int
    last_seen: datetime


@dataclass(frozen=True)
class LoginReport:
    """Everything one query produced."""

    username: str
    period_start: datetime
    period_end: datetime
    records: Sequence[LoginRecord]
    summaries: Sequence[SourceSummary]
    processed: int = 0
    skipped: int = 0
    fetch_errors: Mapping[EventKind, str] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return sum(1 for record in self.records if record.outcome is Outcome.SUCCESS)

    @property
    def failure_count(self) -> int:
        return sum(1 for record in self.records if record.outcome is Outcome.FAILURE)

    def detail(self, limit: Optional[int] = None) -> Sequence[LoginRecord]:
        """Return the most recent records, newest first."""
        if limit is None:
            return list(self.records)
        return list(self.records[:limit])
