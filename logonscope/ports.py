"""Port definitions for fetching logon events from any source."""

from datetime import datetime
from typing import Protocol, Sequence

from .models import EventKind, RawEvent


class EventSource(Protocol):
    """Source interface that adapters can implement for any event store."""

    def fetch_events(
        self,
        kind: EventKind,
        start_date: datetime,
        end_date: datetime,
    ) -> Sequence[RawEvent]:
        """Return events of one kind for a period.

        An empty period is an empty sequence. Implementations raise
        ``FetchError`` when the store is unreachable or not readable.
        """
