"""Windows Security event log source backed by pywin32."""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from ..errors import FetchError
from ..models import EventKind, RawEvent

logger = logging.getLogger(__name__)

SECURITY_CHANNEL = "Security"
BATCH_SIZE = 100

ERROR_ACCESS_DENIED = 5
ERROR_NO_MORE_ITEMS = 259
ERROR_EVT_CHANNEL_NOT_FOUND = 15007


def eventlog_available() -> bool:
    """Return True when the pywin32 event log bindings can be imported."""
    try:
        import win32evtlog  # noqa: F401
    except ImportError:
        return False
    return True


def build_xpath_query(kind: EventKind, start_date: datetime, end_date: datetime) -> str:
    """Build the XPath filter selecting one event id within a period."""
    start = _system_time(start_date)
    end = _system_time(end_date, millis="999")
    return (
        f"*[System[(EventID={kind.value}) and "
        f"TimeCreated[@SystemTime>='{start}' and @SystemTime<='{end}']]]"
    )


class Win32EventLogSource:
    """
    Reads logon events from the Security channel of a local or remote machine.

    Mechanisms:
    - Query: ``EvtQuery`` with an XPath filter on event id and creation time.
    - Paging: ``EvtNext`` in batches until the result set is exhausted.
    - Payload: each event is rendered as XML and decoded later by the pipeline.

    Requires pywin32 and membership of Administrators or *Event Log Readers*.
    """

    def __init__(self, server: Optional[str] = None, channel: str = SECURITY_CHANNEL):
        self.server = server
        self.channel = channel

    def fetch_events(
        self,
        kind: EventKind,
        start_date: datetime,
        end_date: datetime,
    ) -> Sequence[RawEvent]:
        try:
            import pywintypes
            import win32evtlog
        except ImportError as exc:
            raise FetchError("pywin32 is required to read the Windows event log", kind=kind) from exc

        query = build_xpath_query(kind, start_date, end_date)
        logger.debug("Querying %s on %s: %s", self.channel, self.server or "localhost", query)

        events: List[RawEvent] = []
        try:
            session = None
            if self.server:
                session = win32evtlog.EvtOpenSession(
                    (self.server, None, None, None, win32evtlog.EvtRpcLoginAuthDefault),
                    win32evtlog.EvtRpcLogin,
                )
            handle = win32evtlog.EvtQuery(
                self.channel,
                win32evtlog.EvtQueryChannelPath | win32evtlog.EvtQueryReverseDirection,
                query,
                session,
            )
            while True:
                batch = win32evtlog.EvtNext(handle, BATCH_SIZE)
                if not batch:
                    break
                for event_handle in batch:
                    xml = win32evtlog.EvtRender(event_handle, win32evtlog.EvtRenderEventXml)
                    events.append(RawEvent(event_id=kind.value, time_created=None, data=xml))
        except pywintypes.error as exc:
            if exc.winerror == ERROR_NO_MORE_ITEMS:
                return events
            raise FetchError(_describe_error(exc, self.channel), kind=kind) from exc

        return events


def _describe_error(exc, channel: str) -> str:
    if exc.winerror == ERROR_ACCESS_DENIED:
        return "access denied: run as Administrator or join the Event Log Readers group"
    if exc.winerror == ERROR_EVT_CHANNEL_NOT_FOUND:
        return f"event log channel {channel!r} not found"
    return f"{exc.funcname} failed ({exc.winerror}): {exc.strerror}"


def _system_time(value: datetime, millis: str = "000") -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S") + f".{millis}Z"
