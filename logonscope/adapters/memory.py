"""In-memory event source, also used to replay JSON-lines event dumps."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from ..errors import EventParseError, FetchError
from ..models import EventKind, RawEvent
from ..parsing import parse_event_payload, parse_system_time


class InMemoryEventSource:
    """Serves events held in memory, filtered by kind and period."""

    def __init__(self, events: Iterable[RawEvent] = ()):
        self.events: List[RawEvent] = list(events)

    @classmethod
    def from_json_lines(cls, path: Union[str, Path]) -> "InMemoryEventSource":
        """
        Load events from a JSON-lines file.

        Each line holds ``event_id``, ``time_created`` and ``data``. Lines that
        are not JSON objects with a numeric ``event_id`` are ignored; a ``data``
        payload that cannot be decoded is kept and counted as malformed later.
        Events without ``time_created`` are placed in time by the creation time
        inside their payload; events with no readable time match every period
        and are counted as malformed later.
        """
        try:
            with open(path, encoding="utf-8") as handle:
                lines = [line for line in handle if line.strip()]
        except OSError as exc:
            raise FetchError(f"cannot read {path}: {exc}") from exc

        events = []
        for line in lines:
            try:
                item = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(item, dict):
                continue
            try:
                event_id = int(item.get("event_id", 0))
            except (TypeError, ValueError):
                continue
            events.append(
                RawEvent(
                    event_id=event_id,
                    time_created=_parse_time(item.get("time_created")),
                    data=item.get("data") if item.get("data") is not None else "",
                )
            )
        return cls(events)

    def fetch_events(
        self,
        kind: EventKind,
        start_date: datetime,
        end_date: datetime,
    ) -> Sequence[RawEvent]:
        start, end = _as_utc(start_date), _as_utc(end_date)
        events = []
        for event in self.events:
            if event.event_id != kind.value:
                continue
            created = _effective_time(event)
            if created is not None and not start <= created <= end:
                continue
            events.append(event)
        return events


def _effective_time(event: RawEvent) -> Optional[datetime]:
    if event.time_created is not None:
        return _as_utc(event.time_created)
    try:
        payload_time, _ = parse_event_payload(event.data)
    except EventParseError:
        return None
    return payload_time


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_time(raw_time):
    if not isinstance(raw_time, str):
        return None
    try:
        return parse_system_time(raw_time)
    except EventParseError:
        return None
