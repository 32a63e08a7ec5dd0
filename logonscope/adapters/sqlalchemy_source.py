"""SQLAlchemy event source for archived or forwarded security events."""

import re
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import DateTime, Integer, Text, bindparam, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import DEFAULT_EVENTS_TABLE
from ..errors import EventParseError, FetchError, InvalidQueryError
from ..models import EventKind, RawEvent
from ..parsing import parse_system_time

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class SQLAlchemyEventSource:
    """Fetches logon events from a relational table and maps them to raw events.

    The table needs ``event_id``, ``time_created`` and ``event_data`` columns;
    ``event_data`` holds the event data as a JSON object or rendered event XML.
    """

    def __init__(self, db: Session, table: str = DEFAULT_EVENTS_TABLE):
        if not _TABLE_NAME_RE.match(table):
            raise InvalidQueryError(f"invalid table name: {table!r}")
        self.db = db
        self.table = table

    def fetch_events(
        self,
        kind: EventKind,
        start_date: datetime,
        end_date: datetime,
    ) -> Sequence[RawEvent]:
        query = (
            text(
                f"""
                SELECT event_id, time_created, event_data
                FROM {self.table}
                WHERE event_id = :event_id
                  AND time_created >= :start_date AND time_created <= :end_date
                """
            )
            .bindparams(
                bindparam("event_id", type_=Integer()),
                bindparam("start_date", type_=DateTime(timezone=True)),
                bindparam("end_date", type_=DateTime(timezone=True)),
            )
            .columns(event_id=Integer(), time_created=DateTime(timezone=True), event_data=Text())
        )
        try:
            rows = self.db.execute(
                query,
                {
                    "event_id": int(kind),
                    "start_date": _as_utc(start_date),
                    "end_date": _as_utc(end_date),
                },
            ).fetchall()
        except SQLAlchemyError as exc:
            raise FetchError(f"cannot read {self.table}: {exc}", kind=kind) from exc

        return [
            RawEvent(
                event_id=int(row.event_id),
                time_created=_coerce_time(row.time_created),
                data=row.event_data if row.event_data is not None else "",
            )
            for row in rows
        ]

    def close(self) -> None:
        self.db.close()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _coerce_time(raw_time) -> Optional[datetime]:
    if raw_time is None:
        return None
    if isinstance(raw_time, datetime):
        return _as_utc(raw_time)
    if isinstance(raw_time, str):
        try:
            return parse_system_time(raw_time)
        except EventParseError:
            return None
    return None
