"""Pure filter and aggregation functions that work on logon events."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

from .errors import EventParseError, QueryCancelled
from .models import EventKind, LoginRecord, Outcome, RawEvent, SourceSummary
from .parsing import parse_event_payload

logger = logging.getLogger(__name__)

GRID_DETAIL_LIMIT = 1000
CONSOLE_DETAIL_LIMIT = 50

IGNORED_SOURCES = frozenset({"-", "127.0.0.1", "::1"})

_OUTCOMES: Dict[int, Outcome] = {kind.value: kind.outcome for kind in EventKind}


@dataclass(frozen=True)
class ExtractionResult:
    """Login records matched from a batch of raw events."""

    records: List[LoginRecord]
    processed: int
    skipped: int


def extract_login_records(
    events: Iterable[RawEvent],
    username: str,
    cancel_event: Optional[threading.Event] = None,
) -> ExtractionResult:
    """
    Turn raw logon events into login records for one user.

    The record's user is its ``TargetUserName``, falling back to
    ``SubjectUserName``, compared case-insensitively. Its source is the
    ``IpAddress``, falling back to ``WorkstationName`` only when the address is
    blank. Records whose source is loopback, ``-`` or blank are dropped.
    Malformed payloads are skipped and counted, never raised.

    Raises:
        QueryCancelled: ``cancel_event`` was set while records were processed.
    """
    wanted = username.strip().casefold()
    records: List[LoginRecord] = []
    processed = 0
    skipped = 0

    for event in events:
        if cancel_event is not None and cancel_event.is_set():
            raise QueryCancelled(f"query for {username!r} cancelled after {processed} events")
        processed += 1

        outcome = _OUTCOMES.get(event.event_id)
        if outcome is None:
            continue

        try:
            payload_time, fields = parse_event_payload(event.data)
        except EventParseError as exc:
            skipped += 1
            logger.debug("Skipping malformed event %s: %s", event.event_id, exc)
            continue

        timestamp = event.time_created or payload_time
        if timestamp is None:
            skipped += 1
            logger.debug("Skipping event %s without a timestamp", event.event_id)
            continue

        matched_user = _event_username(fields)
        if matched_user is None or matched_user.casefold() != wanted:
            continue

        source = resolve_source(fields)
        if source is None:
            continue

        records.append(
            LoginRecord(
                timestamp=timestamp,
                username=matched_user,
                source=source,
                outcome=outcome,
                logon_type=_optional(fields, "LogonType"),
                workstation=_optional(fields, "WorkstationName"),
                process_name=_optional(fields, "ProcessName"),
                auth_package=_optional(fields, "AuthenticationPackageName"),
            )
        )

    return ExtractionResult(records=records, processed=processed, skipped=skipped)


def resolve_source(fields: Mapping[str, str]) -> Optional[str]:
    """Return the accepted source identifier of an event, or ``None``."""
    address = (fields.get("IpAddress") or "").strip()
    candidate = address or (fields.get("WorkstationName") or "").strip()
    if not candidate or candidate in IGNORED_SOURCES:
        return None
    return candidate


def summarize_sources(records: Iterable[LoginRecord]) -> List[SourceSummary]:
    """
    Group records by source identifier.

    Summaries are ordered by total count descending, then by source
    identifier ascending so equal counts always come out in the same order.
    """
    by_source: Dict[str, Dict] = {}
    for record in records:
        if record.source not in by_source:
            by_source[record.source] = {
                "total": 0,
                "successes": 0,
                "failures": 0,
                "last_seen": record.timestamp,
            }

        source_data = by_source[record.source]
        source_data["total"] += 1
        if record.outcome is Outcome.SUCCESS:
            source_data["successes"] += 1
        else:
            source_data["failures"] += 1
        if record.timestamp > source_data["last_seen"]:
            source_data["last_seen"] = record.timestamp

    summaries = [
        SourceSummary(source=source, **source_data) for source, source_data in by_source.items()
    ]
    summaries.sort(key=lambda summary: (-summary.total, summary.source.casefold(), summary.source))
    return summaries


def detail_view(records: Iterable[LoginRecord], limit: Optional[int] = None) -> List[LoginRecord]:
    """Return records newest first, truncated to ``limit`` rows when given."""
    ordered = sorted(records, key=lambda record: (record.source, record.username))
    ordered.sort(key=lambda record: record.timestamp, reverse=True)
    if limit is not None:
        return ordered[:limit]
    return ordered


def compute_login_statistics(records: Iterable[LoginRecord]) -> Dict:
    """Compute overview counts for a set of login records."""
    records_list = list(records)
    if not records_list:
        return empty_login_statistics()

    total = len(records_list)
    successes = sum(1 for record in records_list if record.outcome is Outcome.SUCCESS)
    failures = total - successes

    by_logon_type: Dict[str, Dict[str, int]] = {}
    for record in records_list:
        logon_type = record.logon_type_name or "unknown"
        if logon_type not in by_logon_type:
            by_logon_type[logon_type] = {"count": 0, "failures": 0}
        by_logon_type[logon_type]["count"] += 1
        if record.outcome is Outcome.FAILURE:
            by_logon_type[logon_type]["failures"] += 1

    timestamps = [record.timestamp for record in records_list]
    return {
        "total_events": total,
        "success_count": successes,
        "failure_count": failures,
        "failure_rate": failures / total if total > 0 else 0.0,
        "distinct_sources": len({record.source for record in records_list}),
        "first_seen": _isoformat(min(timestamps)),
        "last_seen": _isoformat(max(timestamps)),
        "by_logon_type": by_logon_type,
    }


def empty_login_statistics() -> Dict:
    """Return empty login statistics structure."""
    return {
        "total_events": 0,
        "success_count": 0,
        "failure_count": 0,
        "failure_rate": 0.0,
        "distinct_sources": 0,
        "first_seen": None,
        "last_seen": None,
        "by_logon_type": {},
    }


def _event_username(fields: Mapping[str, str]) -> Optional[str]:
    for key in ("TargetUserName", "SubjectUserName"):
        value = (fields.get(key) or "").strip()
        if value:
            return value
    return None


def _optional(fields: Mapping[str, str], key: str) -> Optional[str]:
    value = (fields.get(key) or "").strip()
    if not value or value == "-":
        return None
    return value


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
