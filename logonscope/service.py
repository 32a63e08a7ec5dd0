"""Application service orchestrating event sources and pure analytics."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from .analytics import detail_view, extract_login_records, summarize_sources
from .config import DEFAULT_DAYS, MAX_DAYS, MIN_DAYS
from .errors import FetchError, InvalidQueryError
from .models import EventKind, LoginReport, RawEvent
from .ports import EventSource

logger = logging.getLogger(__name__)


class LoginReportService:
    """Facade service that builds login reports independent of any UI."""

    def __init__(self, source: EventSource, concurrent_fetch: bool = True):
        self.source = source
        self.concurrent_fetch = concurrent_fetch

    def fetch_events(
        self,
        start_date: datetime,
        end_date: datetime,
    ) -> Tuple[List[RawEvent], Dict[EventKind, str]]:
        """
        Fetch success and failure events for a period.

        Each kind is queried on its own; a kind that cannot be read contributes
        nothing and is reported in the returned error mapping.
        """
        kinds = list(EventKind)
        if self.concurrent_fetch:
            with ThreadPoolExecutor(max_workers=len(kinds), thread_name_prefix="logonscope-fetch") as pool:
                futures = [pool.submit(self._fetch_kind, kind, start_date, end_date) for kind in kinds]
                results = [future.result() for future in futures]
        else:
            results = [self._fetch_kind(kind, start_date, end_date) for kind in kinds]

        events: List[RawEvent] = []
        errors: Dict[EventKind, str] = {}
        for kind, (kind_events, error) in zip(kinds, results):
            events.extend(kind_events)
            if error is not None:
                errors[kind] = error
        return events, errors

    def build_report(
        self,
        username: str,
        days: int = DEFAULT_DAYS,
        end_date: Optional[datetime] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> LoginReport:
        username = validate_username(username)
        start, end = _normalize_period(days, end_date)

        events, errors = self.fetch_events(start, end)
        extraction = extract_login_records(events, username, cancel_event=cancel_event)
        logger.info(
            "Matched %s of %s events for %s (%s malformed)",
            len(extraction.records),
            extraction.processed,
            username,
            extraction.skipped,
        )

        return LoginReport(
            username=username,
            period_start=start,
            period_end=end,
            records=detail_view(extraction.records),
            summaries=summarize_sources(extraction.records),
            processed=extraction.processed,
            skipped=extraction.skipped,
            fetch_errors=errors,
        )

    def submit_report(
        self,
        username: str,
        days: int = DEFAULT_DAYS,
        end_date: Optional[datetime] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> "Future[LoginReport]":
        """Build a report on a worker thread so the caller stays responsive."""
        future: "Future[LoginReport]" = Future()

        def _run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self.build_report(username, days, end_date, cancel_event))
            except BaseException as exc:
                future.set_exception(exc)

        threading.Thread(target=_run, name="logonscope-report", daemon=True).start()
        return future

    def _fetch_kind(
        self,
        kind: EventKind,
        start_date: datetime,
        end_date: datetime,
    ) -> Tuple[List[RawEvent], Optional[str]]:
        try:
            events = list(self.source.fetch_events(kind, start_date, end_date))
        except FetchError as exc:
            logger.warning("Could not fetch %s events (%s): %s", kind.outcome.value, kind.value, exc)
            return [], str(exc)
        except Exception as exc:
            logger.exception("Unexpected error fetching %s events (%s): %s", kind.outcome.value, kind.value, exc)
            return [], f"{type(exc).__name__}: {exc}"
        logger.info("Fetched %s %s events", len(events), kind.outcome.value)
        return events, None


def validate_username(username: Optional[str]) -> str:
    """Return the trimmed username or reject an empty one."""
    if username is None or not str(username).strip():
        raise InvalidQueryError("a username is required")
    return str(username).strip()


def _normalize_period(
    days: int,
    end_date: Optional[datetime],
) -> Tuple[datetime, datetime]:
    if isinstance(days, bool) or not isinstance(days, int) or not MIN_DAYS <= days <= MAX_DAYS:
        raise InvalidQueryError(f"days must be an integer between {MIN_DAYS} and {MAX_DAYS}")
    if end_date is None:
        end_date = datetime.now(timezone.utc)
    return end_date - timedelta(days=days), end_date
