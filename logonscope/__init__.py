"""LogonScope - logon source reports from Windows security events."""

from .analytics import (
    CONSOLE_DETAIL_LIMIT,
    GRID_DETAIL_LIMIT,
    compute_login_statistics,
    detail_view,
    extract_login_records,
    summarize_sources,
)
from .export import export_csv
from .models import EventKind, LoginRecord, LoginReport, Outcome, RawEvent, SourceSummary
from .service import LoginReportService

__all__ = [
    "LoginReportService",
    "extract_login_records",
    "summarize_sources",
    "detail_view",
    "compute_login_statistics",
    "export_csv",
    "EventKind",
    "Outcome",
    "RawEvent",
    "LoginRecord",
    "SourceSummary",
    "LoginReport",
    "GRID_DETAIL_LIMIT",
    "CONSOLE_DETAIL_LIMIT",
]

__version__ = "0.1.0"
