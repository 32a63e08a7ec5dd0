"""Text and tabular presentation of login reports."""

from typing import Dict, List, Sequence

from .analytics import CONSOLE_DETAIL_LIMIT, GRID_DETAIL_LIMIT, compute_login_statistics
from .models import LoginRecord, LoginReport, Outcome, SourceSummary

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def render_console_report(report: LoginReport, limit: int = CONSOLE_DETAIL_LIMIT) -> str:
    """Render a plain-text report with a source summary and recent attempts."""
    lines = [
        f"Login report for {report.username}",
        f"Period: {report.period_start.strftime(_TIME_FORMAT)} - {report.period_end.strftime(_TIME_FORMAT)}",
        f"Events processed: {report.processed:,}  malformed: {report.skipped:,}",
        f"Matching attempts: {len(report.records):,} "
        f"({report.success_count:,} successful, {report.failure_count:,} failed)",
    ]
    for kind, message in sorted(report.fetch_errors.items()):
        lines.append(f"WARNING: {kind.outcome.value} events ({kind.value}) unavailable: {message}")
    lines.append("")

    if not report.records:
        lines.append(f"No logon events found for {report.username}.")
        return "\n".join(lines) + "\n"

    lines.append("Sources")
    lines.extend(_table(["Source", "Total", "Success", "Failure", "Last seen"], _summary_cells(report.summaries)))
    lines.append("")

    detail = report.detail(limit)
    lines.append(f"Most recent attempts ({len(detail)} of {len(report.records)})")
    lines.extend(_table(["Time", "Result", "Source", "Logon type", "Workstation"], _detail_cells(detail)))
    return "\n".join(lines) + "\n"


def grid_rows(report: LoginReport, limit: int = GRID_DETAIL_LIMIT) -> List[Dict]:
    """Return detail rows for a tabular view, newest first."""
    return [
        {
            "timestamp": record.timestamp.strftime(_TIME_FORMAT),
            "result": record.outcome.value,
            "username": record.username,
            "source": record.source,
            "logon_type": record.logon_type_name or "",
            "workstation": record.workstation or "",
            "process_name": record.process_name or "",
            "auth_package": record.auth_package or "",
        }
        for record in report.detail(limit)
    ]


def report_to_dict(report: LoginReport, limit: int = GRID_DETAIL_LIMIT) -> Dict:
    """Return a JSON-ready representation of a report."""
    return {
        "username": report.username,
        "period": {
            "start": report.period_start.isoformat(),
            "end": report.period_end.isoformat(),
        },
        "processed": report.processed,
        "skipped": report.skipped,
        "fetch_errors": {kind.outcome.value: message for kind, message in report.fetch_errors.items()},
        "overview": compute_login_statistics(report.records),
        "sources": [
            {
                "source": summary.source,
                "total": summary.total,
                "successes": summary.successes,
                "failures": summary.failures,
                "last_seen": summary.last_seen.isoformat(),
            }
            for summary in report.summaries
        ],
        "detail": grid_rows(report, limit),
    }


def _summary_cells(summaries: Sequence[SourceSummary]) -> List[List[str]]:
    return [
        [
            summary.source,
            str(summary.total),
            str(summary.successes),
            str(summary.failures),
            summary.last_seen.strftime(_TIME_FORMAT),
        ]
        for summary in summaries
    ]


def _detail_cells(records: Sequence[LoginRecord]) -> List[List[str]]:
    return [
        [
            record.timestamp.strftime(_TIME_FORMAT),
            "SUCCESS" if record.outcome is Outcome.SUCCESS else "FAILURE",
            record.source,
            record.logon_type_name or "-",
            record.workstation or "-",
        ]
        for record in records
    ]


def _table(headers: List[str], rows: List[List[str]]) -> List[str]:
    widths = [len(header) for header in headers]
    for row in rows:
        widths = [max(width, len(cell)) for width, cell in zip(widths, row)]

    def _line(cells: List[str]) -> str:
        return "  ".join(cell.ljust(width) for cell, width in zip(cells, widths)).rstrip()

    return [_line(headers), _line(["-" * width for width in widths])] + [_line(row) for row in rows]
