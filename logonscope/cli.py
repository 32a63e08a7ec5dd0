"""Command-line interface for LogonScope."""

import argparse
import json
import sys
from typing import Optional, Sequence

from .analytics import CONSOLE_DETAIL_LIMIT, GRID_DETAIL_LIMIT
from .config import MAX_DAYS, MIN_DAYS, SOURCES, Settings, load_settings
from .errors import ExportError, FetchError, InvalidQueryError
from .export import export_csv
from .logging_setup import configure_logging
from .ports import EventSource
from .render import grid_rows, render_console_report, report_to_dict
from .service import LoginReportService

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def days_argument(value: str) -> int:
    try:
        days = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer")
    if not MIN_DAYS <= days <= MAX_DAYS:
        raise argparse.ArgumentTypeError(f"must be between {MIN_DAYS} and {MAX_DAYS}")
    return days


def create_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logonscope",
        description="Report the sources of successful and failed logons (4624/4625) for a user.",
    )
    parser.add_argument("username", nargs="?", help="Account to report on (prompted if omitted)")
    parser.add_argument(
        "--days",
        type=days_argument,
        default=settings.days,
        help=f"Lookback window in days, {MIN_DAYS}-{MAX_DAYS} (default: {settings.days})",
    )
    parser.add_argument("--export", metavar="PATH", help="Write every matching record to a CSV file")
    parser.add_argument(
        "--view",
        choices=("console", "grid", "json"),
        default="console",
        help=f"Output format; console shows {CONSOLE_DETAIL_LIMIT} rows, grid and json {GRID_DETAIL_LIMIT}",
    )
    parser.add_argument("--source", choices=SOURCES, default=settings.source, help="Event source")
    parser.add_argument("--server", default=settings.server, help="Remote machine to read the Security log from")
    parser.add_argument("--database-url", default=settings.database_url, help="SQLAlchemy URL for --source sql")
    parser.add_argument("--events-table", default=settings.events_table, help="Table name for --source sql")
    parser.add_argument("--events-file", default=settings.events_file, help="JSON-lines file for --source jsonl")
    parser.add_argument(
        "--sequential",
        action="store_true",
        default=not settings.concurrent_fetch,
        help="Fetch success and failure events one after the other",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: WARNING)")
    return parser


def build_source(args: argparse.Namespace) -> EventSource:
    """Create the event source selected on the command line."""
    if args.source == "sql":
        if not args.database_url:
            raise InvalidQueryError("--database-url is required for --source sql")
        from sqlalchemy import create_engine
        from sqlalchemy.exc import ArgumentError, SQLAlchemyError
        from sqlalchemy.orm import Session

        from .adapters.sqlalchemy_source import SQLAlchemyEventSource

        try:
            engine = create_engine(args.database_url)
        except ArgumentError as exc:
            raise InvalidQueryError(f"invalid --database-url: {exc}") from exc
        except (SQLAlchemyError, ImportError) as exc:
            raise FetchError(f"cannot open {args.database_url}: {exc}") from exc
        return SQLAlchemyEventSource(Session(engine), table=args.events_table)
    if args.source == "jsonl":
        if not args.events_file:
            raise InvalidQueryError("--events-file is required for --source jsonl")
        from .adapters.memory import InMemoryEventSource

        return InMemoryEventSource.from_json_lines(args.events_file)

    from .adapters.win32_eventlog import Win32EventLogSource

    return Win32EventLogSource(server=args.server)


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = load_settings()
    parser = create_parser(settings)
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    username = args.username
    if not username:
        try:
            username = input("Username: ")
        except EOFError:
            username = ""
    if not username.strip():
        print("error: a username is required", file=sys.stderr)
        return EXIT_USAGE

    try:
        source = build_source(args)
    except InvalidQueryError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except FetchError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    # A SQLAlchemy session must stay on the thread that created it.
    concurrent_fetch = not args.sequential and args.source != "sql"
    service = LoginReportService(source, concurrent_fetch=concurrent_fetch)
    try:
        report = service.build_report(username, days=args.days)
    except InvalidQueryError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    finally:
        close = getattr(source, "close", None)
        if close is not None:
            close()

    if args.view == "json":
        print(json.dumps(report_to_dict(report, GRID_DETAIL_LIMIT), indent=2))
    elif args.view == "grid":
        print(json.dumps(grid_rows(report, GRID_DETAIL_LIMIT), indent=2))
    else:
        print(render_console_report(report, CONSOLE_DETAIL_LIMIT), end="")

    exit_code = EXIT_OK
    for kind, message in report.fetch_errors.items():
        print(f"error: could not read {kind.outcome.value.lower()} events ({kind.value}): {message}", file=sys.stderr)
    if report.fetch_errors:
        exit_code = EXIT_FAILURE

    if args.export:
        try:
            count = export_csv(report.records, args.export)
        except ExportError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return EXIT_FAILURE
        print(f"Exported {count} records to {args.export}", file=sys.stderr)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
