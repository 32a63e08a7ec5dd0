import csv
import json
from datetime import datetime, timedelta, timezone

import pytest

from logonscope import cli
from logonscope.adapters.memory import InMemoryEventSource
from logonscope.errors import FetchError
from logonscope.models import EventKind


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "LOGONSCOPE_DAYS",
        "LOGONSCOPE_SOURCE",
        "LOGONSCOPE_EVENTS_FILE",
        "LOGONSCOPE_DATABASE_URL",
        "LOGONSCOPE_EVENTS_TABLE",
        "LOGONSCOPE_CONCURRENT_FETCH",
        "LOGONSCOPE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def _events_file_lines():
    now = datetime.now(timezone.utc)
    lines = [
        {"event_id": 4624, "time_created": (now - timedelta(hours=1)).isoformat(), "data": {"TargetUserName": "JDoe", "IpAddress": "10.0.0.5"}},
        {"event_id": 4625, "time_created": (now - timedelta(hours=2)).isoformat(), "data": {"TargetUserName": "jdoe", "IpAddress": "10.0.0.5"}},
        {"event_id": 4624, "time_created": (now - timedelta(hours=3)).isoformat(), "data": {"TargetUserName": "jdoe", "IpAddress": "127.0.0.1"}},
        {"event_id": 4624, "time_created": (now - timedelta(days=60)).isoformat(), "data": {"TargetUserName": "jdoe", "IpAddress": "10.9.9.9"}},
    ]
    return "\n".join(json.dumps(line) for line in lines)


def _events_file(tmp_path):
    path = tmp_path / "events.jsonl"
    path.write_text(_events_file_lines(), encoding="utf-8")
    return str(path)


def test_cli_console_report_and_export(tmp_path, capsys):
    export_path = tmp_path / "out.csv"

    code = cli.main(["jdoe", "--source", "jsonl", "--events-file", _events_file(tmp_path), "--export", str(export_path)])

    out = capsys.readouterr().out
    assert code == 0
    assert "Matching attempts: 2 (1 successful, 1 failed)" in out
    assert "10.9.9.9" not in out
    with open(export_path, encoding="utf-8", newline="") as handle:
        rows = list(csv.reader(handle))
    assert len(rows) == 3
    assert {row[2] for row in rows[1:]} == {"10.0.0.5"}


def test_cli_json_view(tmp_path, capsys):
    code = cli.main(["jdoe", "--source", "jsonl", "--events-file", _events_file(tmp_path), "--view", "json"])

    data = json.loads(capsys.readouterr().out)
    assert code == 0
    assert data["sources"][0]["total"] == 2
    assert [row["result"] for row in data["detail"]] == ["Success", "Failure"]


def test_cli_zero_matches_is_success(tmp_path, capsys):
    code = cli.main(["nobody", "--source", "jsonl", "--events-file", _events_file(tmp_path)])

    assert code == 0
    assert "No logon events found for nobody." in capsys.readouterr().out


def test_cli_prompts_for_username(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", lambda prompt: "jdoe")

    code = cli.main(["--source", "jsonl", "--events-file", _events_file(tmp_path)])

    assert code == 0
    assert "Login report for jdoe" in capsys.readouterr().out


def test_cli_rejects_empty_username(tmp_path, monkeypatch):
    monkeypatch.setattr("builtins.input", lambda prompt: "  ")

    assert cli.main(["--source", "jsonl", "--events-file", _events_file(tmp_path)]) == cli.EXIT_USAGE


@pytest.mark.parametrize("days", ["0", "366", "ten"])
def test_cli_rejects_days_out_of_range(days):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["jdoe", "--days", days])
    assert excinfo.value.code == 2


def test_cli_unreadable_source_exits_non_zero(tmp_path):
    code = cli.main(["jdoe", "--source", "jsonl", "--events-file", str(tmp_path / "missing.jsonl")])

    assert code == cli.EXIT_FAILURE


def test_cli_export_failure_exits_non_zero(tmp_path, capsys):
    code = cli.main(
        [
            "jdoe",
            "--source",
            "jsonl",
            "--events-file",
            _events_file(tmp_path),
            "--export",
            str(tmp_path / "missing" / "out.csv"),
        ]
    )

    assert code == cli.EXIT_FAILURE
    assert "Matching attempts: 2" in capsys.readouterr().out


def test_cli_sql_source_requires_url():
    assert cli.main(["jdoe", "--source", "sql"]) == cli.EXIT_USAGE


def test_cli_drops_untimed_events_outside_the_window(tmp_path, capsys):
    old = (datetime.now(timezone.utc) - timedelta(days=90)).strftime("%Y-%m-%dT%H:%M:%S.0000000Z")
    payload = (
        f'<Event><System><EventID>4624</EventID><TimeCreated SystemTime="{old}"/></System>'
        '<EventData><Data Name="TargetUserName">jdoe</Data><Data Name="IpAddress">10.7.7.7</Data></EventData></Event>'
    )
    path = tmp_path / "events.jsonl"
    path.write_text(
        _events_file_lines() + "\n" + json.dumps({"event_id": 4624, "data": payload}),
        encoding="utf-8",
    )

    code = cli.main(["jdoe", "--days", "1", "--source", "jsonl", "--events-file", str(path)])

    out = capsys.readouterr().out
    assert code == 0
    assert "10.7.7.7" not in out
    assert "Matching attempts: 2" in out


class HalfReadableSource(InMemoryEventSource):
    def fetch_events(self, kind, start_date, end_date):
        if kind is EventKind.FAILURE:
            raise FetchError("access denied", kind=kind)
        return super().fetch_events(kind, start_date, end_date)


def test_cli_single_fetch_failure_exits_non_zero(tmp_path, monkeypatch, capsys):
    source = HalfReadableSource.from_json_lines(_events_file(tmp_path))
    monkeypatch.setattr(cli, "build_source", lambda args: source)
    export_path = tmp_path / "out.csv"

    code = cli.main(["jdoe", "--export", str(export_path)])

    captured = capsys.readouterr()
    assert code == cli.EXIT_FAILURE
    assert "Matching attempts: 1 (1 successful, 0 failed)" in captured.out
    assert "access denied" in captured.err
    assert export_path.exists()


@pytest.mark.parametrize(
    "options",
    [
        ["--database-url", "not a url"],
        ["--database-url", "sqlite://", "--events-table", "bad name"],
    ],
)
def test_cli_invalid_sql_options_are_usage_errors(options, capsys):
    code = cli.main(["jdoe", "--source", "sql", *options])

    assert code == cli.EXIT_USAGE
    assert "Traceback" not in capsys.readouterr().err


def test_cli_sql_source_reads_and_closes_session(tmp_path, monkeypatch, capsys):
    from sqlalchemy import create_engine, text

    from logonscope.adapters.sqlalchemy_source import SQLAlchemyEventSource

    url = f"sqlite:///{tmp_path / 'events.db'}"
    engine = create_engine(url)
    with engine.begin() as connection:
        connection.execute(text("CREATE TABLE security_events (event_id INTEGER, time_created DATETIME, event_data TEXT)"))
        connection.execute(
            text("INSERT INTO security_events VALUES (:event_id, :time_created, :event_data)"),
            {
                "event_id": 4625,
                "time_created": (datetime.now(timezone.utc) - timedelta(hours=1)).strftime("%Y-%m-%d %H:%M:%S.%f"),
                "event_data": json.dumps({"TargetUserName": "jdoe", "IpAddress": "10.0.0.9"}),
            },
        )
    engine.dispose()

    closed = []
    original_close = SQLAlchemyEventSource.close

    def tracking_close(self):
        closed.append(self.table)
        original_close(self)

    monkeypatch.setattr(SQLAlchemyEventSource, "close", tracking_close)

    code = cli.main(["jdoe", "--source", "sql", "--database-url", url])

    assert code == 0
    assert "10.0.0.9" in capsys.readouterr().out
    assert closed == ["security_events"]
