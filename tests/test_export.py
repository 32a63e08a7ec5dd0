import csv
import os
import stat
from datetime import datetime, timezone

import pytest

from logonscope.errors import ExportError
from logonscope.export import export_csv
from logonscope.models import LOGIN_RECORD_FIELDS, LoginRecord, Outcome

WHEN = datetime(2026, 2, 1, 9, 30, tzinfo=timezone.utc)


def test_export_writes_header_and_quoted_rows(tmp_path):
    records = [
        LoginRecord(WHEN, "jdoe", "10.0.0.5", Outcome.SUCCESS, logon_type="10", auth_package="Negotiate"),
        LoginRecord(WHEN, "jdoe", 'WKS, "lab"', Outcome.FAILURE, workstation='WKS, "lab"'),
    ]
    destination = tmp_path / "report.csv"

    count = export_csv(records, destination)

    assert count == 2
    with open(destination, encoding="utf-8", newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == list(LOGIN_RECORD_FIELDS)
    assert rows[1] == ["2026-02-01T09:30:00+00:00", "jdoe", "10.0.0.5", "Success", "10", "", "", "Negotiate"]
    assert rows[2][2] == 'WKS, "lab"'
    assert rows[2][3] == "Failure"
    assert destination.read_text(encoding="utf-8").startswith('"timestamp","username"')


def test_export_of_no_records_writes_header_only(tmp_path):
    destination = tmp_path / "empty.csv"

    assert export_csv([], destination) == 0
    with open(destination, encoding="utf-8", newline="") as handle:
        assert list(csv.reader(handle)) == [list(LOGIN_RECORD_FIELDS)]


def test_export_replaces_existing_file_and_leaves_no_temp_files(tmp_path):
    destination = tmp_path / "report.csv"
    destination.write_text("old contents", encoding="utf-8")

    export_csv([LoginRecord(WHEN, "jdoe", "10.0.0.5", Outcome.SUCCESS)], destination)

    assert "old contents" not in destination.read_text(encoding="utf-8")
    assert [path.name for path in tmp_path.iterdir()] == ["report.csv"]


def test_export_to_missing_directory_raises_export_error(tmp_path):
    destination = tmp_path / "missing" / "report.csv"

    with pytest.raises(ExportError) as excinfo:
        export_csv([], destination)
    assert excinfo.value.destination == str(destination)
    assert not destination.exists()


@pytest.mark.skipif(os.name != "posix", reason="POSIX file modes")
def test_export_file_mode_follows_umask(tmp_path):
    umask = os.umask(0o027)
    try:
        destination = tmp_path / "report.csv"
        export_csv([], destination)
    finally:
        os.umask(umask)

    assert stat.S_IMODE(destination.stat().st_mode) == 0o640
