"""CSV export of login records."""

import csv
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Union

from .errors import ExportError
from .models import LOGIN_RECORD_FIELDS, LoginRecord

logger = logging.getLogger(__name__)


def export_csv(records: Iterable[LoginRecord], destination: Union[str, Path]) -> int:
    """
    Write every record to ``destination`` as quoted, UTF-8 CSV.

    The file is written next to the destination and moved into place, so a
    failed export never leaves a half-written file behind.

    Returns:
        Number of data rows written.

    Raises:
        ExportError: the destination cannot be written.
    """
    path = Path(destination)
    rows = [record_to_row(record) for record in records]

    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle, quoting=csv.QUOTE_ALL)
            writer.writerow(LOGIN_RECORD_FIELDS)
            writer.writerows(rows)
        # mkstemp creates the file 0600; give the export the usual umask-based mode.
        umask = os.umask(0)
        os.umask(umask)
        os.chmod(tmp_name, 0o666 & ~umask)
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise ExportError(f"cannot write {path}: {exc}", destination=str(path)) from exc

    logger.info("Exported %s records to %s", len(rows), path)
    return len(rows)


def record_to_row(record: LoginRecord) -> List[str]:
    values = {
        "timestamp": record.timestamp.isoformat(),
        "username": record.username,
        "source": record.source,
        "outcome": record.outcome.value,
        "logon_type": record.logon_type,
        "workstation": record.workstation,
        "process_name": record.process_name,
        "auth_package": record.auth_package,
    }
    return ["" if values[name] is None else values[name] for name in LOGIN_RECORD_FIELDS]
