"""Two-minute LogonScope demo: FastAPI backend over synthetic logon events."""

from datetime import datetime, timedelta, timezone
from random import Random

from fastapi import FastAPI, HTTPException, Query

from logonscope.adapters import InMemoryEventSource
from logonscope.errors import InvalidQueryError
from logonscope.models import EventKind, RawEvent
from logonscope.render import report_to_dict
from logonscope.service import LoginReportService

RNG = Random(42)
DEMO_USERS = ["jdoe", "asmith", "svc-backup"]
DEMO_SOURCES = ["10.0.0.5", "10.0.0.17", "192.168.1.44", "fe80::1c2a", "WKS-042", "127.0.0.1", "-"]

app = FastAPI(title="LogonScope Two-Minute Demo", version="0.1.0")


def _build_demo_events() -> list:
    now = datetime.now(timezone.utc)

    events = []
    for idx in range(600):
        kind = EventKind.FAILURE if idx % 7 == 0 else EventKind.SUCCESS
        source = RNG.choice(DEMO_SOURCES)
        fields = {
            "TargetUserName": RNG.choice(DEMO_USERS).upper() if idx % 5 == 0 else RNG.choice(DEMO_USERS),
            "LogonType": RNG.choice(["2", "3", "10"]),
            "AuthenticationPackageName": RNG.choice(["NTLM", "Kerberos", "Negotiate"]),
            "ProcessName": "C:\\Windows\\System32\\svchost.exe",
        }
        if source.startswith("WKS"):
            fields["WorkstationName"] = source
        else:
            fields["IpAddress"] = source
        events.append(
            RawEvent(
                event_id=kind.value,
                time_created=now - timedelta(minutes=idx * 37),
                data=fields,
            )
        )
    return events


DEMO_SERVICE = LoginReportService(InMemoryEventSource(_build_demo_events()))


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "demo": "logonscope-two-minute"}


@app.get("/api/report")
def report(
    username: str = Query(..., min_length=1),
    days: int = Query(30, ge=1, le=365),
    limit: int = Query(1000, ge=1, le=1000),
) -> dict:
    try:
        login_report = DEMO_SERVICE.build_report(username, days=days)
    except InvalidQueryError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return report_to_dict(login_report, limit)
