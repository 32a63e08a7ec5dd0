"""Decoding of structured event payloads into event data fields."""

import json
import re
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional, Tuple, Union
from xml.etree import ElementTree as ET

from .errors import EventParseError

_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_event_payload(
    data: Union[str, Mapping[str, str]],
) -> Tuple[Optional[datetime], Dict[str, str]]:
    """
    Decode one event payload.

    Accepts an already-decoded field mapping, rendered event XML (with or
    without the event schema namespace) or a JSON object string.

    Returns:
        Tuple of the creation time found in the payload (``None`` when the
        payload carries none) and the event data fields.
    """
    if isinstance(data, Mapping):
        return None, _clean_fields(data)
    if not isinstance(data, str):
        raise EventParseError(f"unsupported payload type: {type(data).__name__}")

    text = data.strip()
    if text.startswith("<"):
        return _parse_xml(text)
    if text.startswith("{"):
        return _parse_json(text)
    raise EventParseError("payload is neither XML nor JSON")


def parse_system_time(value: str) -> datetime:
    """Parse an event log ``SystemTime`` value into an aware UTC datetime."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # Event log timestamps carry 100ns precision; datetime stops at microseconds.
    text = _FRACTION_RE.sub(lambda match: "." + match.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise EventParseError(f"invalid timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_xml(text: str) -> Tuple[Optional[datetime], Dict[str, str]]:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise EventParseError(f"malformed event XML: {exc}") from exc

    time_created = None
    fields: Dict[str, str] = {}
    for element in root.iter():
        name = _local_name(element.tag)
        if name == "TimeCreated" and element.get("SystemTime"):
            time_created = parse_system_time(element.get("SystemTime"))
        elif name == "Data" and element.get("Name"):
            fields[element.get("Name")] = (element.text or "").strip()
    return time_created, fields


def _parse_json(text: str) -> Tuple[Optional[datetime], Dict[str, str]]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise EventParseError(f"malformed event JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise EventParseError("event JSON is not an object")

    time_created = None
    raw_time = payload.get("TimeCreated") or payload.get("time_created")
    if isinstance(raw_time, str):
        time_created = parse_system_time(raw_time)

    event_data = payload.get("EventData", payload)
    if not isinstance(event_data, dict):
        raise EventParseError("EventData is not an object")
    return time_created, _clean_fields(event_data)


def _clean_fields(data: Mapping) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for key, value in data.items():
        if value is None or isinstance(value, (dict, list)):
            continue
        fields[str(key)] = str(value).strip()
    return fields


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]
