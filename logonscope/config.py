"""Runtime settings read from the environment and an optional ``.env`` file."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 30
MIN_DAYS = 1
MAX_DAYS = 365
DEFAULT_EVENTS_TABLE = "security_events"
SOURCES = ("win32", "sql", "jsonl")


@dataclass(frozen=True)
class Settings:
    days: int = DEFAULT_DAYS
    source: str = "win32"
    server: Optional[str] = None
    database_url: Optional[str] = None
    events_table: str = DEFAULT_EVENTS_TABLE
    events_file: Optional[str] = None
    concurrent_fetch: bool = True
    log_level: str = "WARNING"


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """Build settings from ``LOGONSCOPE_*`` environment variables."""
    load_dotenv(dotenv_path)

    source = os.getenv("LOGONSCOPE_SOURCE", "win32").strip().lower()
    if source not in SOURCES:
        logger.warning("Unknown LOGONSCOPE_SOURCE %r, using 'win32'", source)
        source = "win32"

    days = _env_int("LOGONSCOPE_DAYS", DEFAULT_DAYS)
    if not MIN_DAYS <= days <= MAX_DAYS:
        logger.warning("LOGONSCOPE_DAYS=%s is outside [%s, %s], using %s", days, MIN_DAYS, MAX_DAYS, DEFAULT_DAYS)
        days = DEFAULT_DAYS

    return Settings(
        days=days,
        source=source,
        server=os.getenv("LOGONSCOPE_SERVER") or None,
        database_url=os.getenv("LOGONSCOPE_DATABASE_URL") or None,
        events_table=os.getenv("LOGONSCOPE_EVENTS_TABLE", DEFAULT_EVENTS_TABLE),
        events_file=os.getenv("LOGONSCOPE_EVENTS_FILE") or None,
        concurrent_fetch=_env_bool("LOGONSCOPE_CONCURRENT_FETCH", True),
        log_level=os.getenv("LOGONSCOPE_LOG_LEVEL", "WARNING").upper(),
    )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    logger.warning("Ignoring %s=%r: not a boolean", name, raw)
    return default
