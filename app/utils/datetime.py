"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import get_settings

_DEFAULT_TIMEZONE: Final[str] = "UTC"
_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)
# Epoch values above this are microseconds (Debezium MicroTimestamp), below are
# milliseconds (Debezium Timestamp). 10**14 ms is roughly the year 5138.
_MICROSECOND_THRESHOLD: Final[int] = 10**14

@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the configured application timezone.

    The timezone is resolved using the ``APP_TIMEZONE`` environment variable (via
    the ``Settings`` class). If the provided value cannot be resolved, UTC is
    used as a fallback.
    """

    settings = get_settings()
    tz_name = (settings.app_timezone or "").strip() or _DEFAULT_TIMEZONE
    return _resolve_timezone(tz_name)


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Normalize ``value`` so it is expressed in the configured timezone."""

    if value is None:
        return None

    tz = get_app_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc).astimezone(tz)
    return value.astimezone(tz)

def parse_change_timestamp(value: object) -> datetime | None:
    """Convert a timestamp column from a change event into an aware datetime.

    Debezium encodes ``timestamp`` columns as epoch milliseconds or
    microseconds depending on ``time.precision.mode`` and ``timestamptz``
    columns as ISO-8601 strings. Naive values are read as UTC. Returns
    ``None`` for missing or unreadable values.
    """

    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return ensure_app_timezone(value)

    if isinstance(value, (int, float)):
        divisor = 1_000_000 if abs(value) >= _MICROSECOND_THRESHOLD else 1_000
        try:
            parsed = datetime.fromtimestamp(value / divisor, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
        return ensure_app_timezone(parsed)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return ensure_app_timezone(parsed)

    return None

def _resolve_timezone(tz_name: str) -> tzinfo:
    """Resolve ``tz_name`` into a ``timezone`` instance."""

    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        match = _OFFSET_PATTERN.match(tz_name)
        if match:
            sign = -1 if match.group("sign") == "-" else 1
            hours = int(match.group("hours"))
            minutes = int(match.group("minutes") or 0)
            offset = timedelta(hours=hours, minutes=minutes)
            return timezone(sign * offset)
    return ZoneInfo(_DEFAULT_TIMEZONE)
