"""Timestamps expressed in the portal's configured timezone.

Rows store naive datetimes that are implicitly in the application timezone;
entities and wire payloads carry aware ones.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from notifyhub.config import get_settings

_FALLBACK_ZONE: Final[str] = "Asia/Kolkata"
_UTC_OFFSET: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


def parse_utc_offset(value: str) -> tzinfo | None:
    """Return a fixed-offset zone for ``UTC+05:30``-style names, else ``None``."""

    match = _UTC_OFFSET.match(value.strip())
    if match is None:
        return None
    delta = timedelta(
        hours=int(match.group("hours")), minutes=int(match.group("minutes") or 0)
    )
    if match.group("sign") == "-":
        delta = -delta
    return timezone(delta)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the zone named by ``APP_TIMEZONE``, or ``Asia/Kolkata``."""

    name = (get_settings().app_timezone or "").strip() or _FALLBACK_ZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return parse_utc_offset(name) or ZoneInfo(_FALLBACK_ZONE)


def now_in_app_timezone() -> datetime:
    return datetime.now(tz=get_app_timezone())


def now_in_app_naive_datetime() -> datetime:
    """Current time in the app timezone, ready for a naive ``DateTime`` column."""

    return now_in_app_timezone().replace(tzinfo=None)


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Attach or convert ``value`` to the app timezone.

    Naive values are read as already local, which is how they are stored.
    """

    if value is None:
        return None
    zone = get_app_timezone()
    return value.replace(tzinfo=zone) if value.tzinfo is None else value.astimezone(zone)


def ensure_app_naive_datetime(value: datetime | None) -> datetime | None:
    localized = ensure_app_timezone(value)
    return None if localized is None else localized.replace(tzinfo=None)


def to_wire_timestamp(value: datetime | None) -> str | None:
    """ISO-8601 text with the app offset, as sent to HTTP and websocket clients."""

    localized = ensure_app_timezone(value)
    return None if localized is None else localized.isoformat()
