"""
Timestamps
----------

Rental rows have been written by several clients over time, and not all of
them stored the zone alongside the reading. Everything that reads an instant
out of storage goes through :func:`to_instant`, which applies the historical
convention that a reading without a zone is UTC wall clock time.

>>> to_instant("2025-11-02 10:02:33") == to_instant("2025-11-02T10:02:33Z")
True
"""

import math
import re
from datetime import datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from kiosk.config import display_timezone

ZONE_SUFFIX = re.compile(r"([zZ]|[+\-]\d{2}(:?\d{2})?)$")
"""Matches a trailing ``Z`` or ``+HH:MM``, ``+HHMM``, ``+HH`` offset."""

DISPLAY_ZONE = display_timezone


def now() -> datetime:
    """The current instant, as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_instant(raw: Union[datetime, str, None]) -> Optional[datetime]:
    """
    Normalizes a stored timestamp into an aware UTC datetime.

    :param raw: A datetime, or its textual representation.
    :return: The instant, or ``None`` if the value cannot be understood.
    """
    if raw is None:
        return None

    if isinstance(raw, datetime):
        if raw.tzinfo is None:
            return raw.replace(tzinfo=timezone.utc)
        return raw.astimezone(timezone.utc)

    if not isinstance(raw, str):
        return None

    value = raw.strip()
    if not value:
        return None

    if not ZONE_SUFFIX.search(value):
        value = value.replace(" ", "T", 1) + "+00:00"

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        # a bare date such as "2025-11-02" parses without a zone
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


def to_display_string(instant: Optional[datetime], zone: str = DISPLAY_ZONE) -> str:
    """
    Renders an instant the way the kiosk screens show it (en-IN style).

    >>> to_display_string(to_instant("2025-11-02T10:02:33Z"))
    '2/11/2025, 3:32:33 pm'
    """
    instant = to_instant(instant)
    if instant is None:
        return ""

    local = instant.astimezone(ZoneInfo(zone))
    hour = local.hour % 12 or 12
    meridiem = "am" if local.hour < 12 else "pm"
    return f"{local.day}/{local.month}/{local.year}, {hour}:{local.minute:02d}:{local.second:02d} {meridiem}"


def minutes_between(start: datetime, end: datetime) -> int:
    """The whole number of minutes from start to end, rounded half up and never negative."""
    minutes = (end - start).total_seconds() / 60
    return max(0, math.floor(minutes + 0.5))


def format_elapsed(start: datetime, end: datetime) -> str:
    """Formats the time from start to end as ``"{minutes}m {seconds}s"``."""
    seconds = max(0, math.floor((end - start).total_seconds()))
    return f"{seconds // 60}m {seconds % 60}s"
