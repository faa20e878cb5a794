"""Timezone helpers for day and week boundaries.

All boundaries are computed in the channel's configured IANA timezone
and returned as aware datetimes, so callers can pass them straight to
the Calendar API as RFC 3339 strings.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def now_in(tz: str, now: Optional[datetime] = None) -> datetime:
    """Current time (or ``now``) expressed in ``tz``."""
    current = now or datetime.now(timezone.utc)
    return current.astimezone(ZoneInfo(tz))


def _midnight(day: date, tz: str) -> datetime:
    return datetime.combine(day, time(0, 0), tzinfo=ZoneInfo(tz))


def day_bounds(
    tz: str, day_offset: int = 0, now: Optional[datetime] = None
) -> Tuple[datetime, datetime]:
    """Start (00:00) and end (23:59:59.999999) of a local day."""
    day = now_in(tz, now).date() + timedelta(days=day_offset)
    start = _midnight(day, tz)
    end = _midnight(day + timedelta(days=1), tz) - timedelta(microseconds=1)
    return start, end


def week_bounds(
    tz: str, week_offset: int = 0, now: Optional[datetime] = None
) -> Tuple[datetime, datetime]:
    """Monday 00:00 of the target week and Monday 00:00 of the week after."""
    today = now_in(tz, now).date() + timedelta(weeks=week_offset)
    monday = today - timedelta(days=today.weekday())
    return _midnight(monday, tz), _midnight(monday + timedelta(days=7), tz)


def is_in_current_week(
    when: datetime, tz: str, now: Optional[datetime] = None
) -> bool:
    """Whether ``when`` falls between this Monday 00:00 and next Monday 00:00."""
    start, end = week_bounds(tz, 0, now)
    return start <= when < end


def local_datetime(
    year: int, month: int, day: int, hour: int, minute: int, tz: str
) -> datetime:
    """Build an aware datetime from wall-clock components in ``tz``."""
    return datetime(year, month, day, hour, minute, tzinfo=ZoneInfo(tz))


def parse_hhmm(value: str) -> Tuple[int, int]:
    """Parse ``HH:MM`` into ``(hour, minute)``.

    Raises:
        ValueError: if the string is not a valid 24-hour time.
    """
    match = _HHMM.match(value.strip()) if value else None
    if not match:
        raise ValueError(f"Invalid time (expected HH:MM): {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Time out of range: {value!r}")
    return hour, minute


def parse_iso_date(value: str) -> date:
    """Parse a Slack datepicker value (``YYYY-MM-DD``)."""
    return date.fromisoformat(value)


def format_for_logging(when: datetime, tz: str) -> str:
    """Format as ``2024-01-15 09:00:00 PST (17:00:00 UTC)``."""
    local = when.astimezone(ZoneInfo(tz))
    utc = when.astimezone(timezone.utc)
    return f"{local:%Y-%m-%d %H:%M:%S %Z} ({utc:%H:%M:%S} UTC)"
