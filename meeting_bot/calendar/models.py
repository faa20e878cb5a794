"""Calendar event data model and display formatting."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

UNTITLED_EVENT = "Untitled Event"


def parse_api_time(value: Dict[str, Any]) -> datetime:
    """Parse a Google Calendar ``start``/``end`` object.

    Timed events carry ``dateTime`` (RFC 3339); all-day events only carry
    ``date``, which is read as midnight UTC.
    """
    raw = value.get("dateTime")
    if raw:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            tz_name = value.get("timeZone")
            zone = ZoneInfo(tz_name) if tz_name else timezone.utc
            parsed = parsed.replace(tzinfo=zone)
        return parsed

    day = date.fromisoformat(value["date"])
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


@dataclass
class CalendarEvent:
    """A single (possibly recurring-instance) calendar event."""

    id: str
    summary: str
    start: datetime
    end: datetime
    recurring_event_id: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    html_link: Optional[str] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "CalendarEvent":
        """Build an event from a Calendar API event resource."""
        return cls(
            id=item.get("id") or "",
            summary=item.get("summary") or UNTITLED_EVENT,
            start=parse_api_time(item.get("start") or {}),
            end=parse_api_time(item.get("end") or {}),
            recurring_event_id=item.get("recurringEventId") or None,
            description=item.get("description") or None,
            location=item.get("location") or None,
            html_link=item.get("htmlLink") or None,
        )

    def local_start(self, tz: str) -> datetime:
        return self.start.astimezone(ZoneInfo(tz))

    def local_date(self, tz: str) -> date:
        return self.local_start(tz).date()


@dataclass
class CreateEventData:
    """Fields for a new calendar event."""

    summary: str
    start: datetime
    end: datetime
    description: Optional[str] = None
    location: Optional[str] = None
    recurrence: List[str] = field(default_factory=list)


@dataclass
class UpdateEventData:
    """Fields to change on an existing event; ``None`` keeps the current value."""

    summary: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    description: Optional[str] = None
    location: Optional[str] = None
    recurrence: Optional[List[str]] = None


def format_clock(when: datetime) -> str:
    """Format a time as ``9:05 AM``."""
    hour = when.strftime("%I").lstrip("0") or "12"
    return f"{hour}:{when:%M} {when:%p}"


def format_event_time(event: CalendarEvent, tz: str) -> str:
    """Format the event's time range in ``tz``, e.g. ``9:00 AM - 10:00 AM``."""
    zone = ZoneInfo(tz)
    start = event.start.astimezone(zone)
    end = event.end.astimezone(zone)
    return f"{format_clock(start)} - {format_clock(end)}"


def format_long_date(day: date) -> str:
    """Format a date as ``Monday, January 15, 2024``."""
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


def format_event_date(event: CalendarEvent, tz: str) -> str:
    """Format the event's start date in ``tz``."""
    return format_long_date(event.local_date(tz))
