"""Google Calendar integration."""

from .client import CalendarClient
from .models import (
    CalendarEvent,
    CreateEventData,
    UpdateEventData,
    format_event_date,
    format_event_time,
)

__all__ = [
    "CalendarClient",
    "CalendarEvent",
    "CreateEventData",
    "UpdateEventData",
    "format_event_date",
    "format_event_time",
]
