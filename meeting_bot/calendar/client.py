"""Google Calendar API client.

Wraps the synchronous ``googleapiclient`` service object.  Every API call
runs in a worker thread so slash-command handlers and scheduled jobs on
the Bolt event loop are never blocked by HTTP round-trips.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, NoReturn, Optional, Tuple
from zoneinfo import ZoneInfo

import google.auth
import structlog
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..config.settings import Settings
from ..exceptions import CalendarError, CalendarNotFoundError, CalendarPermissionError
from .models import CalendarEvent, CreateEventData, UpdateEventData
from .timezone import day_bounds

logger = structlog.get_logger()

SCOPES = ["https://www.googleapis.com/auth/calendar"]


def _rfc3339(when: datetime) -> str:
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _wall_clock(when: datetime, tz: str) -> str:
    # Calendar interprets a zone-less dateTime in the accompanying timeZone.
    return when.astimezone(ZoneInfo(tz)).strftime("%Y-%m-%dT%H:%M:%S")


def _status(error: HttpError) -> int:
    return int(getattr(error.resp, "status", 0) or 0)


class CalendarClient:
    """Async facade over the Calendar v3 events API."""

    def __init__(self, service: Any, account_email: Optional[str] = None) -> None:
        self.service = service
        self.account_email = account_email

    @classmethod
    def from_settings(cls, settings: Settings) -> "CalendarClient":
        """Build a client from inline JSON, a key file, or default credentials."""
        account_email: Optional[str] = None
        info = settings.service_account_info_str

        if info:
            data = json.loads(info)
            account_email = data.get("client_email")
            credentials = service_account.Credentials.from_service_account_info(
                data, scopes=SCOPES
            )
            source = "inline_json"
        elif settings.google_service_account_path.exists():
            credentials = service_account.Credentials.from_service_account_file(
                str(settings.google_service_account_path), scopes=SCOPES
            )
            account_email = credentials.service_account_email
            source = "key_file"
        else:
            credentials, _ = google.auth.default(scopes=SCOPES)
            source = "application_default"

        service = build(
            "calendar", "v3", credentials=credentials, cache_discovery=False
        )
        logger.info("Calendar client initialised", credentials=source)
        return cls(service, account_email=account_email)

    async def _execute(self, request: Any) -> Dict[str, Any]:
        return await asyncio.to_thread(request.execute)

    def _raise_for(self, error: HttpError, calendar_id: str) -> NoReturn:
        status = _status(error)
        if status == 403:
            account = self.account_email or "service account"
            raise CalendarPermissionError(
                f"Permission denied. Please ensure the service account ({account}) "
                f'has "Make changes to events" permission on calendar "{calendar_id}".'
            ) from error
        if status == 404:
            raise CalendarNotFoundError(
                f'Calendar not found: "{calendar_id}". '
                "Please verify the calendar ID is correct."
            ) from error
        raise CalendarError(f"Calendar API error ({status}): {error}") from error

    # ── Reads ─────────────────────────────────────────────────────

    async def verify_access(self, calendar_id: str) -> Tuple[bool, Optional[str]]:
        """Check that the calendar exists and is readable."""
        try:
            await self._execute(self.service.calendars().get(calendarId=calendar_id))
            return True, None
        except HttpError as e:
            logger.error(
                "Calendar access verification failed",
                calendar_id=calendar_id,
                status=_status(e),
            )
            try:
                self._raise_for(e, calendar_id)
            except CalendarError as mapped:
                return False, str(mapped)
        return False, "Unknown error verifying calendar access"

    async def list_events(
        self,
        calendar_id: str,
        time_min: datetime,
        time_max: Optional[datetime] = None,
        query: Optional[str] = None,
        max_results: Optional[int] = None,
    ) -> List[CalendarEvent]:
        """List expanded (single) events ordered by start time."""
        params: Dict[str, Any] = {
            "calendarId": calendar_id,
            "timeMin": _rfc3339(time_min),
            "singleEvents": True,
            "orderBy": "startTime",
        }
        if time_max is not None:
            params["timeMax"] = _rfc3339(time_max)
        if query:
            params["q"] = query
        if max_results is not None:
            params["maxResults"] = max_results

        events: List[CalendarEvent] = []
        page_token: Optional[str] = None
        try:
            while True:
                if page_token:
                    params["pageToken"] = page_token
                response = await self._execute(self.service.events().list(**params))
                events.extend(
                    CalendarEvent.from_api(item) for item in response.get("items", [])
                )
                page_token = response.get("nextPageToken")
                if not page_token or (
                    max_results is not None and len(events) >= max_results
                ):
                    break
        except HttpError as e:
            logger.error("Error listing events", calendar_id=calendar_id, error=str(e))
            self._raise_for(e, calendar_id)

        if max_results is not None:
            events = events[:max_results]
        return events

    async def fetch_weekly_events(
        self,
        calendar_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[CalendarEvent]:
        """Events between ``start`` (default now) and ``end`` (default +7 days)."""
        time_min = start or datetime.now(timezone.utc)
        time_max = end or time_min + timedelta(days=7)
        return await self.list_events(calendar_id, time_min, time_max)

    async def fetch_day_events(
        self,
        calendar_id: str,
        tz: str,
        day_offset: int = 0,
        now: Optional[datetime] = None,
    ) -> List[CalendarEvent]:
        """Events whose local start date is today + ``day_offset`` in ``tz``.

        The API also returns events that merely overlap the window (for
        example one that started last night), so results are filtered on
        the local start date.
        """
        start, end = day_bounds(tz, day_offset, now)
        events = await self.list_events(calendar_id, start, end)
        target = start.date()
        day_events = [e for e in events if e.local_date(tz) == target]
        logger.debug(
            "Fetched day events",
            calendar_id=calendar_id,
            day=target.isoformat(),
            returned=len(events),
            kept=len(day_events),
        )
        return day_events

    async def fetch_todays_events(
        self, calendar_id: str, tz: str, now: Optional[datetime] = None
    ) -> List[CalendarEvent]:
        return await self.fetch_day_events(calendar_id, tz, 0, now)

    async def fetch_tomorrows_events(
        self, calendar_id: str, tz: str, now: Optional[datetime] = None
    ) -> List[CalendarEvent]:
        return await self.fetch_day_events(calendar_id, tz, 1, now)

    async def get_event(self, calendar_id: str, event_id: str) -> CalendarEvent:
        """Fetch one event by id."""
        try:
            item = await self._execute(
                self.service.events().get(calendarId=calendar_id, eventId=event_id)
            )
        except HttpError as e:
            logger.error("Error fetching event", event_id=event_id, error=str(e))
            self._raise_for(e, calendar_id)
        return CalendarEvent.from_api(item)

    async def search_events(
        self,
        calendar_id: str,
        query: Optional[str] = None,
        max_results: int = 20,
        time_min: Optional[datetime] = None,
        time_max: Optional[datetime] = None,
    ) -> List[CalendarEvent]:
        """Search upcoming events (from now unless ``time_min`` is given)."""
        return await self.list_events(
            calendar_id,
            time_min or datetime.now(timezone.utc),
            time_max,
            query=query,
            max_results=max_results,
        )

    # ── Writes ────────────────────────────────────────────────────

    async def create_event(
        self, calendar_id: str, data: CreateEventData, tz: str
    ) -> CalendarEvent:
        """Insert an event without sending invitation emails."""
        body: Dict[str, Any] = {
            "summary": data.summary,
            "start": {"dateTime": _wall_clock(data.start, tz), "timeZone": tz},
            "end": {"dateTime": _wall_clock(data.end, tz), "timeZone": tz},
        }
        if data.description:
            body["description"] = data.description
        if data.location:
            body["location"] = data.location
        if data.recurrence:
            body["recurrence"] = list(data.recurrence)

        try:
            item = await self._execute(
                self.service.events().insert(
                    calendarId=calendar_id,
                    body=body,
                    sendUpdates="none",
                    conferenceDataVersion=0,
                )
            )
        except HttpError as e:
            logger.error(
                "Error creating calendar event",
                calendar_id=calendar_id,
                status=_status(e),
                error=str(e),
            )
            self._raise_for(e, calendar_id)

        event = CalendarEvent.from_api(item)
        logger.info("Calendar event created", event_id=event.id, summary=event.summary)
        return event

    async def update_event(
        self, calendar_id: str, event_id: str, data: UpdateEventData, tz: str
    ) -> CalendarEvent:
        """Replace an event, keeping current values for fields left as None."""
        existing = await self.get_event(calendar_id, event_id)

        body: Dict[str, Any] = {
            "summary": data.summary if data.summary is not None else existing.summary,
            "start": {
                "dateTime": _wall_clock(data.start or existing.start, tz),
                "timeZone": tz,
            },
            "end": {
                "dateTime": _wall_clock(data.end or existing.end, tz),
                "timeZone": tz,
            },
        }
        description = (
            data.description if data.description is not None else existing.description
        )
        if description is not None:
            body["description"] = description
        location = data.location if data.location is not None else existing.location
        if location is not None:
            body["location"] = location
        if data.recurrence is not None:
            body["recurrence"] = list(data.recurrence)

        try:
            item = await self._execute(
                self.service.events().update(
                    calendarId=calendar_id, eventId=event_id, body=body
                )
            )
        except HttpError as e:
            logger.error(
                "Error updating calendar event", event_id=event_id, error=str(e)
            )
            self._raise_for(e, calendar_id)

        event = CalendarEvent.from_api(item)
        logger.info("Calendar event updated", event_id=event.id, summary=event.summary)
        return event
