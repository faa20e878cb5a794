"""Announcement service for posting meeting schedules to the configured channel.

Covers the weekly schedule, the daily today/tomorrow reminder, the
"meeting starting now" notice and the announcement for an event created
mid-week.  Posting goes through the Slack Web API client; calendar reads
go through :class:`CalendarClient`.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import structlog
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from ..attendance.service import AttendanceService, group_by_date
from ..bot.blocks.event_blocks import (
    EventDisplayOptions,
    attendance_text,
    bulk_attendance_buttons,
    date_header,
    divider,
    event_with_buttons,
    intro_section,
)
from ..bot.utils.slack_format import escape_mrkdwn
from ..calendar.client import CalendarClient
from ..calendar.models import CalendarEvent, format_event_time, format_long_date
from ..calendar.timezone import format_for_logging, now_in
from ..config.settings import DEFAULT_TIMEZONE
from ..storage.app_config import AppConfig, ConfigStore
from .tracker import AnnouncementTracker

logger = structlog.get_logger()

WEEKLY_TEMPLATE = (
    "📅 *Weekly Meeting Schedule*\n\n"
    "Here are the meetings for this week. Please confirm your attendance:"
)
NEW_EVENT_INTRO = (
    "🆕 *New Event this Week*\n\n"
    "A new event has been added to the calendar this week. "
    "Please confirm your attendance:"
)

# Meeting-start entries are kept until this long after the meeting ends.
START_ANNOUNCEMENT_RETENTION = timedelta(hours=1)


class AnnouncementService:
    """Posts scheduled and ad-hoc meeting announcements."""

    def __init__(
        self,
        client: AsyncWebClient,
        calendar: CalendarClient,
        config_store: ConfigStore,
        attendance: AttendanceService,
        tracker: Optional[AnnouncementTracker] = None,
        default_timezone: str = DEFAULT_TIMEZONE,
        start_window: timedelta = timedelta(minutes=5),
    ) -> None:
        self.client = client
        self.calendar = calendar
        self.config_store = config_store
        self.attendance = attendance
        self.tracker = tracker or AnnouncementTracker()
        self.default_timezone = default_timezone
        self.start_window = start_window

    async def _load_config(
        self, action: str, need_calendar: bool = True
    ) -> Optional[Tuple[AppConfig, str]]:
        config = await self.config_store.read()
        if not config.channel_id or (need_calendar and not config.calendar_id):
            logger.warning(
                "Channel or calendar not configured, skipping",
                action=action,
                channel_id=config.channel_id,
                calendar_id=config.calendar_id,
            )
            return None
        return config, config.effective_timezone(self.default_timezone)

    # ── Weekly ────────────────────────────────────────────────────

    async def post_weekly_announcement(self) -> bool:
        """Post the coming week's meetings grouped by day.

        Returns False when nothing was posted.  Slack and calendar errors
        propagate to the caller.
        """
        loaded = await self._load_config("weekly_announcement")
        if loaded is None:
            return False
        config, tz = loaded

        events = await self.calendar.fetch_weekly_events(config.calendar_id)
        if not events:
            logger.info("No events found for this week")
            return False

        blocks: List[Dict[str, Any]] = [
            intro_section(config.weekly_template or WEEKLY_TEMPLATE),
            divider(),
        ]
        items = await self.attendance.events_with_attendance(events, tz)
        for day, day_items in group_by_date(items, tz).items():
            blocks.append(date_header(format_long_date(day)))
            for event, key, attendance in day_items:
                blocks.extend(event_with_buttons(event, key, attendance, tz))

        await self.client.chat_postMessage(
            channel=config.channel_id,
            blocks=blocks,
            text="Weekly Meeting Schedule",
        )
        logger.info(
            "Weekly announcement posted",
            channel_id=config.channel_id,
            events=len(events),
        )
        return True

    # ── Daily ─────────────────────────────────────────────────────

    async def post_daily_reminders(self, now: Optional[datetime] = None) -> bool:
        """Post today's and tomorrow's meetings.

        Skipped when there are no events, or when exactly this set of
        events was already posted today.
        """
        loaded = await self._load_config("daily_reminders")
        if loaded is None:
            return False
        config, tz = loaded

        local_now = now_in(tz, now)
        self.tracker.reset_if_new_day(local_now.date())

        today_events, tomorrow_events = await asyncio.gather(
            self.calendar.fetch_todays_events(config.calendar_id, tz, now),
            self.calendar.fetch_tomorrows_events(config.calendar_id, tz, now),
        )
        logger.info(
            "Fetched events for daily reminder",
            today=[e.summary for e in today_events],
            tomorrow=[e.summary for e in tomorrow_events],
        )

        total = len(today_events) + len(tomorrow_events)
        if total == 0:
            logger.info("No events found for today or tomorrow")
            return False

        posted_key = "daily:" + ",".join(e.id for e in today_events + tomorrow_events)
        if self.tracker.seen(posted_key):
            logger.info("Daily reminders already posted today, skipping")
            return False

        blocks: List[Dict[str, Any]] = []
        if config.daily_template:
            blocks.extend([intro_section(config.daily_template), divider()])

        keys: List[str] = []
        sections = (
            ("Today's Events", today_events, "🔔 "),
            ("Tomorrow's Events", tomorrow_events, "📅 "),
        )
        for header, events, prefix in sections:
            if not events:
                continue
            blocks.append(date_header(header))
            options = EventDisplayOptions(title_prefix=prefix)
            for event, key, attendance in await self.attendance.events_with_attendance(
                events, tz
            ):
                blocks.extend(event_with_buttons(event, key, attendance, tz, options))
                keys.append(key)

        if total > 1:
            blocks.append(bulk_attendance_buttons(keys))

        summary = []
        if today_events:
            summary.append(f"{len(today_events)} today")
        if tomorrow_events:
            summary.append(f"{len(tomorrow_events)} tomorrow")

        await self.client.chat_postMessage(
            channel=config.channel_id,
            blocks=blocks,
            text=f"Daily Meeting Reminders - {', '.join(summary)}",
            unfurl_links=False,
            unfurl_media=False,
        )
        self.tracker.mark(posted_key)
        logger.info(
            "Daily reminders posted",
            channel_id=config.channel_id,
            today=len(today_events),
            tomorrow=len(tomorrow_events),
        )
        return True

    # ── Meeting starts ────────────────────────────────────────────

    async def announce_meeting_starts(self, now: Optional[datetime] = None) -> int:
        """Announce today's meetings that start within the start window.

        Each meeting is announced once.  Returns the number posted.
        """
        loaded = await self._load_config("meeting_starts")
        if loaded is None:
            return 0
        config, tz = loaded

        current = now or datetime.now(timezone.utc)
        self.tracker.reset_if_new_day(now_in(tz, current).date())
        self.tracker.purge(current)

        events = await self.calendar.fetch_todays_events(config.calendar_id, tz, now)
        logger.debug(
            "Checking meeting starts",
            now=format_for_logging(current, tz),
            events=len(events),
        )

        due: List[CalendarEvent] = []
        for event in events:
            if self.tracker.seen(_start_key(event)):
                continue
            until_start = event.start - current
            if timedelta(0) <= until_start <= self.start_window:
                due.append(event)

        posted = 0
        for event, _, attendance in await self.attendance.events_with_attendance(
            due, tz
        ):
            text = f"🔔 *Meeting Starting Now: {escape_mrkdwn(event.summary)}*\n"
            text += f"🕐 {format_event_time(event, tz)}\n"
            if event.location:
                text += f"📍 {escape_mrkdwn(event.location)}\n"
            text += attendance_text(
                attendance.attending, attendance.not_attending, detailed=True
            )
            try:
                await self.client.chat_postMessage(
                    channel=config.channel_id,
                    blocks=[intro_section(text)],
                    text=f"Meeting Starting: {event.summary}",
                )
            except SlackApiError as e:
                logger.error(
                    "Failed to post meeting start",
                    event_id=event.id,
                    error=str(e),
                )
                continue
            self.tracker.mark(
                _start_key(event), event.end + START_ANNOUNCEMENT_RETENTION
            )
            posted += 1
            logger.info(
                "Meeting start announced",
                event_id=event.id,
                summary=event.summary,
                start=format_for_logging(event.start, tz),
            )
        return posted

    # ── New events ────────────────────────────────────────────────

    async def post_new_event_announcement(self, event: CalendarEvent) -> bool:
        """Announce an event created this week.  Never raises."""
        try:
            loaded = await self._load_config("new_event", need_calendar=False)
            if loaded is None:
                return False
            config, tz = loaded

            _, key, attendance = await self.attendance.event_with_attendance(event, tz)
            blocks = [
                intro_section(NEW_EVENT_INTRO),
                divider(),
                *event_with_buttons(
                    event, key, attendance, tz, EventDisplayOptions(show_date=True)
                ),
            ]
            await self.client.chat_postMessage(
                channel=config.channel_id,
                blocks=blocks,
                text="New Event this Week",
            )
        except Exception as e:
            logger.error(
                "Failed to post new event announcement",
                event_id=event.id,
                error=str(e),
            )
            return False

        logger.info("New event announced", event_id=event.id, summary=event.summary)
        return True


def _start_key(event: CalendarEvent) -> str:
    return f"start:{event.id}"
