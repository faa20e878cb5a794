"""Slash command handlers for meeting views and channel configuration."""

from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog
from pydantic import ValidationError
from slack_sdk.errors import SlackApiError

from ...attendance.service import AttendanceService, group_by_date
from ...calendar.client import CalendarClient
from ...calendar.models import format_long_date
from ...calendar.timezone import now_in, week_bounds
from ...config.settings import DEFAULT_TIMEZONE, Settings
from ...exceptions import CalendarError, MeetingBotError
from ...notifications.service import AnnouncementService
from ...storage.app_config import AppConfig, ConfigStore, WeeklySchedule
from ..blocks.event_blocks import (
    EventDisplayOptions,
    date_header,
    divider,
    event_section,
)
from ..blocks.modal_blocks import config_modal, config_saved_view, view_values

logger = structlog.get_logger()

RESTRICTED_CHANNEL_TEXT = (
    "❌ This command can only be executed in specific channels. "
    "Please contact an administrator."
)
CALENDAR_NOT_CONFIGURED_TEXT = (
    "❌ Calendar ID not configured. Please use `/meeting-config` to set it up."
)


def _get_deps(context: dict) -> Dict[str, Any]:
    """Get dependencies from context."""
    return context.get("deps", {})


def _timezone(deps: Dict[str, Any], config: AppConfig) -> str:
    settings: Optional[Settings] = deps.get("settings")
    default = settings.default_timezone if settings else DEFAULT_TIMEZONE
    return config.effective_timezone(default)


async def post_ephemeral(client: Any, command: dict, **kwargs: Any) -> None:
    await client.chat_postEphemeral(
        channel=command["channel_id"], user=command["user_id"], **kwargs
    )


async def ensure_allowed_channel(
    client: Any, command: dict, config: AppConfig
) -> bool:
    """Tell the user and return False when the channel is not allowed."""
    if config.can_run_in(command["channel_id"]):
        return True
    logger.warning(
        "Command rejected by channel restriction",
        command=command.get("command"),
        channel_id=command["channel_id"],
        user_id=command["user_id"],
    )
    await post_ephemeral(client, command, text=RESTRICTED_CHANNEL_TEXT)
    return False


async def ensure_calendar(client: Any, command: dict, config: AppConfig) -> bool:
    if config.calendar_id:
        return True
    await post_ephemeral(client, command, text=CALENDAR_NOT_CONFIGURED_TEXT)
    return False


def _parse_week_offset(text: Optional[str]) -> int:
    try:
        return int((text or "").strip().split()[0])
    except (ValueError, IndexError):
        return 0


# ── Views ─────────────────────────────────────────────────────


async def meeting_today(ack, command, client, context) -> None:
    """Handle /meeting-today: today's meetings with attendees, ephemeral."""
    await ack()

    deps = _get_deps(context)
    config = await deps["config_store"].read()
    if not await ensure_calendar(client, command, config):
        return

    calendar: CalendarClient = deps["calendar"]
    attendance: AttendanceService = deps["attendance"]
    tz = _timezone(deps, config)

    try:
        events = await calendar.fetch_todays_events(config.calendar_id, tz)
        if not events:
            await post_ephemeral(
                client, command, text="📅 No meetings scheduled for today!"
            )
            return

        events.sort(key=lambda e: e.start)
        today = now_in(tz)
        blocks: List[Dict[str, Any]] = [
            date_header(f"📅 Today's Meetings - {today:%A}, {today:%B} {today.day}"),
            divider(),
        ]
        detailed = EventDisplayOptions(detailed_attendance=True)
        for event, _, names in await attendance.events_with_attendance(events, tz):
            blocks.append(event_section(event, names, tz, detailed))
            blocks.append(divider())

        await post_ephemeral(client, command, blocks=blocks, text="Today's Meetings")
    except (CalendarError, SlackApiError) as e:
        logger.error("Error displaying today's meetings", error=str(e))
        await post_ephemeral(
            client,
            command,
            text="❌ Error fetching today's meetings. Please try again later.",
        )


async def meeting_calendar(ack, command, client, context) -> None:
    """Handle /meeting-calendar [offset]: one week of meetings, ephemeral."""
    await ack()

    deps = _get_deps(context)
    config = await deps["config_store"].read()
    if not await ensure_calendar(client, command, config):
        return

    calendar: CalendarClient = deps["calendar"]
    attendance: AttendanceService = deps["attendance"]
    tz = _timezone(deps, config)
    week_offset = _parse_week_offset(command.get("text"))

    try:
        start, end = week_bounds(tz, week_offset)
        week_label = f"{start:%m/%d/%Y}"
        events = await calendar.fetch_weekly_events(config.calendar_id, start, end)
        if not events:
            await post_ephemeral(
                client,
                command,
                text=f"No meetings found for the week of {week_label}.",
            )
            return

        blocks: List[Dict[str, Any]] = [
            date_header(f"📅 Meeting Calendar - Week of {week_label}"),
            divider(),
        ]
        detailed = EventDisplayOptions(detailed_attendance=True)
        items = await attendance.events_with_attendance(events, tz)
        for day, day_items in group_by_date(items, tz).items():
            blocks.append(date_header(format_long_date(day)))
            for event, _, names in day_items:
                blocks.append(event_section(event, names, tz, detailed))
                blocks.append(divider())

        await post_ephemeral(client, command, blocks=blocks, text="Meeting Calendar")
    except (CalendarError, SlackApiError) as e:
        logger.error(
            "Error displaying calendar view", week_offset=week_offset, error=str(e)
        )
        await post_ephemeral(
            client,
            command,
            text="❌ Error fetching calendar data. Please try again later.",
        )


async def daily_reminder(ack, command, client, context) -> None:
    """Handle /daily-reminder: post the daily reminder now."""
    await ack()

    announcements: AnnouncementService = _get_deps(context)["announcements"]
    try:
        posted = await announcements.post_daily_reminders()
    except (MeetingBotError, SlackApiError) as e:
        logger.error("Error posting daily reminder", error=str(e))
        await post_ephemeral(
            client, command, text=f"❌ Error posting daily reminder: {e}"
        )
        return

    if posted:
        text = "✅ Daily reminder posted successfully to the configured channel!"
    else:
        text = (
            "ℹ️ Nothing to post: no meetings today or tomorrow, the reminder "
            "was already posted, or the channel is not configured."
        )
    await post_ephemeral(client, command, text=text)


# ── Configuration ─────────────────────────────────────────────


async def meeting_config(ack, command, client, context) -> None:
    """Handle /meeting-config: open the configuration modal."""
    await ack()

    config = await _get_deps(context)["config_store"].read()
    if not await ensure_allowed_channel(client, command, config):
        return

    try:
        await client.views_open(
            trigger_id=command["trigger_id"], view=config_modal(config)
        )
    except SlackApiError as e:
        logger.error("Error opening config modal", error=str(e))


def config_from_values(values: Dict[str, Any]) -> AppConfig:
    """Build an :class:`AppConfig` from flattened modal values."""
    day = values.get("weekly_day")
    weekly_time = values.get("weekly_time")
    weekly = (
        WeeklySchedule(day_of_week=int(day), time=weekly_time)
        if day is not None and weekly_time
        else None
    )
    return AppConfig(
        channel_id=values.get("channel") or None,
        calendar_id=values.get("calendar_id") or None,
        timezone=values.get("timezone") or DEFAULT_TIMEZONE,
        weekly_schedule=weekly,
        reminder_time=values.get("reminder_time") or None,
        weekly_template=values.get("weekly_template") or None,
        daily_template=values.get("daily_template") or None,
        allowed_channels=values.get("allowed_channels") or None,
    )


async def config_submission(ack, view, context) -> None:
    """Handle the config_modal submission: save, then resync the scheduler."""
    deps = _get_deps(context)
    config_store: ConfigStore = deps["config_store"]

    values = view_values(view)
    timezone = values.get("timezone")
    if timezone:
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            await ack(
                response_action="errors",
                errors={"timezone": f"Unknown timezone: {timezone}"},
            )
            return

    try:
        config = config_from_values(values)
        await config_store.write(config)
    except (MeetingBotError, ValidationError, ValueError) as e:
        logger.error("Error saving configuration", error=str(e))
        await ack(
            response_action="errors",
            errors={
                "calendar_id": (
                    "Failed to save configuration. "
                    "Please check the logs and try again."
                )
            },
        )
        return

    scheduler_error: Optional[str] = None
    scheduler = deps.get("scheduler")
    if scheduler is not None:
        try:
            scheduler.sync_with_config(config)
        except MeetingBotError as e:
            scheduler_error = str(e)
            logger.error("Error updating scheduled jobs", error=scheduler_error)

    await ack(response_action="update", view=config_saved_view(scheduler_error))
