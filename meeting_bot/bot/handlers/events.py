"""Create and update calendar events through Slack modals.

``/create-event`` opens a single form.  ``/update-event`` is a three-step
flow: a search form, a result picker, then the pre-filled edit form.
Each step is a view submission answered with ``response_action``.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import structlog
from slack_sdk.errors import SlackApiError

from ...calendar.client import CalendarClient
from ...calendar.models import CreateEventData, UpdateEventData
from ...calendar.recurrence import build_rrule
from ...calendar.timezone import (
    is_in_current_week,
    local_datetime,
    parse_hhmm,
    parse_iso_date,
)
from ...config.settings import DEFAULT_TIMEZONE
from ...exceptions import CalendarError
from ...notifications.service import AnnouncementService
from ...storage.app_config import AppConfig
from ..blocks.modal_blocks import (
    create_event_modal,
    event_selection_modal,
    search_event_modal,
    success_modal,
    update_event_modal,
    view_values,
)
from .command import ensure_allowed_channel, ensure_calendar, post_ephemeral

logger = structlog.get_logger()

# Search results offered in the picker.
SEARCH_LIMIT = 20


def _get_deps(context: dict) -> Dict[str, Any]:
    """Get dependencies from context."""
    return context.get("deps", {})


def _tz(deps: Dict[str, Any], config: AppConfig) -> str:
    settings = deps.get("settings")
    return config.effective_timezone(
        settings.default_timezone if settings else DEFAULT_TIMEZONE
    )


def validate_event_fields(
    values: Dict[str, Any], tz: str
) -> Tuple[Optional[Tuple[datetime, datetime]], Dict[str, str]]:
    """Check the shared create/update fields.

    Returns ``((start, end), {})`` when valid, otherwise ``(None, errors)``
    keyed by block id.
    """
    errors: Dict[str, str] = {}
    if not values.get("title"):
        errors["title"] = "Title is required."
    if not values.get("date"):
        errors["date"] = "Date is required."
    if not values.get("start_time"):
        errors["start_time"] = "Start time is required."
    if not values.get("end_time"):
        errors["end_time"] = "End time is required."
    if errors:
        return None, errors

    day = parse_iso_date(values["date"])
    start_hour, start_minute = parse_hhmm(values["start_time"])
    end_hour, end_minute = parse_hhmm(values["end_time"])
    start = local_datetime(day.year, day.month, day.day, start_hour, start_minute, tz)
    end = local_datetime(day.year, day.month, day.day, end_hour, end_minute, tz)
    if end <= start:
        return None, {"end_time": "End time must be after start time."}
    return (start, end), {}


# ── Slash commands ────────────────────────────────────────────


async def _open_modal(
    command: dict, client: Any, context: dict, view: Dict[str, Any], what: str
) -> None:
    config = await _get_deps(context)["config_store"].read()
    if not await ensure_allowed_channel(client, command, config):
        return
    if not await ensure_calendar(client, command, config):
        return

    try:
        await client.views_open(trigger_id=command["trigger_id"], view=view)
    except SlackApiError as e:
        logger.error("Error opening modal", modal=what, error=str(e))
        await post_ephemeral(
            client, command, text=f"❌ Error opening event {what} form: {e}"
        )


async def create_event_command(ack, command, client, context) -> None:
    """Handle /create-event."""
    await ack()
    await _open_modal(
        command,
        client,
        context,
        create_event_modal(command.get("channel_id")),
        "creation",
    )


async def update_event_command(ack, command, client, context) -> None:
    """Handle /update-event."""
    await ack()
    await _open_modal(
        command,
        client,
        context,
        search_event_modal(command.get("channel_id")),
        "search",
    )


# ── View submissions ──────────────────────────────────────────


async def create_event_submission(ack, view, context) -> None:
    deps = _get_deps(context)
    config: AppConfig = await deps["config_store"].read()
    calendar: CalendarClient = deps["calendar"]
    tz = _tz(deps, config)
    values = view_values(view)

    times, errors = validate_event_fields(values, tz)
    if errors:
        await ack(response_action="errors", errors=errors)
        return
    start, end = times

    rrule = build_rrule(values.get("recurrence"), start)
    data = CreateEventData(
        summary=values["title"],
        start=start,
        end=end,
        description=values.get("description") or None,
        location=values.get("location") or None,
        recurrence=[rrule] if rrule else [],
    )

    try:
        event = await calendar.create_event(config.calendar_id, data, tz)
    except CalendarError as e:
        logger.error("Error creating event", error=str(e))
        await ack(
            response_action="errors",
            errors={"title": f"Failed to create event: {e}"},
        )
        return

    await ack(
        response_action="update",
        view=success_modal(
            "Event Created",
            f'Event "{event.summary}" has been created successfully!',
            event.html_link,
        ),
    )

    if is_in_current_week(event.start, tz):
        logger.info("New event is in the current week", event_id=event.id)
        announcements: AnnouncementService = deps["announcements"]
        await announcements.post_new_event_announcement(event)


async def select_event_submission(ack, view, context) -> None:
    """Search submitted: show matching events to pick from."""
    deps = _get_deps(context)
    config: AppConfig = await deps["config_store"].read()
    calendar: CalendarClient = deps["calendar"]
    tz = _tz(deps, config)
    values = view_values(view)

    time_min: Optional[datetime] = None
    time_max: Optional[datetime] = None
    if values.get("start_date"):
        day = parse_iso_date(values["start_date"])
        time_min = local_datetime(day.year, day.month, day.day, 0, 0, tz)
    if values.get("end_date"):
        day = parse_iso_date(values["end_date"])
        time_max = local_datetime(day.year, day.month, day.day, 23, 59, tz)

    try:
        events = await calendar.search_events(
            config.calendar_id,
            query=values.get("search_keyword") or None,
            max_results=SEARCH_LIMIT,
            time_min=time_min,
            time_max=time_max,
        )
    except CalendarError as e:
        logger.error("Error searching events", error=str(e))
        await ack(
            response_action="errors",
            errors={"search_keyword": f"Error searching events: {e}"},
        )
        return

    if not events:
        await ack(
            response_action="errors",
            errors={
                "search_keyword": "No events found matching your search criteria."
            },
        )
        return

    await ack(
        response_action="update",
        view=event_selection_modal(events, tz, view.get("private_metadata")),
    )


async def select_event_result_submission(ack, view, context) -> None:
    """Event picked: open the pre-filled edit form."""
    deps = _get_deps(context)
    config: AppConfig = await deps["config_store"].read()
    calendar: CalendarClient = deps["calendar"]
    event_id = view_values(view).get("event_id")

    if not event_id:
        await ack(
            response_action="errors", errors={"event_id": "Please select an event."}
        )
        return

    try:
        event = await calendar.get_event(config.calendar_id, event_id)
    except CalendarError as e:
        logger.error("Error loading event", event_id=event_id, error=str(e))
        await ack(
            response_action="errors",
            errors={"event_id": f"Error loading event: {e}"},
        )
        return

    await ack(
        response_action="update", view=update_event_modal(event, _tz(deps, config))
    )


async def update_event_submission(ack, view, context) -> None:
    deps = _get_deps(context)
    event_id = (view or {}).get("private_metadata")
    if not event_id:
        await ack(
            response_action="errors",
            errors={"title": "Event ID is missing. Please try again."},
        )
        return

    config: AppConfig = await deps["config_store"].read()
    calendar: CalendarClient = deps["calendar"]
    tz = _tz(deps, config)
    values = view_values(view)

    times, errors = validate_event_fields(values, tz)
    if errors:
        await ack(response_action="errors", errors=errors)
        return
    start, end = times

    recurrence = values.get("recurrence")
    data = UpdateEventData(
        summary=values["title"],
        start=start,
        end=end,
        description=values.get("description") or "",
        location=values.get("location") or "",
        recurrence=[recurrence] if recurrence else None,
    )

    try:
        event = await calendar.update_event(config.calendar_id, event_id, data, tz)
    except CalendarError as e:
        logger.error("Error updating event", event_id=event_id, error=str(e))
        await ack(
            response_action="errors",
            errors={"title": f"Failed to update event: {e}"},
        )
        return

    await ack(
        response_action="update",
        view=success_modal(
            "Event Updated",
            f'Event "{event.summary}" has been updated successfully!',
            event.html_link,
        ),
    )
