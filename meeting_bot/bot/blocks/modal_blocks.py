"""Modal views for configuration and event management."""

from typing import Any, Dict, List, Optional, Sequence

from ...calendar.models import CalendarEvent, format_clock
from ...calendar.recurrence import RECURRENCE_OPTIONS
from ...config.settings import DEFAULT_TIMEZONE
from ...storage.app_config import AppConfig

Block = Dict[str, Any]
View = Dict[str, Any]

DAYS_OF_WEEK = [
    ("0", "Sunday"),
    ("1", "Monday"),
    ("2", "Tuesday"),
    ("3", "Wednesday"),
    ("4", "Thursday"),
    ("5", "Friday"),
    ("6", "Saturday"),
]

_TIME_HINT = "Type time directly (e.g., 09:30, 14:45) or use the picker"

# Slack limits a static_select to 100 options.
MAX_SELECT_OPTIONS = 100


def _plain(text: str) -> Dict[str, str]:
    return {"type": "plain_text", "text": text}


def _option(value: str, text: str) -> Dict[str, Any]:
    return {"text": _plain(text), "value": value}


def _input(
    block_id: str,
    label: str,
    element: Dict[str, Any],
    optional: bool = False,
    hint: Optional[str] = None,
) -> Block:
    block: Block = {
        "type": "input",
        "block_id": block_id,
        "element": element,
        "label": _plain(label),
    }
    if hint:
        block["hint"] = _plain(hint)
    if optional:
        block["optional"] = True
    return block


def _text_input(
    action_id: str,
    placeholder: str,
    initial: Optional[str] = None,
    multiline: bool = False,
) -> Dict[str, Any]:
    element: Dict[str, Any] = {
        "type": "plain_text_input",
        "action_id": action_id,
        "placeholder": _plain(placeholder),
    }
    if multiline:
        element["multiline"] = True
    if initial:
        element["initial_value"] = initial
    return element


def _datepicker(
    action_id: str, placeholder: str, initial: Optional[str] = None
) -> Dict[str, Any]:
    element: Dict[str, Any] = {
        "type": "datepicker",
        "action_id": action_id,
        "placeholder": _plain(placeholder),
    }
    if initial:
        element["initial_date"] = initial
    return element


def _timepicker(
    action_id: str, placeholder: str, initial: Optional[str] = None
) -> Dict[str, Any]:
    element: Dict[str, Any] = {
        "type": "timepicker",
        "action_id": action_id,
        "placeholder": _plain(placeholder),
    }
    if initial:
        element["initial_time"] = initial
    return element


def _modal(
    callback_id: str,
    title: str,
    blocks: List[Block],
    submit: Optional[str] = None,
    close: str = "Cancel",
    private_metadata: Optional[str] = None,
) -> View:
    view: View = {
        "type": "modal",
        "callback_id": callback_id,
        "title": _plain(title),
        "close": _plain(close),
        "blocks": blocks,
    }
    if submit:
        view["submit"] = _plain(submit)
    if private_metadata is not None:
        view["private_metadata"] = private_metadata
    return view


# ── Configuration ─────────────────────────────────────────────


def config_modal(config: AppConfig) -> View:
    """The /meeting-config form, pre-filled from the saved configuration."""
    channel_select: Dict[str, Any] = {
        "type": "channels_select",
        "action_id": "channel_select",
        "placeholder": _plain("Select a channel"),
    }
    if config.channel_id:
        channel_select["initial_channel"] = config.channel_id

    day_select: Dict[str, Any] = {
        "type": "static_select",
        "action_id": "day_select",
        "placeholder": _plain("Select day"),
        "options": [_option(value, text) for value, text in DAYS_OF_WEEK],
    }
    if config.weekly_schedule is not None:
        for value, text in DAYS_OF_WEEK:
            if int(value) == config.weekly_schedule.day_of_week:
                day_select["initial_option"] = _option(value, text)

    weekly_time = config.weekly_schedule.time if config.weekly_schedule else "09:00"

    blocks = [
        _input("channel", "Announcement Channel", channel_select),
        _input(
            "calendar_id",
            "Google Calendar ID",
            _text_input("calendar_input", "calendar@example.com", config.calendar_id),
        ),
        _input(
            "timezone",
            "Timezone (IANA format, e.g., America/New_York)",
            _text_input(
                "timezone_input",
                "America/New_York",
                config.timezone or DEFAULT_TIMEZONE,
            ),
            hint=(
                "Used for displaying meeting times. Common: America/New_York, "
                "America/Los_Angeles, America/Chicago"
            ),
        ),
        _input("weekly_day", "Weekly Announcement Day", day_select),
        _input(
            "weekly_time",
            "Weekly Announcement Time",
            _timepicker("time_select", "Select time", weekly_time),
            hint=_TIME_HINT,
        ),
        _input(
            "reminder_time",
            "Daily Reminder Time",
            _timepicker(
                "reminder_time_select", "Select time", config.reminder_time or "08:00"
            ),
            hint=_TIME_HINT,
        ),
        _input(
            "weekly_template",
            "Weekly Announcement Template",
            _text_input(
                "weekly_template_input",
                "Weekly announcement message template",
                config.weekly_template,
                multiline=True,
            ),
            optional=True,
        ),
        _input(
            "daily_template",
            "Daily Reminder Template",
            _text_input(
                "daily_template_input",
                "Daily reminder message template",
                config.daily_template,
                multiline=True,
            ),
            optional=True,
        ),
        _input(
            "allowed_channels",
            "Allowed Channels (for restricted commands)",
            {
                "type": "multi_channels_select",
                "action_id": "channels_select",
                "placeholder": _plain("Select channels"),
                "initial_channels": list(config.allowed_channels or []),
            },
            optional=True,
            hint=(
                "Channels where /meeting-config, /create-event, and /update-event "
                "can be executed. Leave empty to allow all channels."
            ),
        ),
    ]
    return _modal("config_modal", "Meeting Configuration", blocks, submit="Save")


def config_saved_view(scheduler_error: Optional[str] = None) -> View:
    """Shown in place of the config form once it has been saved."""
    blocks: List[Block] = [
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": "✅ Configuration has been saved successfully!",
            },
        }
    ]
    if scheduler_error:
        blocks.append(
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": (
                        "⚠️ *Warning:* Scheduled jobs could not be updated "
                        f"automatically.\n```{scheduler_error}```\n"
                        "Check the configured times and restart the bot if needed."
                    ),
                },
            }
        )
    return {
        "type": "modal",
        "title": _plain("Configuration Saved"),
        "close": _plain("Close"),
        "blocks": blocks,
    }


# ── Events ────────────────────────────────────────────────────


def _recurrence_select() -> Block:
    options = [_option(value, label) for value, label in RECURRENCE_OPTIONS]
    return _input(
        "recurrence",
        "Recurrence",
        {
            "type": "static_select",
            "action_id": "recurrence_select",
            "placeholder": _plain("Select recurrence"),
            "initial_option": options[0],
            "options": options,
        },
        optional=True,
    )


def create_event_modal(channel_id: Optional[str] = None) -> View:
    blocks = [
        _input("title", "Event Title", _text_input("title_input", "Event title")),
        _input(
            "description",
            "Description",
            _text_input("description_input", "Event description", multiline=True),
            optional=True,
        ),
        _input("date", "Date", _datepicker("date_select", "Select a date")),
        _input(
            "start_time",
            "Start Time",
            _timepicker("start_time_select", "Select start time"),
            hint=_TIME_HINT,
        ),
        _input(
            "end_time",
            "End Time",
            _timepicker("end_time_select", "Select end time"),
            hint=_TIME_HINT,
        ),
        _input(
            "location",
            "Location",
            _text_input("location_input", "Event location"),
            optional=True,
        ),
        _recurrence_select(),
    ]
    return _modal(
        "create_event_modal",
        "Create Calendar Event",
        blocks,
        submit="Create",
        private_metadata=channel_id or "",
    )


def search_event_modal(channel_id: Optional[str] = None) -> View:
    blocks = [
        _input(
            "search_keyword",
            "Search Keyword",
            _text_input("keyword_input", "Search by event title"),
            optional=True,
        ),
        _input(
            "start_date",
            "Start Date",
            _datepicker("start_date_select", "Start date"),
            optional=True,
        ),
        _input(
            "end_date",
            "End Date",
            _datepicker("end_date_select", "End date"),
            optional=True,
        ),
    ]
    return _modal(
        "select_event_modal",
        "Select Event to Update",
        blocks,
        submit="Search",
        private_metadata=channel_id or "",
    )


def event_option_label(event: CalendarEvent, tz: str) -> str:
    local = event.local_start(tz)
    label = f"{event.summary} - {local:%Y-%m-%d} {format_clock(local)}"
    # plain_text option labels are capped at 75 characters
    return label if len(label) <= 75 else label[:72] + "..."


def event_selection_modal(
    events: Sequence[CalendarEvent], tz: str, channel_id: Optional[str] = None
) -> View:
    options = [
        _option(event.id, event_option_label(event, tz))
        for event in events[:MAX_SELECT_OPTIONS]
    ]
    blocks = [
        _input(
            "event_id",
            "Event",
            {
                "type": "static_select",
                "action_id": "event_select",
                "placeholder": _plain("Select an event"),
                "options": options,
            },
        )
    ]
    return _modal(
        "select_event_result_modal",
        "Select Event to Update",
        blocks,
        submit="Select",
        private_metadata=channel_id or "",
    )


def update_event_modal(event: CalendarEvent, tz: str) -> View:
    """The edit form for ``event``, pre-filled with its current values.

    The event id travels in ``private_metadata``.
    """
    start = event.local_start(tz)
    end = event.end.astimezone(start.tzinfo)
    blocks = [
        _input(
            "title",
            "Event Title",
            _text_input("title_input", "Event title", event.summary),
        ),
        _input(
            "description",
            "Description",
            _text_input(
                "description_input",
                "Event description",
                event.description,
                multiline=True,
            ),
            optional=True,
        ),
        _input(
            "date",
            "Date",
            _datepicker("date_select", "Select a date", start.date().isoformat()),
        ),
        _input(
            "start_time",
            "Start Time",
            _timepicker("start_time_select", "Select start time", f"{start:%H:%M}"),
            hint=_TIME_HINT,
        ),
        _input(
            "end_time",
            "End Time",
            _timepicker("end_time_select", "Select end time", f"{end:%H:%M}"),
            hint=_TIME_HINT,
        ),
        _input(
            "location",
            "Location",
            _text_input("location_input", "Event location", event.location),
            optional=True,
        ),
        _input(
            "recurrence",
            "Recurrence (RRULE format)",
            _text_input(
                "recurrence_input", "RRULE format (e.g., RRULE:FREQ=DAILY;COUNT=5)"
            ),
            optional=True,
            hint=(
                "Optional. Use RRULE format for recurring events. "
                "Leave empty to keep the current recurrence."
            ),
        ),
    ]
    return _modal(
        "update_event_modal",
        "Update Calendar Event",
        blocks,
        submit="Update",
        private_metadata=event.id,
    )


def success_modal(title: str, message: str, html_link: Optional[str] = None) -> View:
    text = f"✅ {message}"
    if html_link:
        text += f"\n<{html_link}|View in Google Calendar>"
    return _modal(
        "success_modal",
        title,
        [{"type": "section", "text": {"type": "mrkdwn", "text": text}}],
        close="Close",
    )


def view_values(view: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten ``view.state.values`` to ``{block_id: value}``.

    Each input block holds a single element; its value is read from
    whichever of the element-type specific keys is present.
    """
    values: Dict[str, Any] = {}
    state = ((view or {}).get("state") or {}).get("values") or {}
    for block_id, elements in state.items():
        for element in elements.values():
            values[block_id] = _element_value(element)
    return values


def _element_value(element: Dict[str, Any]) -> Any:
    kind = element.get("type")
    if kind == "static_select":
        selected = element.get("selected_option")
        return selected.get("value") if selected else None
    if kind == "datepicker":
        return element.get("selected_date")
    if kind == "timepicker":
        return element.get("selected_time")
    if kind == "channels_select":
        return element.get("selected_channel")
    if kind == "multi_channels_select":
        return list(element.get("selected_channels") or [])
    value = element.get("value")
    return value.strip() if isinstance(value, str) else value
