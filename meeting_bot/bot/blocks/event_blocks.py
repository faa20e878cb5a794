"""Block Kit builders shared by announcements, reminders and calendar views."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ...calendar.models import CalendarEvent, format_event_date, format_event_time
from ...storage.attendance import Attendance
from ..utils.slack_format import escape_mrkdwn, html_to_mrkdwn

Block = Dict[str, Any]


@dataclass
class EventDisplayOptions:
    show_date: bool = False
    title_prefix: str = ""
    detailed_attendance: bool = False


def attendance_text(
    attending: Sequence[str], not_attending: Sequence[str], detailed: bool = False
) -> str:
    """Attendance lines appended under an event.

    The inline form is used on messages with buttons; the detailed form
    (one bullet per person) on read-only views.
    """
    text = ""
    if detailed:
        if attending:
            text += f"\n✅ *Attending ({len(attending)}):*\n"
            text += "".join(f"  • {name}\n" for name in attending)
        else:
            text += "\n✅ *Attending:* _No one yet_\n"
        if not_attending:
            text += f"\n❌ *Not Attending ({len(not_attending)}):*\n"
            text += "".join(f"  • {name}\n" for name in not_attending)
        return text

    if attending:
        text += f"\n✅ *Attending:* {', '.join(attending)}"
    else:
        text += "\n✅ *Attending:* _No one yet_"
    if not_attending:
        text += f"\n❌ *Not Attending:* {', '.join(not_attending)}"
    return text


def event_text(
    event: CalendarEvent,
    attendance: Attendance,
    tz: str,
    options: Optional[EventDisplayOptions] = None,
) -> str:
    opts = options or EventDisplayOptions()
    text = f"{opts.title_prefix}*{escape_mrkdwn(event.summary)}*\n"
    if opts.show_date:
        text += f"📅 {format_event_date(event, tz)}\n"
    text += f"🕐 {format_event_time(event, tz)}\n"
    if event.location:
        text += f"📍 {escape_mrkdwn(event.location)}\n"
    if event.description:
        text += f"\n{html_to_mrkdwn(event.description)}\n"
    text += attendance_text(
        attendance.attending, attendance.not_attending, opts.detailed_attendance
    )
    return text


def event_section(
    event: CalendarEvent,
    attendance: Attendance,
    tz: str,
    options: Optional[EventDisplayOptions] = None,
) -> Block:
    return {
        "type": "section",
        "text": {"type": "mrkdwn", "text": event_text(event, attendance, tz, options)},
    }


def _button(
    text: str, action_id: str, value: str, style: Optional[str] = None
) -> Block:
    button: Block = {
        "type": "button",
        "text": {"type": "plain_text", "text": text, "emoji": True},
        "action_id": action_id,
        "value": value,
    }
    if style:
        button["style"] = style
    return button


def attendance_buttons(key: str) -> Block:
    return {
        "type": "actions",
        "elements": [
            _button("✅ Attending", "attending", key),
            _button("❌ Not Attending", "not_attending", key),
        ],
    }


def attending_all_button(keys: Sequence[str]) -> Block:
    return {
        "type": "actions",
        "elements": [
            _button("✅ Attending All", "attending_all", ",".join(keys), "primary")
        ],
    }


def not_attending_any_button(keys: Sequence[str]) -> Block:
    return {
        "type": "actions",
        "elements": [
            _button(
                "❌ Not Attending Any", "not_attending_any", ",".join(keys), "danger"
            )
        ],
    }


def bulk_attendance_buttons(keys: Sequence[str]) -> Block:
    """Attending All and Not Attending Any side by side in one actions block."""
    return {
        "type": "actions",
        "elements": (
            attending_all_button(keys)["elements"]
            + not_attending_any_button(keys)["elements"]
        ),
    }


def divider() -> Block:
    return {"type": "divider"}


def event_with_buttons(
    event: CalendarEvent,
    key: str,
    attendance: Attendance,
    tz: str,
    options: Optional[EventDisplayOptions] = None,
) -> List[Block]:
    """Section, attendance buttons and a divider for one event."""
    return [
        event_section(event, attendance, tz, options),
        attendance_buttons(key),
        divider(),
    ]


def date_header(text: str) -> Block:
    return {"type": "header", "text": {"type": "plain_text", "text": text}}


def intro_section(text: str) -> Block:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}
