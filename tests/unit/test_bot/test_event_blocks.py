"""Tests for the event Block Kit builders."""

from datetime import datetime, timezone

from meeting_bot.bot.blocks.event_blocks import (
    EventDisplayOptions,
    attendance_buttons,
    attendance_text,
    bulk_attendance_buttons,
    event_section,
    event_text,
    event_with_buttons,
)
from meeting_bot.calendar.models import CalendarEvent
from meeting_bot.storage.attendance import Attendance

TZ = "America/Los_Angeles"


def _event(**overrides) -> CalendarEvent:
    defaults = {
        "id": "evt1",
        "summary": "Team Sync",
        # 09:00-10:00 Pacific (PST)
        "start": datetime(2024, 1, 15, 17, 0, tzinfo=timezone.utc),
        "end": datetime(2024, 1, 15, 18, 0, tzinfo=timezone.utc),
    }
    defaults.update(overrides)
    return CalendarEvent(**defaults)


class TestAttendanceText:
    """Inline and detailed attendance lines."""

    def test_inline_nobody(self):
        assert attendance_text([], []) == "\n✅ *Attending:* _No one yet_"

    def test_inline_names(self):
        text = attendance_text(["Alice", "Bob"], ["Carol"])
        assert text == (
            "\n✅ *Attending:* Alice, Bob\n❌ *Not Attending:* Carol"
        )

    def test_detailed_names(self):
        text = attendance_text(["Alice", "Bob"], ["Carol"], detailed=True)
        assert text == (
            "\n✅ *Attending (2):*\n  • Alice\n  • Bob\n"
            "\n❌ *Not Attending (1):*\n  • Carol\n"
        )

    def test_detailed_nobody(self):
        assert attendance_text([], [], detailed=True) == (
            "\n✅ *Attending:* _No one yet_\n"
        )


class TestEventText:
    """Event section text."""

    def test_basic_fields(self):
        text = event_text(_event(), Attendance(), TZ)
        assert text.startswith("*Team Sync*\n🕐 9:00 AM - 10:00 AM\n")
        assert text.endswith("_No one yet_")

    def test_location_and_description(self):
        event = _event(location="Room 1", description="<b>Agenda</b>")
        text = event_text(event, Attendance(), TZ)
        assert "📍 Room 1\n" in text
        assert "\n*Agenda*\n" in text

    def test_show_date_and_prefix(self):
        options = EventDisplayOptions(show_date=True, title_prefix="🔔 ")
        text = event_text(_event(), Attendance(), TZ, options)
        assert text.startswith("🔔 *Team Sync*\n📅 Monday, January 15, 2024\n")

    def test_title_is_escaped(self):
        text = event_text(_event(summary="R&D <sync>"), Attendance(), TZ)
        assert text.startswith("*R&amp;D &lt;sync&gt;*")

    def test_detailed_attendance(self):
        options = EventDisplayOptions(detailed_attendance=True)
        text = event_text(_event(), Attendance(attending=["Alice"]), TZ, options)
        assert "✅ *Attending (1):*\n  • Alice\n" in text


class TestButtons:
    """Attendance buttons carry the attendance key as their value."""

    def test_attendance_buttons(self):
        block = attendance_buttons("evt1")
        assert block["type"] == "actions"
        assert [el["action_id"] for el in block["elements"]] == [
            "attending",
            "not_attending",
        ]
        assert all(el["value"] == "evt1" for el in block["elements"])

    def test_bulk_buttons(self):
        block = bulk_attendance_buttons(["a", "b|2024-01-15"])
        attending_all, not_any = block["elements"]
        assert attending_all["action_id"] == "attending_all"
        assert attending_all["style"] == "primary"
        assert not_any["action_id"] == "not_attending_any"
        assert not_any["style"] == "danger"
        assert attending_all["value"] == "a,b|2024-01-15"

    def test_event_with_buttons(self):
        blocks = event_with_buttons(_event(), "evt1", Attendance(), TZ)
        assert [b["type"] for b in blocks] == ["section", "actions", "divider"]
        assert blocks[0] == event_section(_event(), Attendance(), TZ)
