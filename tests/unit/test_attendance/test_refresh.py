"""Tests for rewriting attendance inside posted messages."""

from meeting_bot.attendance.refresh import (
    has_attendance_markers,
    rebuild_section_text,
    refresh_blocks,
)
from meeting_bot.bot.blocks.event_blocks import (
    attendance_buttons,
    bulk_attendance_buttons,
    date_header,
    divider,
    intro_section,
)
from meeting_bot.storage import Attendance

SECTION_TEXT = (
    "*Team Sync*\n🕐 9:00 AM - 10:00 AM\n"
    "\n✅ *Attending:* Alice\n❌ *Not Attending:* Bob"
)


class TestMarkers:
    """Detecting and replacing attendance lines."""

    def test_has_markers(self):
        assert has_attendance_markers(SECTION_TEXT)
        assert has_attendance_markers("Going :white_check_mark:")
        assert not has_attendance_markers("*Weekly Meeting Schedule*")

    def test_rebuild_replaces_everything_after_first_marker(self):
        text = rebuild_section_text(
            SECTION_TEXT, Attendance(attending=["Alice", "Carol"])
        )
        assert text == (
            "*Team Sync*\n🕐 9:00 AM - 10:00 AM\n"
            "\n✅ *Attending:* Alice, Carol"
        )

    def test_rebuild_without_existing_attendance_appends(self):
        text = rebuild_section_text("*Sync*\n", Attendance())
        assert text == "*Sync*\n\n✅ *Attending:* _No one yet_"


class TestRefreshBlocks:
    """Only the section directly above a key's buttons is rewritten."""

    def test_updates_matching_section(self):
        blocks = [
            date_header("Monday, January 15, 2024"),
            intro_section(SECTION_TEXT),
            attendance_buttons("evt1"),
            divider(),
            intro_section(SECTION_TEXT),
            attendance_buttons("evt2"),
            divider(),
        ]
        updated = refresh_blocks(blocks, {"evt1": Attendance(not_attending=["Dan"])})

        assert updated[1]["text"]["text"].endswith(
            "\n✅ *Attending:* _No one yet_\n❌ *Not Attending:* Dan"
        )
        assert updated[4] == blocks[4]
        assert updated[0] == blocks[0]
        # The input is left untouched.
        assert blocks[1]["text"]["text"] == SECTION_TEXT

    def test_section_without_markers_is_kept(self):
        blocks = [intro_section("*Plain*"), attendance_buttons("evt1")]
        assert refresh_blocks(blocks, {"evt1": Attendance()}) == blocks

    def test_bulk_buttons_do_not_match_single_key(self):
        blocks = [
            intro_section(SECTION_TEXT),
            attendance_buttons("evt2"),
            bulk_attendance_buttons(["evt1", "evt2"]),
        ]
        updated = refresh_blocks(blocks, {"evt1": Attendance()})
        assert updated == blocks
