"""Tests for the attendance button handlers."""

from unittest.mock import AsyncMock

import pytest

from meeting_bot.attendance.service import AttendanceService
from meeting_bot.bot.blocks.event_blocks import attendance_buttons, intro_section
from meeting_bot.bot.handlers.attendance import (
    handle_attending,
    handle_attending_all,
    handle_not_attending,
    handle_not_attending_any,
    refresh_message_attendance,
)
from meeting_bot.bot.user_cache import UserCache
from meeting_bot.storage import AttendanceStore, JsonFileStore


@pytest.fixture
def mock_client() -> AsyncMock:
    client = AsyncMock()
    client.users_info = AsyncMock(
        return_value={"user": {"id": "U1", "real_name": "Alice"}}
    )
    client.conversations_history = AsyncMock(
        return_value={
            "messages": [
                {
                    "ts": "111.222",
                    "blocks": [
                        intro_section(
                            "*Team Sync*\n🕐 9:00 AM - 10:00 AM\n"
                            "\n✅ *Attending:* _No one yet_"
                        ),
                        attendance_buttons("evt1"),
                    ],
                }
            ]
        }
    )
    client.chat_update = AsyncMock(return_value={"ok": True})
    client.chat_postEphemeral = AsyncMock(return_value={"ok": True})
    return client


@pytest.fixture
def store(tmp_path) -> AttendanceStore:
    return AttendanceStore(JsonFileStore(tmp_path / "attendance.json"))


@pytest.fixture
def context(store: AttendanceStore, mock_client: AsyncMock) -> dict:
    attendance = AttendanceService(store, UserCache(mock_client))
    return {"deps": {"attendance_store": store, "attendance": attendance}}


def _body(user_id: str = "U1") -> dict:
    return {
        "user": {"id": user_id},
        "channel": {"id": "C1"},
        "message": {"ts": "111.222"},
    }


class TestSingleAttendance:
    """Attending / Not Attending on one event."""

    async def test_attending_records_and_refreshes(self, mock_client, store, context):
        """The click is stored, the message re-rendered and the user told."""
        ack = AsyncMock()
        action = {"action_id": "attending", "value": "evt1"}
        await handle_attending(ack, _body(), action, mock_client, context)

        ack.assert_awaited_once()
        entries = await store.get_event("evt1")
        assert entries["U1"]["status"] == "attending"

        update = mock_client.chat_update.await_args.kwargs
        assert update["channel"] == "C1"
        assert update["ts"] == "111.222"
        assert "✅ *Attending:* Alice" in update["blocks"][0]["text"]["text"]

        ephemeral = mock_client.chat_postEphemeral.await_args.kwargs
        assert ephemeral["user"] == "U1"
        assert ephemeral["text"] == "✅ You marked yourself as attending!"

    async def test_not_attending_overwrites(self, mock_client, store, context):
        await handle_attending(
            AsyncMock(), _body(), {"value": "evt1"}, mock_client, context
        )
        await handle_not_attending(
            AsyncMock(), _body(), {"value": "evt1"}, mock_client, context
        )
        entries = await store.get_event("evt1")
        assert entries["U1"]["status"] == "not_attending"
        counts = await store.counts("evt1")
        assert (counts.attending, counts.not_attending) == (0, 1)

    async def test_unreadable_store_is_logged(self, mock_client, store, context):
        """A corrupt attendance file does not raise into Bolt."""
        store.store.path.write_bytes(b'{"evt1": "\xff')
        await handle_attending(
            AsyncMock(), _body(), {"value": "evt1"}, mock_client, context
        )
        mock_client.chat_update.assert_not_awaited()
        mock_client.chat_postEphemeral.assert_not_awaited()

    async def test_missing_value_is_ignored(self, mock_client, store, context):
        await handle_attending(
            AsyncMock(), _body(), {"value": ""}, mock_client, context
        )
        assert await store.read_all() == {}
        mock_client.chat_postEphemeral.assert_not_awaited()


class TestBulkAttendance:
    """Attending All / Not Attending Any."""

    async def test_attending_all(self, mock_client, store, context):
        action = {"action_id": "attending_all", "value": "evt1, evt2"}
        await handle_attending_all(AsyncMock(), _body(), action, mock_client, context)

        data = await store.read_all()
        assert set(data) == {"evt1", "evt2"}
        assert all(e["U1"]["status"] == "attending" for e in data.values())
        text = mock_client.chat_postEphemeral.await_args.kwargs["text"]
        assert text == "✅ You marked yourself as attending all 2 meetings!"

    async def test_not_attending_any_single(self, mock_client, store, context):
        action = {"action_id": "not_attending_any", "value": "evt1"}
        await handle_not_attending_any(
            AsyncMock(), _body(), action, mock_client, context
        )
        text = mock_client.chat_postEphemeral.await_args.kwargs["text"]
        assert text == "❌ You marked yourself as not attending all 1 meeting."


class TestRefreshMessage:
    """Re-rendering a posted message."""

    async def test_message_not_found(self, mock_client, context):
        mock_client.conversations_history = AsyncMock(return_value={"messages": []})
        refreshed = await refresh_message_attendance(
            mock_client, context["deps"]["attendance"], "C1", "111.222", ["evt1"]
        )
        assert refreshed is False
        mock_client.chat_update.assert_not_awaited()

    async def test_no_keys(self, mock_client, context):
        refreshed = await refresh_message_attendance(
            mock_client, context["deps"]["attendance"], "C1", "111.222", []
        )
        assert refreshed is False
        mock_client.conversations_history.assert_not_awaited()
