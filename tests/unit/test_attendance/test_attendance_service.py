"""Tests for attendance keys and name resolution."""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import pytest

from meeting_bot.attendance.service import (
    AttendanceService,
    attendance_key,
    group_by_date,
)
from meeting_bot.bot.user_cache import UserCache
from meeting_bot.calendar.models import CalendarEvent
from meeting_bot.storage import AttendanceStatus, AttendanceStore, JsonFileStore

TZ = "America/Los_Angeles"


def _event(event_id: str, start: datetime, recurring: str = None) -> CalendarEvent:
    return CalendarEvent(
        id=event_id,
        summary=event_id,
        start=start,
        end=start,
        recurring_event_id=recurring,
    )


@pytest.fixture
def mock_client() -> AsyncMock:
    client = AsyncMock()
    client.users_list = AsyncMock(
        return_value={
            "members": [
                {"id": "U1", "real_name": "Alice", "profile": {}},
                {"id": "U2", "real_name": "Bob", "profile": {}},
            ]
        }
    )
    return client


@pytest.fixture
async def service(tmp_path, mock_client) -> AttendanceService:
    cache = UserCache(mock_client)
    await cache.refresh()
    store = AttendanceStore(JsonFileStore(tmp_path / "attendance.json"))
    return AttendanceService(store, cache)


class TestAttendanceKey:
    """Key derivation."""

    def test_single_event_uses_id(self):
        event = _event("e1", datetime(2024, 1, 15, 17, tzinfo=timezone.utc))
        assert attendance_key(event, TZ) == "e1"

    def test_recurring_instance_uses_series_and_local_date(self):
        """The local date is used, not the UTC one."""
        event = _event(
            "series_20240116T040000Z",
            datetime(2024, 1, 16, 4, tzinfo=timezone.utc),
            recurring="series",
        )
        assert attendance_key(event, TZ) == "series|2024-01-15"


class TestAttendanceService:
    """Resolving stored attendance to names."""

    async def test_attendees(self, service):
        await service.store.record_many(
            [
                ("e1", "U1", AttendanceStatus.ATTENDING),
                ("e1", "U2", AttendanceStatus.NOT_ATTENDING),
            ]
        )
        attendance = await service.attendees("e1")
        assert attendance.attending == ["Alice"]
        assert attendance.not_attending == ["Bob"]

    async def test_events_keep_input_order(self, service):
        start = datetime(2024, 1, 15, 17, tzinfo=timezone.utc)
        events = [_event("b", start), _event("a", start)]
        items = await service.events_with_attendance(events, TZ)
        assert [key for _, key, _ in items] == ["b", "a"]

    async def test_attendance_by_key_dedupes(self, service):
        await service.store.record("e1", "U1", AttendanceStatus.ATTENDING)
        result = await service.attendance_by_key(["e1", "e2", "e1"])
        assert list(result) == ["e1", "e2"]
        assert result["e1"].attending == ["Alice"]
        assert result["e2"].attending == []


class TestGroupByDate:
    """Grouping events by local day."""

    def test_sorted_by_local_date(self):
        starts = {
            "wed": datetime(2024, 1, 17, 17, tzinfo=timezone.utc),
            # Monday evening locally, Tuesday in UTC
            "mon": datetime(2024, 1, 16, 3, tzinfo=timezone.utc),
            "mon2": datetime(2024, 1, 15, 17, tzinfo=timezone.utc),
        }
        items = [(_event(key, start), key, None) for key, start in starts.items()]
        groups = group_by_date(items, TZ)
        assert list(groups) == [date(2024, 1, 15), date(2024, 1, 17)]
        assert [key for _, key, _ in groups[date(2024, 1, 15)]] == ["mon", "mon2"]
