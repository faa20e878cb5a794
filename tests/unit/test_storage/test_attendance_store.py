"""Tests for persisted attendance."""

import json

import pytest

from meeting_bot.exceptions import StorageError
from meeting_bot.storage import AttendanceStatus, AttendanceStore, JsonFileStore


@pytest.fixture
def store(tmp_path) -> AttendanceStore:
    return AttendanceStore(JsonFileStore(tmp_path / "attendance.json"))


class TestAttendanceStore:
    """Recording and reading attendance."""

    async def test_record_shape(self, store, tmp_path):
        """Entries are stored per key and user with a timestamp."""
        await store.record(
            "evt1", "U1", AttendanceStatus.ATTENDING, "2024-01-15T09:00:00Z"
        )
        data = json.loads((tmp_path / "attendance.json").read_text())
        assert data == {
            "evt1": {
                "U1": {"status": "attending", "timestamp": "2024-01-15T09:00:00Z"}
            }
        }

    async def test_latest_status_wins(self, store):
        await store.record("evt1", "U1", AttendanceStatus.ATTENDING)
        await store.record("evt1", "U1", AttendanceStatus.NOT_ATTENDING)
        entries = await store.get_event("evt1")
        assert entries["U1"]["status"] == "not_attending"
        assert entries["U1"]["timestamp"].endswith("Z")

    async def test_record_many(self, store):
        await store.record_many(
            [
                ("evt1", "U1", AttendanceStatus.ATTENDING),
                ("series|2024-01-16", "U1", AttendanceStatus.ATTENDING),
            ]
        )
        assert set(await store.read_all()) == {"evt1", "series|2024-01-16"}

    async def test_accepts_plain_status_strings(self, store):
        await store.record("evt1", "U1", "not_attending")
        assert (await store.get_event("evt1"))["U1"]["status"] == "not_attending"

    async def test_counts(self, store):
        await store.record_many(
            [
                ("evt1", "U1", AttendanceStatus.ATTENDING),
                ("evt1", "U2", AttendanceStatus.ATTENDING),
                ("evt1", "U3", AttendanceStatus.NOT_ATTENDING),
            ]
        )
        counts = await store.counts("evt1")
        assert counts.attending == 2
        assert counts.not_attending == 1
        assert counts.total == 3

    async def test_unknown_key(self, store):
        assert await store.get_event("nope") == {}
        assert (await store.counts("nope")).total == 0

    async def test_corrupt_file_is_not_overwritten(self, store, tmp_path):
        """A click never replaces an unreadable file with a single entry."""
        path = tmp_path / "attendance.json"
        path.write_text('{"evt1": {"U1": ')
        with pytest.raises(StorageError):
            await store.record("evt2", "U2", AttendanceStatus.ATTENDING)
        assert path.read_text() == '{"evt1": {"U1": '
