"""Tests for day and week boundary helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest

from meeting_bot.calendar.timezone import (
    day_bounds,
    format_for_logging,
    is_in_current_week,
    local_datetime,
    now_in,
    parse_hhmm,
    parse_iso_date,
    week_bounds,
)

TZ = "America/Los_Angeles"

# Wednesday 2024-01-17 10:00 PST
NOW = datetime(2024, 1, 17, 18, 0, tzinfo=timezone.utc)


class TestBounds:
    """Local day and week windows."""

    def test_now_in(self):
        assert now_in(TZ, NOW).hour == 10

    def test_day_bounds(self):
        start, end = day_bounds(TZ, 0, NOW)
        assert start == local_datetime(2024, 1, 17, 0, 0, TZ)
        assert end.date() == date(2024, 1, 17)
        assert end - start == timedelta(days=1) - timedelta(microseconds=1)

    def test_day_bounds_tomorrow(self):
        start, _ = day_bounds(TZ, 1, NOW)
        assert start.date() == date(2024, 1, 18)

    def test_day_uses_local_date(self):
        """Late evening locally is already tomorrow in UTC."""
        late = datetime(2024, 1, 18, 6, 0, tzinfo=timezone.utc)
        start, _ = day_bounds(TZ, 0, late)
        assert start.date() == date(2024, 1, 17)

    def test_week_bounds(self):
        start, end = week_bounds(TZ, 0, NOW)
        assert start == local_datetime(2024, 1, 15, 0, 0, TZ)
        assert end == local_datetime(2024, 1, 22, 0, 0, TZ)

    def test_week_offset(self):
        start, _ = week_bounds(TZ, -1, NOW)
        assert start.date() == date(2024, 1, 8)

    def test_is_in_current_week(self):
        assert is_in_current_week(local_datetime(2024, 1, 21, 23, 0, TZ), TZ, NOW)
        assert not is_in_current_week(local_datetime(2024, 1, 22, 0, 0, TZ), TZ, NOW)
        assert not is_in_current_week(local_datetime(2024, 1, 14, 12, 0, TZ), TZ, NOW)


class TestParsing:
    """Form input parsing."""

    def test_parse_hhmm(self):
        assert parse_hhmm("09:30") == (9, 30)
        assert parse_hhmm("9:05") == (9, 5)

    @pytest.mark.parametrize("value", ["", "9", "24:00", "12:60", "ab:cd", None])
    def test_parse_hhmm_invalid(self, value):
        with pytest.raises(ValueError):
            parse_hhmm(value)

    def test_parse_iso_date(self):
        assert parse_iso_date("2024-01-15") == date(2024, 1, 15)

    def test_format_for_logging(self):
        assert format_for_logging(NOW, TZ) == "2024-01-17 10:00:00 PST (18:00:00 UTC)"
