from datetime import datetime, timedelta, timezone

import pytest

from kiosk.timestamps import to_instant, to_display_string, minutes_between, format_elapsed


class TestToInstant:

    def test_unzoned_reading_is_utc(self):
        """Assert that a reading without a zone is the same instant as the same reading in UTC."""
        assert to_instant("2025-11-02 10:02:33") == to_instant("2025-11-02T10:02:33Z")

    def test_offset_reading(self):
        """Assert that an offset is honoured rather than assumed to be UTC."""
        unzoned = to_instant("2025-11-02T10:02:33")
        zoned = to_instant("2025-11-02T10:02:33+05:30")
        assert unzoned - zoned == timedelta(hours=5, minutes=30)

    @pytest.mark.parametrize("raw", [
        "2025-11-02T04:32:33Z",
        "2025-11-02T10:02:33+05:30",
        "2025-11-02 04:32:33",
        "2025-11-02T04:32:33.000Z",
    ])
    def test_equivalent_readings(self, raw):
        assert to_instant(raw) == datetime(2025, 11, 2, 4, 32, 33, tzinfo=timezone.utc)

    def test_naive_datetime_is_utc(self):
        assert to_instant(datetime(2025, 11, 2, 10, 2, 33)) == datetime(2025, 11, 2, 10, 2, 33, tzinfo=timezone.utc)

    @pytest.mark.parametrize("raw", [None, "", "   ", "yesterday", "2025-13-45 99:99", 12345])
    def test_invalid_readings(self, raw):
        """Assert that nonsense comes back as None instead of raising."""
        assert to_instant(raw) is None


class TestDisplay:

    def test_display_in_kiosk_zone(self):
        assert to_display_string(to_instant("2025-11-02T10:02:33Z"), "Asia/Kolkata") == "2/11/2025, 3:32:33 pm"

    def test_display_morning(self):
        assert to_display_string(to_instant("2025-11-01T19:00:05Z"), "Asia/Kolkata") == "2/11/2025, 12:30:05 am"

    def test_display_missing(self):
        assert to_display_string(None) == ""


class TestMinutesBetween:

    def test_rounds_to_nearest_minute(self):
        start = datetime(2025, 11, 2, 10, tzinfo=timezone.utc)
        assert minutes_between(start, start + timedelta(minutes=4, seconds=29)) == 4
        assert minutes_between(start, start + timedelta(minutes=4, seconds=30)) == 5

    def test_clamps_at_zero(self):
        """Assert that an end before the start is zero minutes, not negative."""
        start = datetime(2025, 11, 2, 10, tzinfo=timezone.utc)
        assert minutes_between(start, start - timedelta(minutes=10)) == 0

    def test_format_elapsed(self):
        start = datetime(2025, 11, 2, 10, tzinfo=timezone.utc)
        assert format_elapsed(start, start + timedelta(minutes=12, seconds=5)) == "12m 5s"
        assert format_elapsed(start, start - timedelta(seconds=5)) == "0m 0s"
