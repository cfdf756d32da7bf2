"""Tests for date helpers."""
import pytest
from datetime import date, datetime, timedelta, timezone


class TestParseTimeOfDay:
    """Tests for parse_time_of_day function."""

    def test_parse_basic(self):
        """Test parsing regular times."""
        from timebalance.utils.dates import parse_time_of_day

        assert parse_time_of_day("00:00") == 0
        assert parse_time_of_day("08:30") == 510
        assert parse_time_of_day("23:59") == 1439

    def test_parse_single_digit_hour(self):
        """Test an hour without leading zero."""
        from timebalance.utils.dates import parse_time_of_day

        assert parse_time_of_day("8:15") == 495

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "12", "", "12:5"])
    def test_parse_invalid(self, value):
        """Test malformed times are rejected."""
        from timebalance.utils.dates import parse_time_of_day

        with pytest.raises(ValueError, match="Invalid time of day"):
            parse_time_of_day(value)


class TestLocalDayBounds:
    """Tests for local_day_bounds function."""

    def test_winter_day_berlin(self):
        """Test a CET day starts at 23:00 UTC the evening before."""
        from timebalance.utils.dates import local_day_bounds

        start, end = local_day_bounds(date(2025, 1, 15), "Europe/Berlin")

        assert start == datetime(2025, 1, 14, 23, 0)
        assert end == datetime(2025, 1, 15, 23, 0)

    def test_dst_start_day_is_23_hours(self):
        """Test the spring-forward day is one hour short."""
        from timebalance.utils.dates import local_day_bounds

        start, end = local_day_bounds(date(2025, 3, 30), "Europe/Berlin")

        assert start == datetime(2025, 3, 29, 23, 0)
        assert end == datetime(2025, 3, 30, 22, 0)
        assert end - start == timedelta(hours=23)

    def test_utc_day(self):
        """Test UTC days run midnight to midnight."""
        from timebalance.utils.dates import local_day_bounds

        start, end = local_day_bounds(date(2025, 11, 3), "UTC")

        assert start == datetime(2025, 11, 3)
        assert end == datetime(2025, 11, 4)

    def test_unknown_zone(self):
        """Test an unknown zone raises ValueError."""
        from timebalance.utils.dates import local_day_bounds

        with pytest.raises(ValueError, match="Unknown time zone"):
            local_day_bounds(date(2025, 11, 3), "Mars/Olympus")


class TestToNaiveUtc:
    """Tests for to_naive_utc function."""

    def test_aware_converted(self):
        """Test aware datetimes are shifted to UTC and made naive."""
        from timebalance.utils.dates import to_naive_utc

        value = datetime(2025, 11, 3, 9, 0, tzinfo=timezone(timedelta(hours=1)))

        assert to_naive_utc(value) == datetime(2025, 11, 3, 8, 0)

    def test_naive_unchanged(self):
        """Test naive datetimes are taken as UTC."""
        from timebalance.utils.dates import to_naive_utc

        value = datetime(2025, 11, 3, 9, 0)

        assert to_naive_utc(value) is value
