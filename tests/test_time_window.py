"""Tests for src.intel.time_window."""
from datetime import datetime, timedelta, timezone

import pytest

from src.intel.models import TimeRange
from src.intel.time_window import TimeWindow, resolve_time_window, truncate_to_minute

from conftest import NOW


class TestResolveTimeWindow:

    @pytest.mark.parametrize("time_range,days", [
        ("1D", 1),
        ("7D", 7),
        ("30D", 30),
        (TimeRange.NINETY_DAYS, 90),
    ])
    def test_relative_ranges(self, time_range, days):
        window = resolve_time_window(time_range, now=NOW)
        assert window == TimeWindow(start=NOW - timedelta(days=days), end=NOW)

    def test_ytd_starts_at_new_year_utc(self):
        window = resolve_time_window("YTD", now=NOW)
        assert window.start == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert window.end == NOW

    def test_none_is_all_time(self):
        assert resolve_time_window(None, now=NOW) is None

    def test_custom_without_bounds_is_all_time(self):
        assert resolve_time_window("CUSTOM", None, now=NOW) is None
        assert resolve_time_window("CUSTOM", (NOW, None), now=NOW) is None

    def test_custom_bounds_are_swapped_when_reversed(self):
        early, late = NOW - timedelta(days=5), NOW - timedelta(days=1)
        window = resolve_time_window("CUSTOM", (late, early), now=NOW)
        assert (window.start, window.end) == (early, late)

    def test_custom_accepts_iso_strings(self):
        window = resolve_time_window("CUSTOM", ("2026-01-01T00:00:00Z", "2026-01-31T23:59:00Z"))
        assert window.start == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_naive_now_is_utc(self):
        window = resolve_time_window("1D", now=NOW.replace(tzinfo=None))
        assert window.end == NOW

    def test_unknown_range_raises(self):
        with pytest.raises(ValueError):
            resolve_time_window("2W", now=NOW)


class TestTimeWindowContains:

    def test_minute_granularity(self):
        window = TimeWindow(start=NOW, end=NOW + timedelta(minutes=5))
        assert window.contains(NOW + timedelta(minutes=5, seconds=59))
        assert not window.contains(NOW + timedelta(minutes=6))
        assert not window.contains(NOW - timedelta(seconds=1))

    def test_none_is_never_contained(self):
        assert not TimeWindow(start=NOW, end=NOW).contains(None)

    def test_other_timezones_are_compared_in_utc(self):
        shanghai = timezone(timedelta(hours=8))
        window = TimeWindow(start=NOW, end=NOW)
        assert window.contains(datetime(2026, 3, 15, 20, 0, tzinfo=shanghai))

    def test_truncate_to_minute(self):
        assert truncate_to_minute(NOW.replace(second=42, microsecond=7)) == NOW
