"""
Time range resolution for the intel feed.

Relative ranges (1D/7D/30D/90D) count back from ``now``; YTD starts at
midnight UTC on January 1st; CUSTOM uses the literal bounds. CUSTOM without
bounds resolves to no window at all, as does no range (all time).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from src.intel.models import TimeRange, coerce_timestamp, to_utc

_RELATIVE_DAYS: dict[TimeRange, int] = {
    TimeRange.ONE_DAY: 1,
    TimeRange.SEVEN_DAYS: 7,
    TimeRange.THIRTY_DAYS: 30,
    TimeRange.NINETY_DAYS: 90,
}


def truncate_to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive [start, end] window compared at minute granularity."""

    start: datetime
    end: datetime

    def contains(self, ts: Optional[datetime]) -> bool:
        if ts is None:
            return False
        minute = truncate_to_minute(to_utc(ts))
        return (
            truncate_to_minute(self.start) <= minute <= truncate_to_minute(self.end)
        )


def resolve_time_window(
    time_range: Optional[TimeRange | str],
    custom_date_range: Optional[Sequence[Optional[datetime]]] = None,
    now: Optional[datetime] = None,
) -> Optional[TimeWindow]:
    """Resolve a time range into a concrete window.

    Args:
        time_range: One of 1D, 7D, 30D, 90D, YTD, CUSTOM, or None for all time.
        custom_date_range: (start, end) pair, used only for CUSTOM.
        now: Reference time; defaults to the current UTC time.

    Returns:
        The window, or None when no time constraint applies
        (all time, or CUSTOM without usable bounds).
    """
    if time_range is None:
        return None
    time_range = TimeRange(time_range)
    now = to_utc(now) if now is not None else datetime.now(timezone.utc)

    if time_range is TimeRange.CUSTOM:
        if not custom_date_range or len(custom_date_range) != 2:
            return None
        start = coerce_timestamp(custom_date_range[0])
        end = coerce_timestamp(custom_date_range[1])
        if start is None or end is None:
            return None
        if start > end:
            start, end = end, start
        return TimeWindow(start=start, end=end)

    if time_range is TimeRange.YEAR_TO_DATE:
        start = now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
        return TimeWindow(start=start, end=now)

    return TimeWindow(start=now - timedelta(days=_RELATIVE_DAYS[time_range]), end=now)
