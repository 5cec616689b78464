"""
Feed statistics for the dashboard footer and overview cards.

A single pass over the (already filtered) items, counting by content type,
source, status, quality tier, commodity and region.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from src.intel.models import IntelItem, IntelStatus, QualityTier, TimeRange, to_utc
from src.intel.payload import nested_commodities, nested_regions, own_regions
from src.intel.scoring import is_high_value, resolve_effective_time, resolve_quality_tier, resolve_score
from src.intel.time_window import resolve_time_window


class IntelStats(BaseModel):
    """Aggregated counts over a list of feed items."""

    total: int = 0
    today_count: int = 0
    week_count: int = 0
    high_value_count: int = 0
    pending_count: int = 0
    confirmed_count: int = 0
    flagged_count: int = 0
    avg_quality: Optional[float] = None

    by_content_type: dict[str, int] = Field(default_factory=dict)
    by_source_type: dict[str, int] = Field(default_factory=dict)
    by_status: dict[str, int] = Field(default_factory=dict)
    by_quality_tier: dict[str, int] = Field(
        default_factory=lambda: {tier.value: 0 for tier in QualityTier}
    )
    by_commodity: dict[str, int] = Field(default_factory=dict)
    by_region: dict[str, int] = Field(default_factory=dict)


def _bump(counter: dict[str, int], key: str) -> None:
    counter[key] = counter.get(key, 0) + 1


def compute_intel_stats(
    items: Sequence[IntelItem], now: Optional[datetime] = None
) -> IntelStats:
    """Aggregate ``items`` into IntelStats.

    Args:
        items: Feed items, usually the output of the feed filter.
        now: Reference time for today/week counts; defaults to UTC now.

    Returns:
        IntelStats. Empty input yields all-zero counts and avg_quality=None.
    """
    now = to_utc(now) if now is not None else datetime.now(timezone.utc)
    week_window = resolve_time_window(TimeRange.SEVEN_DAYS, now=now)
    stats = IntelStats(total=len(items))
    scores: list[float] = []

    for item in items:
        ts = resolve_effective_time(item)
        if ts is not None and ts.date() == now.date():
            stats.today_count += 1
        if week_window is not None and week_window.contains(ts):
            stats.week_count += 1

        if is_high_value(item):
            stats.high_value_count += 1
        if item.status is IntelStatus.PENDING:
            stats.pending_count += 1
        elif item.status is IntelStatus.CONFIRMED:
            stats.confirmed_count += 1
        elif item.status is IntelStatus.FLAGGED:
            stats.flagged_count += 1

        score = resolve_score(item)
        if score is not None:
            scores.append(score)
            tier = resolve_quality_tier(score)
            _bump(stats.by_quality_tier, tier.value)

        _bump(stats.by_content_type, item.content_type)
        _bump(stats.by_source_type, item.source_type)
        _bump(stats.by_status, item.status.value)

        # Count each commodity/region at most once per item
        for commodity in set(nested_commodities(item)):
            _bump(stats.by_commodity, commodity)
        for region in set(own_regions(item)) | set(nested_regions(item)):
            _bump(stats.by_region, region)

    if scores:
        stats.avg_quality = round(sum(scores) / len(scores), 1)
    return stats
