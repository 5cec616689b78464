"""
Derived-field resolution for feed items.

Score, quality tier and business time each have exactly one resolution
function here; the feed filter, the stats aggregator and the API layer all
go through them.

Score precedence: ``confidence`` first, then ``quality_score``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from src.intel.models import IntelItemBase, QualityTier, to_utc

HIGH_TIER_MIN_SCORE: float = 80.0
MEDIUM_TIER_MIN_SCORE: float = 50.0


def resolve_score(item: IntelItemBase) -> Optional[float]:
    """Return the item's canonical score, or None when it has none.

    0 is a valid score and is returned as-is.
    """
    if item.confidence is not None:
        return float(item.confidence)
    if item.quality_score is not None:
        return float(item.quality_score)
    return None


def resolve_quality_tier(score: Optional[float]) -> Optional[QualityTier]:
    """Bucket a score into high (>=80), medium (>=50) or low."""
    if score is None:
        return None
    if score >= HIGH_TIER_MIN_SCORE:
        return QualityTier.HIGH
    if score >= MEDIUM_TIER_MIN_SCORE:
        return QualityTier.MEDIUM
    return QualityTier.LOW


def resolve_effective_time(item: IntelItemBase) -> Optional[datetime]:
    """Business time of the item: effective_time, falling back to created_at."""
    ts = item.effective_time or item.created_at
    if ts is None:
        return None
    return to_utc(ts)


def is_high_value(item: IntelItemBase) -> bool:
    score = resolve_score(item)
    return score is not None and score >= HIGH_TIER_MIN_SCORE
