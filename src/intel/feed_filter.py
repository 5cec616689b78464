"""
Intel feed filter engine.

Turns a list of feed items plus a FilterState into the ordered subset to
display. Every dimension is an independent predicate:

  - inactive (empty list, default range, blank keyword): always passes
  - active: the item must satisfy it

Items are kept when all predicates pass (AND across dimensions, OR inside a
multi-value dimension). The input list is never mutated and relative order
is preserved.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from src.intel.filter_state import FilterState
from src.intel.models import IntelItem, IntelItemBase
from src.intel.payload import (
    collection_point_ids,
    event_type_ids,
    insight_type_ids,
    nested_commodities,
    nested_regions,
    own_regions,
    searchable_text,
    top_level_text,
)
from src.intel.scoring import resolve_effective_time, resolve_quality_tier, resolve_score
from src.intel.time_window import TimeWindow, resolve_time_window
from src.utils.logger import get_logger

logger = get_logger(__name__)


def _folded(values: Iterable[str]) -> frozenset[str]:
    return frozenset(v.casefold() for v in values if v)


class IntelFeedFilter:
    """Predicate pipeline for one resolved FilterState."""

    def __init__(self, state: FilterState, now: Optional[datetime] = None) -> None:
        self.state = state
        self.window: Optional[TimeWindow] = resolve_time_window(
            state.time_range, state.custom_date_range, now
        )
        # Pre-build lookup sets once per filter
        self._content_types = frozenset(state.content_types)
        self._source_types = frozenset(state.source_types)
        self._statuses = frozenset(state.status)
        self._commodities = _folded(state.commodities)
        self._regions = frozenset(state.regions)
        self._collection_points = frozenset(state.collection_point_ids)
        self._event_types = frozenset(state.event_type_ids)
        self._insight_types = frozenset(state.insight_type_ids)
        self._quality_tiers = frozenset(state.quality_level)
        self._keyword = state.keyword.casefold() if state.keyword else None

    def _check_time(self, item: IntelItemBase) -> bool:
        if self.window is None:
            return True
        return self.window.contains(resolve_effective_time(item))

    def _check_content_type(self, item: IntelItemBase) -> bool:
        return not self._content_types or item.content_type in self._content_types

    def _check_source_type(self, item: IntelItemBase) -> bool:
        return not self._source_types or item.source_type in self._source_types

    def _check_status(self, item: IntelItemBase) -> bool:
        return not self._statuses or item.status in self._statuses

    def _check_commodity(self, item: IntelItemBase) -> bool:
        """Structured commodity tags first, then substring match on the text.

        Commodity extraction upstream is best-effort, so an untagged item
        still matches when the commodity name appears in its text.
        """
        if not self._commodities:
            return True
        if _folded(nested_commodities(item)) & self._commodities:
            return True
        for text in top_level_text(item):
            folded = text.casefold()
            if any(commodity in folded for commodity in self._commodities):
                return True
        return False

    def _check_region(self, item: IntelItemBase) -> bool:
        if not self._regions:
            return True
        if self._regions.intersection(own_regions(item)):
            return True
        return bool(self._regions.intersection(nested_regions(item)))

    def _check_collection_point(self, item: IntelItemBase) -> bool:
        if not self._collection_points:
            return True
        return bool(self._collection_points.intersection(collection_point_ids(item)))

    def _check_event_type(self, item: IntelItemBase) -> bool:
        if not self._event_types:
            return True
        return bool(self._event_types.intersection(event_type_ids(item)))

    def _check_insight_type(self, item: IntelItemBase) -> bool:
        if not self._insight_types:
            return True
        return bool(self._insight_types.intersection(insight_type_ids(item)))

    def _check_score_range(self, item: IntelItemBase) -> bool:
        if not self.state.has_score_range:
            return True
        score = resolve_score(item)
        if score is None:
            return False
        low, high = self.state.confidence_range
        return low <= score <= high

    def _check_quality_level(self, item: IntelItemBase) -> bool:
        if not self._quality_tiers:
            return True
        tier = resolve_quality_tier(resolve_score(item))
        return tier is not None and tier in self._quality_tiers

    def _check_keyword(self, item: IntelItemBase) -> bool:
        if self._keyword is None:
            return True
        return any(self._keyword in text.casefold() for text in searchable_text(item))

    def matches(self, item: IntelItemBase) -> bool:
        # Cheap membership checks run before the text scans
        return (
            self._check_content_type(item)
            and self._check_source_type(item)
            and self._check_status(item)
            and self._check_time(item)
            and self._check_score_range(item)
            and self._check_quality_level(item)
            and self._check_event_type(item)
            and self._check_insight_type(item)
            and self._check_collection_point(item)
            and self._check_region(item)
            and self._check_commodity(item)
            and self._check_keyword(item)
        )

    def filter(self, items: Sequence[IntelItem]) -> list[IntelItem]:
        result = [item for item in items if self.matches(item)]
        logger.debug(
            "Feed filter: %d/%d items kept (time_range=%s, window=%s)",
            len(result),
            len(items),
            self.state.time_range.value if self.state.time_range else "all",
            "none" if self.window is None else f"{self.window.start:%Y-%m-%d %H:%M}~{self.window.end:%Y-%m-%d %H:%M}",
        )
        return result


def filter_intel_items(
    items: Sequence[IntelItem],
    state: FilterState,
    now: Optional[datetime] = None,
) -> list[IntelItem]:
    """Return the items of ``items`` that satisfy every active dimension of ``state``."""
    if not items:
        return []
    return IntelFeedFilter(state, now=now).filter(items)
