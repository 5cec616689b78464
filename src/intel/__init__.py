"""
src.intel -- Market intelligence feed filtering.

Typed feed items, the filter state users edit, the filter engine that applies
it, feed statistics, upstream feed access and per-user preferences.
"""

from src.intel.feed_client import IntelFeedClient, IntelFeedError
from src.intel.feed_filter import IntelFeedFilter, filter_intel_items
from src.intel.filter_state import (
    BUILT_IN_PRESETS,
    DEFAULT_FILTER_STATE,
    FilterPreset,
    FilterState,
    apply_filter_update,
    apply_preset,
    count_active_filters,
    from_query_params,
    is_filter_active,
    reset_filter_state,
    to_query_params,
)
from src.intel.models import IntelItem, parse_intel_item, parse_intel_items
from src.intel.normalizer import normalize_feed
from src.intel.preference_store import (
    FavoritesService,
    MemoryPreferenceStore,
    RedisPreferenceStore,
    WorkbenchModeService,
)
from src.intel.stats import IntelStats, compute_intel_stats

__all__ = [
    "BUILT_IN_PRESETS",
    "DEFAULT_FILTER_STATE",
    "FavoritesService",
    "FilterPreset",
    "FilterState",
    "IntelFeedClient",
    "IntelFeedError",
    "IntelFeedFilter",
    "IntelItem",
    "IntelStats",
    "MemoryPreferenceStore",
    "RedisPreferenceStore",
    "WorkbenchModeService",
    "apply_filter_update",
    "apply_preset",
    "compute_intel_stats",
    "count_active_filters",
    "filter_intel_items",
    "from_query_params",
    "is_filter_active",
    "normalize_feed",
    "parse_intel_item",
    "parse_intel_items",
    "reset_filter_state",
    "to_query_params",
]
