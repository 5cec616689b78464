"""Tests for src.intel.filter_state."""
from datetime import timedelta

import pytest

from src.intel.filter_state import (
    BUILT_IN_PRESETS,
    DEFAULT_FILTER_STATE,
    FilterState,
    apply_filter_update,
    apply_preset,
    count_active_filters,
    from_query_params,
    get_preset,
    is_filter_active,
    reset_filter_state,
    to_feed_query,
    to_query_params,
)
from src.intel.models import IntelStatus, QualityTier, TimeRange

from conftest import NOW


# ---------------------------------------------------------------------------
# Defaults and validation
# ---------------------------------------------------------------------------
class TestFilterStateDefaults:

    def test_default_state_is_unconstrained(self):
        state = FilterState()
        assert state.time_range is None
        assert state.content_types == []
        assert state.confidence_range == (0, 100)
        assert state.keyword is None
        assert not state.has_score_range
        assert count_active_filters(state) == 0
        assert not is_filter_active(state)

    def test_reset_returns_defaults(self):
        assert reset_filter_state() == DEFAULT_FILTER_STATE

    def test_confidence_range_clamped_and_ordered(self):
        assert FilterState(confidence_range=(90, 20)).confidence_range == (20, 90)
        assert FilterState(confidence_range=(120, -5)).confidence_range == (0, 100)

    def test_blank_keyword_is_none(self):
        assert FilterState(keyword="   ").keyword is None
        assert FilterState(keyword=" corn ").keyword == "corn"

    def test_camel_case_input(self):
        state = FilterState.model_validate({"timeRange": "30D", "contentTypes": ["DAILY_REPORT"]})
        assert state.time_range is TimeRange.THIRTY_DAYS
        assert state.content_types == ["DAILY_REPORT"]

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            FilterState.model_validate({"colour": "red"})


# ---------------------------------------------------------------------------
# Partial updates
# ---------------------------------------------------------------------------
class TestApplyFilterUpdate:

    def test_merge_keeps_other_fields(self):
        first = apply_filter_update(DEFAULT_FILTER_STATE, {"commodities": ["玉米"]})
        second = apply_filter_update(first, {"status": ["pending"]})
        assert second.commodities == ["玉米"]
        assert second.status == [IntelStatus.PENDING]
        assert first.status == []

    def test_original_state_not_modified(self):
        state = FilterState(regions=["CN-JL"])
        apply_filter_update(state, {"regions": []})
        assert state.regions == ["CN-JL"]

    def test_alias_and_field_names(self):
        state = apply_filter_update(DEFAULT_FILTER_STATE, {"qualityLevel": ["high"], "time_range": "1D"})
        assert state.quality_level == [QualityTier.HIGH]
        assert state.time_range is TimeRange.ONE_DAY

    def test_enum_values_survive_remerge(self):
        state = apply_filter_update(DEFAULT_FILTER_STATE, {"status": ["flagged"]})
        state = apply_filter_update(state, {"keyword": "wheat"})
        assert state.status == [IntelStatus.FLAGGED]

    def test_unknown_key_raises(self):
        with pytest.raises(ValueError, match="Unknown filter field"):
            apply_filter_update(DEFAULT_FILTER_STATE, {"colour": "red"})

    def test_invalid_value_raises(self):
        with pytest.raises(ValueError):
            apply_filter_update(DEFAULT_FILTER_STATE, {"status": ["bogus"]})


class TestActiveCount:

    def test_each_dimension_counts_once(self):
        state = FilterState(
            content_types=["DAILY_REPORT", "POLICY_DOC"],
            source_types=["MEDIA"],
            commodities=["CORN"],
            regions=["CN-JL"],
            collection_point_ids=["cp-1"],
            event_type_ids=["et-1"],
            insight_type_ids=["it-1"],
            status=["pending"],
            quality_level=["high"],
            confidence_range=(10, 100),
        )
        assert count_active_filters(state) == 10

    def test_time_range_and_keyword_not_counted(self):
        state = FilterState(time_range="1D", keyword="corn")
        assert count_active_filters(state) == 0
        assert is_filter_active(state)


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------
class TestPresets:

    def test_built_in_ids(self):
        assert [p.id for p in BUILT_IN_PRESETS] == ["today", "high-value", "pending", "first-line"]
        assert all(p.is_built_in for p in BUILT_IN_PRESETS)

    def test_high_value_preset(self):
        state = apply_preset(get_preset("high-value"))
        assert state.confidence_range == (80, 100)
        assert state.quality_level == [QualityTier.HIGH]
        assert count_active_filters(state) == 2

    def test_today_preset_overrides_defaults_only(self):
        state = apply_preset(get_preset("today"))
        assert state.time_range is TimeRange.ONE_DAY
        assert state == FilterState(time_range="1D")

    def test_pending_and_first_line(self):
        assert apply_preset(get_preset("pending")).status == [IntelStatus.PENDING]
        assert apply_preset(get_preset("first-line")).source_types == ["FIRST_LINE"]

    def test_unknown_preset(self):
        assert get_preset("nope") is None


# ---------------------------------------------------------------------------
# URL query params
# ---------------------------------------------------------------------------
class TestQueryParams:

    def test_default_state_encodes_empty(self):
        assert to_query_params(DEFAULT_FILTER_STATE) == {}

    def test_encoding(self):
        state = FilterState(
            time_range="7D",
            commodities=["玉米", "CORN"],
            status=["pending", "confirmed"],
            confidence_range=(60, 100),
            keyword="price",
        )
        assert to_query_params(state) == {
            "timeRange": "7D",
            "commodities": "玉米,CORN",
            "status": "pending,confirmed",
            "minScore": "60",
            "maxScore": "100",
            "keyword": "price",
        }

    def test_round_trip_with_custom_range(self):
        state = FilterState(
            time_range="CUSTOM",
            custom_date_range=(NOW - timedelta(days=3), NOW),
            regions=["CN-JL", "CN-HLJ"],
            insight_type_ids=["it-1"],
            quality_level=["medium"],
            confidence_range=(20.5, 75),
        )
        assert from_query_params(to_query_params(state)) == state

    def test_repeated_keys_and_commas(self):
        state = from_query_params({
            "status": ["pending", "confirmed,flagged"],
            "regions": "CN-JL, CN-SD",
            "page": "3",
        })
        assert state.status == [IntelStatus.PENDING, IntelStatus.CONFIRMED, IntelStatus.FLAGGED]
        assert state.regions == ["CN-JL", "CN-SD"]

    def test_single_score_bound(self):
        assert from_query_params({"minScore": "80"}).confidence_range == (80, 100)

    @pytest.mark.parametrize("params", [
        {"minScore": "high"},
        {"timeRange": "2W"},
        {"customStart": "2026-01-01T00:00:00Z"},
        {"qualityLevel": "excellent"},
    ])
    def test_invalid_params_raise(self, params):
        with pytest.raises(ValueError):
            from_query_params(params)


class TestFeedQuery:

    def test_upstream_parameter_names(self):
        state = FilterState(
            time_range="7D",
            content_types=["DAILY_REPORT"],
            regions=["CN-JL"],
            event_type_ids=["et-1"],
            status=["pending"],
            quality_level=["high"],
            confidence_range=(80, 100),
            keyword="玉米",
        )
        query = to_feed_query(state, limit=50, now=NOW)
        assert query == {
            "startDate": (NOW - timedelta(days=7)).isoformat(),
            "endDate": NOW.isoformat(),
            "contentTypes": "DAILY_REPORT",
            "regionCodes": "CN-JL",
            "eventTypeIds": "et-1",
            "processingStatus": "pending",
            "qualityLevel": "high",
            "minScore": "80",
            "maxScore": "100",
            "keyword": "玉米",
            "limit": "50",
        }

    def test_default_state_has_no_dates(self):
        assert to_feed_query(DEFAULT_FILTER_STATE, now=NOW) == {}
