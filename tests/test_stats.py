"""Tests for src.intel.stats."""
from datetime import timedelta

from src.intel.stats import IntelStats, compute_intel_stats

from conftest import NOW, make_event, make_insight


class TestComputeIntelStats:

    def test_empty(self):
        stats = compute_intel_stats([], now=NOW)
        assert stats == IntelStats()
        assert stats.avg_quality is None
        assert stats.by_quality_tier == {"high": 0, "medium": 0, "low": 0}

    def test_counts(self, mixed_items):
        stats = compute_intel_stats(mixed_items, now=NOW)
        assert stats.total == 4
        assert stats.today_count == 4
        assert stats.week_count == 4
        assert stats.high_value_count == 1
        assert (stats.pending_count, stats.confirmed_count, stats.flagged_count) == (1, 2, 1)
        assert stats.by_content_type == {"DAILY_REPORT": 2, "RESEARCH_REPORT": 1, "POLICY_DOC": 1}
        assert stats.by_source_type == {"FIRST_LINE": 1, "RESEARCH_INST": 1, "OFFICIAL": 1, "MEDIA": 1}
        assert stats.by_status == {"confirmed": 2, "pending": 1, "flagged": 1}

    def test_quality_only_counts_scored_items(self, mixed_items):
        stats = compute_intel_stats(mixed_items, now=NOW)
        assert stats.by_quality_tier == {"high": 1, "medium": 1, "low": 1}
        assert stats.avg_quality == round((92 + 65 + 40) / 3, 1)

    def test_commodity_and_region_counted_once_per_item(self, mixed_items):
        stats = compute_intel_stats(mixed_items, now=NOW)
        assert stats.by_commodity == {"玉米": 1, "SOYBEAN": 1, "WHEAT": 1, "CORN": 1}
        # e1 has CN-JL both on the item and on its event
        assert stats.by_region["CN-JL"] == 1
        assert stats.by_region["CN-HN"] == 1
        assert stats.by_region["US-IA"] == 1

    def test_today_and_week_windows(self):
        items = [
            make_event("today", effective_time=NOW.replace(hour=0, minute=1)),
            make_event("yesterday", effective_time=NOW - timedelta(days=1)),
            make_event("old", effective_time=NOW - timedelta(days=8)),
            make_insight("undated", effective_time=None),
        ]
        stats = compute_intel_stats(items, now=NOW)
        assert stats.today_count == 1
        assert stats.week_count == 2
        assert stats.total == 4
