"""Shared fixtures and item factories for the intel feed tests."""
from datetime import datetime, timedelta, timezone

import pytest

from src.intel.models import (
    EventIntelItem,
    InsightIntelItem,
    ResearchReportIntelItem,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_event(item_id: str = "ev-1", events=None, **fields) -> EventIntelItem:
    fields.setdefault("effective_time", NOW - timedelta(hours=1))
    return EventIntelItem(id=item_id, events=events or [], **fields)


def make_insight(item_id: str = "in-1", insights=None, **fields) -> InsightIntelItem:
    fields.setdefault("effective_time", NOW - timedelta(hours=1))
    return InsightIntelItem(id=item_id, insights=insights or [], **fields)


def make_report(item_id: str = "rr-1", report=None, **fields) -> ResearchReportIntelItem:
    fields.setdefault("effective_time", NOW - timedelta(hours=1))
    fields.setdefault("content_type", "RESEARCH_REPORT")
    return ResearchReportIntelItem(id=item_id, research_report=report, **fields)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def mixed_items():
    """One of each variant plus an unscored event, in a fixed order."""
    return [
        make_event(
            "e1",
            events=[{
                "commodity": "玉米",
                "regionCode": "CN-JL",
                "eventTypeId": "et-price",
                "collectionPointId": "cp-1",
                "subject": "Jilin Port",
                "action": "raised purchase price",
            }],
            content_type="DAILY_REPORT",
            source_type="FIRST_LINE",
            status="confirmed",
            confidence=92,
            title="吉林玉米收购价上调",
            region=["CN-JL"],
        ),
        make_insight(
            "i1",
            insights=[{
                "commodity": "SOYBEAN",
                "regionCode": "CN-HLJ",
                "insightTypeId": "it-trend",
                "title": "Soybean supply tightening",
                "content": "Imports slow down",
            }],
            content_type="DAILY_REPORT",
            source_type="RESEARCH_INST",
            status="pending",
            quality_score=65,
        ),
        make_report(
            "r1",
            report={"commodities": ["WHEAT"], "regions": ["CN-HN"], "reviewStatus": "APPROVED"},
            source_type="OFFICIAL",
            status="confirmed",
            confidence=40,
            title="Wheat outlook Q2",
            location="CN-HN",
        ),
        make_event(
            "e2",
            events=[{"commodity": "CORN", "regionCode": "US-IA"}],
            content_type="POLICY_DOC",
            source_type="MEDIA",
            status="flagged",
            raw_content="Iowa corn export policy",
        ),
    ]


# Upstream feed entries shared by the normalizer, client and API tests
INSIGHT_ENTRY = {
    "type": "INSIGHT",
    "id": "in-1",
    "createdAt": "2026-03-14T10:00:00Z",
    "data": {
        "id": "in-1",
        "title": "Soybean supply tightening",
        "content": "Imports slow down ahead of planting",
        "confidence": 72,
        "commodity": "SOYBEAN",
        "regionCode": "CN-HLJ",
        "insightType": {"id": "it-trend"},
        "factors": ["imports", "weather"],
        "intel": {"id": "intel-2", "isFlagged": True, "totalScore": 60},
    },
}

REPORT_ENTRY = {
    "type": "RESEARCH_REPORT",
    "id": "rr-1",
    "data": {
        "id": "rr-1",
        "title": "Wheat outlook Q2",
        "summary": "Supply stable",
        "reportType": "MARKET",
        "source": "CNGOIC",
        "publishDate": "2026-03-01",
        "createdAt": "2026-03-02T00:00:00Z",
        "commodities": ["WHEAT"],
        "regions": ["CN-HN"],
        "reviewStatus": "APPROVED",
    },
}
