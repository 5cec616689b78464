"""
Upstream feed -> IntelItem normalization.

The market-intel feed endpoint returns heterogeneous entries::

    {"type": "EVENT" | "INSIGHT" | "RESEARCH_REPORT",
     "id": "...", "createdAt": "...", "data": {...}}

where ``data.intel`` (when present) is the shared intel row the event or
insight was extracted from. Each entry is mapped to the matching IntelItem
variant. Entries that cannot be mapped are skipped with a warning so one bad
record never empties the feed.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from src.intel.models import (
    ContentType,
    Event,
    EventIntelItem,
    Insight,
    InsightIntelItem,
    IntelItem,
    IntelStatus,
    ReportDetail,
    ResearchReportIntelItem,
    coerce_score,
)
from src.utils.logger import get_logger

logger = get_logger(__name__)

_REVIEW_STATUS_MAP: dict[str, IntelStatus] = {
    "APPROVED": IntelStatus.CONFIRMED,
    "REJECTED": IntelStatus.FLAGGED,
    "ARCHIVED": IntelStatus.ARCHIVED,
    "PENDING": IntelStatus.PENDING,
}


def _intel_status(intel: dict[str, Any]) -> IntelStatus:
    """flagged > confirmed (scored) > pending."""
    if intel.get("isFlagged"):
        return IntelStatus.FLAGGED
    if coerce_score(intel.get("totalScore")) is not None:
        return IntelStatus.CONFIRMED
    return IntelStatus.PENDING


def _shared_fields(entry: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    """Fields that come from the linked intel row."""
    intel = data.get("intel") or {}
    collection_point = data.get("collectionPoint") or {}
    return {
        "intel_id": intel.get("id") or data.get("intelId"),
        "content_type": intel.get("contentType") or ContentType.DAILY_REPORT.value,
        "source_type": intel.get("sourceType") or "FIRST_LINE",
        "category": intel.get("category"),
        "raw_content": intel.get("rawContent") or data.get("sourceText") or "",
        "effective_time": intel.get("effectiveTime"),
        "created_at": entry.get("createdAt") or data.get("createdAt"),
        "location": intel.get("location"),
        "region": intel.get("region"),
        "collection_point_id": collection_point.get("id"),
        "collection_point_name": collection_point.get("name"),
        "quality_score": intel.get("totalScore"),
        "status": _intel_status(intel),
    }


def _map_event(entry: dict[str, Any], data: dict[str, Any]) -> EventIntelItem:
    event = Event.model_validate(
        {
            **data,
            "eventTypeId": data.get("eventTypeId") or (data.get("eventType") or {}).get("id"),
            "collectionPointId": data.get("collectionPointId")
            or (data.get("collectionPoint") or {}).get("id"),
        }
    )
    summary = " ".join(part for part in (event.subject, event.action) if part)
    return EventIntelItem(
        id=str(entry.get("id") or data["id"]),
        title=event.subject or None,
        summary=summary or None,
        events=[event],
        **_shared_fields(entry, data),
    )


def _map_insight(entry: dict[str, Any], data: dict[str, Any]) -> InsightIntelItem:
    insight = Insight.model_validate(
        {
            **data,
            "insightTypeId": data.get("insightTypeId")
            or (data.get("insightType") or {}).get("id"),
        }
    )
    return InsightIntelItem(
        id=str(entry.get("id") or data["id"]),
        title=insight.title or None,
        summary=insight.summary or insight.content or None,
        confidence=insight.confidence,
        insights=[insight],
        **_shared_fields(entry, data),
    )


def _map_report(entry: dict[str, Any], data: dict[str, Any]) -> ResearchReportIntelItem:
    report = ReportDetail.model_validate(data)
    fields = _shared_fields(entry, data)
    fields["content_type"] = ContentType.RESEARCH_REPORT.value
    fields["effective_time"] = data.get("publishDate") or fields["effective_time"]
    fields["created_at"] = data.get("createdAt") or fields["created_at"]
    if report.review_status:
        fields["status"] = _REVIEW_STATUS_MAP.get(
            report.review_status.upper(), IntelStatus.PENDING
        )
    return ResearchReportIntelItem(
        id=str(entry.get("id") or data["id"]),
        title=data.get("title"),
        summary=data.get("summary"),
        research_report=report,
        **fields,
    )


_MAPPERS: dict[str, Callable[[dict[str, Any], dict[str, Any]], IntelItem]] = {
    "EVENT": _map_event,
    "INSIGHT": _map_insight,
    "RESEARCH_REPORT": _map_report,
}


def normalize_feed_entry(entry: dict[str, Any]) -> Optional[IntelItem]:
    """Map a single upstream feed entry, or return None if it is unusable."""
    if not isinstance(entry, dict):
        logger.warning("Skipping non-object feed entry: %r", type(entry).__name__)
        return None

    entry_type = str(entry.get("type") or "").upper()
    mapper = _MAPPERS.get(entry_type)
    if mapper is None:
        logger.warning("Skipping feed entry with unknown type %r (id=%s)", entry_type, entry.get("id"))
        return None

    data = entry.get("data")
    if not isinstance(data, dict):
        logger.warning("Skipping %s entry without data (id=%s)", entry_type, entry.get("id"))
        return None

    try:
        return mapper(entry, data)
    except (KeyError, TypeError, AttributeError, ValidationError) as exc:
        logger.warning("Skipping malformed %s entry (id=%s): %s", entry_type, entry.get("id"), exc)
        return None


def normalize_feed(entries: Iterable[dict[str, Any]]) -> list[IntelItem]:
    """Map upstream feed entries to IntelItems, keeping order and dropping bad ones."""
    items: list[IntelItem] = []
    skipped = 0
    for entry in entries:
        item = normalize_feed_entry(entry)
        if item is None:
            skipped += 1
            continue
        items.append(item)
    if skipped:
        logger.info("Feed normalized: %d items, %d skipped", len(items), skipped)
    return items
