"""
Per-variant payload accessors.

Commodities, regions and searchable text live in different places for each
item variant. These helpers read only the payload that belongs to the
item's own ``type``.
"""

from __future__ import annotations

from typing import Iterator

from src.intel.models import (
    EventIntelItem,
    InsightIntelItem,
    IntelItemBase,
    ResearchReportIntelItem,
)


def nested_commodities(item: IntelItemBase) -> list[str]:
    if isinstance(item, EventIntelItem):
        return [e.commodity for e in item.events if e.commodity]
    if isinstance(item, InsightIntelItem):
        return [i.commodity for i in item.insights if i.commodity]
    if isinstance(item, ResearchReportIntelItem) and item.research_report:
        return list(item.research_report.commodities)
    return []


def nested_regions(item: IntelItemBase) -> list[str]:
    if isinstance(item, EventIntelItem):
        return [e.region_code for e in item.events if e.region_code]
    if isinstance(item, InsightIntelItem):
        return [i.region_code for i in item.insights if i.region_code]
    if isinstance(item, ResearchReportIntelItem) and item.research_report:
        return list(item.research_report.regions)
    return []


def own_regions(item: IntelItemBase) -> list[str]:
    """Regions tagged on the item itself: region[] plus location."""
    regions = list(item.region)
    if item.location:
        regions.append(item.location)
    return regions


def event_type_ids(item: IntelItemBase) -> list[str]:
    if isinstance(item, EventIntelItem):
        return [e.event_type_id for e in item.events if e.event_type_id]
    return []


def insight_type_ids(item: IntelItemBase) -> list[str]:
    if isinstance(item, InsightIntelItem):
        return [i.insight_type_id for i in item.insights if i.insight_type_id]
    return []


def collection_point_ids(item: IntelItemBase) -> list[str]:
    ids = [item.collection_point_id] if item.collection_point_id else []
    if isinstance(item, EventIntelItem):
        ids.extend(e.collection_point_id for e in item.events if e.collection_point_id)
    return ids


def top_level_text(item: IntelItemBase) -> Iterator[str]:
    for text in (item.title, item.summary, item.raw_content):
        if text:
            yield text


def searchable_text(item: IntelItemBase) -> Iterator[str]:
    """Every text field the keyword search looks at, nested payloads included."""
    yield from top_level_text(item)
    if isinstance(item, EventIntelItem):
        for event in item.events:
            yield from (t for t in (event.subject, event.action, event.content) if t)
    elif isinstance(item, InsightIntelItem):
        for insight in item.insights:
            yield from (t for t in (insight.title, insight.content, insight.summary) if t)
