"""
Typed models for market intelligence feed items.

Feed items arrive from the market-intel API in camelCase and are validated
into one of three variants keyed by ``type``:

  - event:            an extracted market event (``events`` payload)
  - insight:          an AI market insight (``insights`` payload)
  - research_report:  a research report reference (``research_report`` payload)

Each variant carries only its own payload, so code reading an event item can
never reach report or insight fields by accident.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

# JS clients send epoch milliseconds; anything above this is treated as ms.
_EPOCH_MS_THRESHOLD = 100_000_000_000


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

class ContentType(str, Enum):
    DAILY_REPORT = "DAILY_REPORT"
    RESEARCH_REPORT = "RESEARCH_REPORT"
    POLICY_DOC = "POLICY_DOC"


class IntelSourceType(str, Enum):
    FIRST_LINE = "FIRST_LINE"
    COMPETITOR = "COMPETITOR"
    OFFICIAL = "OFFICIAL"
    RESEARCH_INST = "RESEARCH_INST"
    MEDIA = "MEDIA"
    INTERNAL_REPORT = "INTERNAL_REPORT"


class IntelCategory(str, Enum):
    A_STRUCTURED = "A_STRUCTURED"
    B_SEMI_STRUCTURED = "B_SEMI_STRUCTURED"
    C_DOCUMENT = "C_DOCUMENT"


class IntelStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FLAGGED = "flagged"
    ARCHIVED = "archived"


class QualityTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TimeRange(str, Enum):
    ONE_DAY = "1D"
    SEVEN_DAYS = "7D"
    THIRTY_DAYS = "30D"
    NINETY_DAYS = "90D"
    YEAR_TO_DATE = "YTD"
    CUSTOM = "CUSTOM"


CONTENT_TYPE_LABELS: dict[str, str] = {
    ContentType.DAILY_REPORT.value: "市场信息",
    ContentType.RESEARCH_REPORT.value: "研究报告",
    ContentType.POLICY_DOC.value: "政策文件",
}

SOURCE_TYPE_LABELS: dict[str, str] = {
    IntelSourceType.FIRST_LINE.value: "一线采集",
    IntelSourceType.COMPETITOR.value: "竞对情报",
    IntelSourceType.OFFICIAL.value: "官方发布",
    IntelSourceType.RESEARCH_INST.value: "研究机构",
    IntelSourceType.MEDIA.value: "媒体报道",
    IntelSourceType.INTERNAL_REPORT.value: "内部研报",
}

STATUS_LABELS: dict[str, str] = {
    IntelStatus.PENDING.value: "待处理",
    IntelStatus.CONFIRMED.value: "已确认",
    IntelStatus.FLAGGED.value: "已标记",
    IntelStatus.ARCHIVED.value: "已归档",
}


# ---------------------------------------------------------------------------
# Lenient coercion helpers
# ---------------------------------------------------------------------------

def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp from the wire, returning None when it is unusable.

    A single malformed timestamp must not reject the whole record, so every
    failure path degrades to None instead of raising.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= _EPOCH_MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return to_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def coerce_score(value: Any) -> Optional[float]:
    """Parse a 0-100 score, returning None for anything that is not a finite number.

    Like timestamps, a bad score only drops the item out of score filters.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        score = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return score if math.isfinite(score) else None


def _as_text(value: Any) -> str:
    return str(value.value) if isinstance(value, Enum) else str(value)


def coerce_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (str, Enum)):
        text = _as_text(value)
        return [text] if text else []
    return [_as_text(v) for v in value if v is not None and _as_text(v) != ""]


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


LenientDatetime = Annotated[Optional[datetime], BeforeValidator(coerce_timestamp)]
LenientScore = Annotated[Optional[float], BeforeValidator(coerce_score)]
StrList = Annotated[list[str], BeforeValidator(coerce_str_list)]
Text = Annotated[str, BeforeValidator(coerce_text)]


class _WireModel(BaseModel):
    """Base for models that accept both camelCase wire keys and field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Nested payloads
# ---------------------------------------------------------------------------

class Event(_WireModel):
    """A structured market event extracted from an intel document."""

    id: Optional[str] = None
    subject: Text = ""
    action: Text = ""
    content: Text = ""
    commodity: Optional[str] = None
    region_code: Optional[str] = None
    event_type_id: Optional[str] = None
    sentiment: Optional[str] = None
    impact_level: Optional[str] = None
    collection_point_id: Optional[str] = None
    event_date: LenientDatetime = None


class Insight(_WireModel):
    """An AI-generated market insight."""

    id: Optional[str] = None
    title: Text = ""
    content: Text = ""
    summary: Optional[str] = None
    commodity: Optional[str] = None
    region_code: Optional[str] = None
    insight_type_id: Optional[str] = None
    direction: Optional[str] = None
    timeframe: Optional[str] = None
    confidence: LenientScore = None
    factors: StrList = Field(default_factory=list)


class ReportDetail(_WireModel):
    """Research report metadata attached to a research_report item."""

    id: Optional[str] = None
    report_type: Optional[str] = None
    source: Optional[str] = None
    publish_date: LenientDatetime = None
    commodities: StrList = Field(default_factory=list)
    regions: StrList = Field(default_factory=list)
    review_status: Optional[str] = None
    key_points: Optional[Any] = None


# ---------------------------------------------------------------------------
# Feed items
# ---------------------------------------------------------------------------

class IntelItemBase(_WireModel):
    """Fields shared by every feed item variant."""

    id: str
    intel_id: Optional[str] = None
    content_type: str = ContentType.DAILY_REPORT.value
    source_type: str = IntelSourceType.FIRST_LINE.value
    category: Optional[str] = None

    title: Optional[str] = None
    summary: Optional[str] = None
    raw_content: Text = ""

    effective_time: LenientDatetime = None
    created_at: LenientDatetime = None

    location: Optional[str] = None
    region: StrList = Field(default_factory=list)

    collection_point_id: Optional[str] = None
    collection_point_name: Optional[str] = None

    confidence: LenientScore = None
    quality_score: LenientScore = None

    status: IntelStatus = IntelStatus.PENDING


class EventIntelItem(IntelItemBase):
    type: Literal["event"] = "event"
    events: list[Event] = Field(default_factory=list)


class InsightIntelItem(IntelItemBase):
    type: Literal["insight"] = "insight"
    insights: list[Insight] = Field(default_factory=list)


class ResearchReportIntelItem(IntelItemBase):
    type: Literal["research_report"] = "research_report"
    research_report: Optional[ReportDetail] = None


IntelItem = Annotated[
    Union[EventIntelItem, InsightIntelItem, ResearchReportIntelItem],
    Field(discriminator="type"),
]

_item_adapter: TypeAdapter[IntelItem] = TypeAdapter(IntelItem)
_items_adapter: TypeAdapter[list[IntelItem]] = TypeAdapter(list[IntelItem])


def parse_intel_item(data: Any) -> IntelItem:
    """Validate a single raw dict into its IntelItem variant."""
    return _item_adapter.validate_python(data)


def parse_intel_items(data: Any) -> list[IntelItem]:
    """Validate a list of raw dicts into IntelItem variants."""
    return _items_adapter.validate_python(data)
