"""
Feed filter state: the user-editable query over the intel feed.

The state is owned by the caller (UI, URL, API request). It is updated
through partial merges, reset to defaults, or replaced by a preset; it is
never persisted server-side. Every list dimension defaults to empty and an
empty dimension imposes no constraint.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Mapping, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.intel.models import (
    IntelSourceType,
    IntelStatus,
    LenientDatetime,
    QualityTier,
    StrList,
    TimeRange,
    coerce_str_list,
    coerce_timestamp,
)
from src.intel.time_window import resolve_time_window

SCORE_MIN: float = 0.0
SCORE_MAX: float = 100.0

StatusList = Annotated[list[IntelStatus], BeforeValidator(coerce_str_list)]
QualityList = Annotated[list[QualityTier], BeforeValidator(coerce_str_list)]


class FilterState(BaseModel):
    """Multi-dimensional filter over the intel feed."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    # None = all time
    time_range: Optional[TimeRange] = None
    custom_date_range: Optional[tuple[LenientDatetime, LenientDatetime]] = None

    content_types: StrList = Field(default_factory=list)
    source_types: StrList = Field(default_factory=list)
    commodities: StrList = Field(default_factory=list)
    regions: StrList = Field(default_factory=list)
    collection_point_ids: StrList = Field(default_factory=list)
    event_type_ids: StrList = Field(default_factory=list)
    insight_type_ids: StrList = Field(default_factory=list)
    status: StatusList = Field(default_factory=list)
    quality_level: QualityList = Field(default_factory=list)

    confidence_range: tuple[float, float] = (SCORE_MIN, SCORE_MAX)
    keyword: Optional[str] = None

    @field_validator("confidence_range", mode="after")
    @classmethod
    def _clamp_range(cls, value: tuple[float, float]) -> tuple[float, float]:
        low, high = sorted(value)
        return (max(SCORE_MIN, low), min(SCORE_MAX, high))

    @field_validator("keyword", mode="before")
    @classmethod
    def _blank_keyword(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def has_score_range(self) -> bool:
        """True when the confidence range narrows the default [0, 100]."""
        low, high = self.confidence_range
        return low > SCORE_MIN or high < SCORE_MAX


DEFAULT_FILTER_STATE = FilterState()

# field name and camelCase alias -> field name
_FIELD_BY_KEY: dict[str, str] = {}
for _name, _field in FilterState.model_fields.items():
    _FIELD_BY_KEY[_name] = _name
    if _field.alias:
        _FIELD_BY_KEY[_field.alias] = _name


def apply_filter_update(
    state: FilterState, update: Mapping[str, Any]
) -> FilterState:
    """Merge a partial update into ``state`` and return the new state.

    Keys may be field names or their camelCase aliases.

    Raises:
        ValueError: Unknown key or a value that fails validation.
    """
    normalized: dict[str, Any] = {}
    for key, value in update.items():
        name = _FIELD_BY_KEY.get(key)
        if name is None:
            raise ValueError(f"Unknown filter field: {key!r}")
        normalized[name] = value
    merged = {**state.model_dump(), **normalized}
    return FilterState.model_validate(merged)


def reset_filter_state() -> FilterState:
    return DEFAULT_FILTER_STATE


def count_active_filters(state: FilterState) -> int:
    """Number of narrowing dimensions, as shown on the filter badge.

    Time range and keyword have their own controls and are not counted.
    """
    flags = [
        bool(state.content_types),
        bool(state.source_types),
        bool(state.commodities),
        bool(state.regions),
        bool(state.collection_point_ids),
        bool(state.event_type_ids),
        bool(state.insight_type_ids),
        bool(state.status),
        bool(state.quality_level),
        state.has_score_range,
    ]
    return sum(flags)


def is_filter_active(state: FilterState) -> bool:
    return count_active_filters(state) > 0 or state.keyword is not None


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

class FilterPreset(BaseModel):
    """A named partial filter the user can apply in one click."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    description: Optional[str] = None
    filter: dict[str, Any]
    is_built_in: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


BUILT_IN_PRESETS: list[FilterPreset] = [
    FilterPreset(
        id="today",
        name="今日新增",
        filter={"time_range": TimeRange.ONE_DAY},
        is_built_in=True,
    ),
    FilterPreset(
        id="high-value",
        name="高价值情报",
        filter={"confidence_range": (80, 100), "quality_level": [QualityTier.HIGH]},
        is_built_in=True,
    ),
    FilterPreset(
        id="pending",
        name="待处理",
        filter={"status": [IntelStatus.PENDING]},
        is_built_in=True,
    ),
    FilterPreset(
        id="first-line",
        name="市场信息",
        filter={"source_types": [IntelSourceType.FIRST_LINE.value]},
        is_built_in=True,
    ),
]


def get_preset(preset_id: str) -> Optional[FilterPreset]:
    for preset in BUILT_IN_PRESETS:
        if preset.id == preset_id:
            return preset
    return None


def apply_preset(preset: FilterPreset) -> FilterState:
    """Defaults overlaid with the preset's partial filter."""
    return apply_filter_update(DEFAULT_FILTER_STATE, preset.filter)


# ---------------------------------------------------------------------------
# Query parameter (URL) encoding
# ---------------------------------------------------------------------------

_LIST_PARAMS: dict[str, str] = {
    "contentTypes": "content_types",
    "sourceTypes": "source_types",
    "commodities": "commodities",
    "regions": "regions",
    "collectionPointIds": "collection_point_ids",
    "eventTypeIds": "event_type_ids",
    "insightTypeIds": "insight_type_ids",
    "status": "status",
    "qualityLevel": "quality_level",
}


def _enum_values(values: list[Any]) -> list[str]:
    return [getattr(v, "value", v) for v in values]


def _split_param(value: Any) -> list[str]:
    """Accept "a,b" strings as well as repeated query keys."""
    raw = value if isinstance(value, (list, tuple)) else [value]
    parts: list[str] = []
    for chunk in raw:
        if chunk is None:
            continue
        parts.extend(p.strip() for p in str(chunk).split(",") if p.strip())
    return parts


def _last(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


def to_query_params(state: FilterState) -> dict[str, str]:
    """Encode the filter state as URL query parameters.

    Only non-default values are emitted, so the default state encodes to {}.
    """
    params: dict[str, str] = {}
    if state.time_range is not None:
        params["timeRange"] = state.time_range.value
    if state.time_range is TimeRange.CUSTOM and state.custom_date_range:
        start, end = state.custom_date_range
        if start is not None:
            params["customStart"] = start.isoformat()
        if end is not None:
            params["customEnd"] = end.isoformat()
    for param, field_name in _LIST_PARAMS.items():
        values = getattr(state, field_name)
        if values:
            params[param] = ",".join(_enum_values(values))
    if state.has_score_range:
        params["minScore"] = f"{state.confidence_range[0]:g}"
        params["maxScore"] = f"{state.confidence_range[1]:g}"
    if state.keyword:
        params["keyword"] = state.keyword
    return params


def from_query_params(params: Mapping[str, Any]) -> FilterState:
    """Decode URL query parameters into a FilterState.

    Unknown parameters are ignored.

    Raises:
        ValueError: A parameter value fails validation.
    """
    data: dict[str, Any] = {}
    if _last(params.get("timeRange")):
        data["time_range"] = _last(params["timeRange"])

    custom_start = _last(params.get("customStart"))
    custom_end = _last(params.get("customEnd"))
    if custom_start or custom_end:
        start, end = coerce_timestamp(custom_start), coerce_timestamp(custom_end)
        if start is None or end is None:
            raise ValueError("customStart and customEnd must both be ISO 8601 timestamps")
        data["custom_date_range"] = (start, end)

    for param, field_name in _LIST_PARAMS.items():
        if param in params:
            data[field_name] = _split_param(params[param])

    min_score = _last(params.get("minScore"))
    max_score = _last(params.get("maxScore"))
    if min_score not in (None, "") or max_score not in (None, ""):
        try:
            low = float(min_score) if min_score not in (None, "") else SCORE_MIN
            high = float(max_score) if max_score not in (None, "") else SCORE_MAX
        except (TypeError, ValueError) as exc:
            raise ValueError(f"minScore/maxScore must be numbers: {exc}") from exc
        data["confidence_range"] = (low, high)

    if _last(params.get("keyword")):
        data["keyword"] = _last(params["keyword"])

    return FilterState.model_validate(data)


def to_feed_query(
    state: FilterState,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> dict[str, str]:
    """Build the query string for the upstream ``/market-intel/feed`` endpoint.

    Dates are resolved from the time range; lists are comma-joined; empty
    dimensions are omitted so the upstream treats them as unconstrained.
    """
    query: dict[str, str] = {}
    window = resolve_time_window(state.time_range, state.custom_date_range, now)
    if window is not None:
        query["startDate"] = window.start.isoformat()
        query["endDate"] = window.end.isoformat()

    upstream_lists = {
        "contentTypes": state.content_types,
        "sourceTypes": state.source_types,
        "commodities": state.commodities,
        "regionCodes": state.regions,
        "eventTypeIds": state.event_type_ids,
        "insightTypeIds": state.insight_type_ids,
        "processingStatus": state.status,
        "qualityLevel": state.quality_level,
    }
    for key, values in upstream_lists.items():
        if values:
            query[key] = ",".join(_enum_values(values))

    if state.has_score_range:
        query["minScore"] = f"{state.confidence_range[0]:g}"
        query["maxScore"] = f"{state.confidence_range[1]:g}"
    if state.keyword:
        query["keyword"] = state.keyword
    if limit is not None:
        query["limit"] = str(limit)
    return query
