"""
Pydantic request/response models for the intel feed API.

Feed items and filter states are serialized with their camelCase aliases,
matching what the dashboard sends and what the upstream feed returns.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.intel.filter_state import DEFAULT_FILTER_STATE, FilterPreset, FilterState
from src.intel.models import IntelItem
from src.intel.preference_store import WorkbenchMode
from src.intel.stats import IntelStats


# ---------------------------------------------------------------------------
# Common
# ---------------------------------------------------------------------------

class ErrorResponse(BaseModel):
    """Unified error response."""

    detail: str
    error_code: str = "INTERNAL_ERROR"


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    preference_backend: str
    redis: Optional[bool] = None  # None when the memory backend is used
    timestamp: datetime


# ---------------------------------------------------------------------------
# Feed filtering
# ---------------------------------------------------------------------------

class FilterRequest(BaseModel):
    """Filter caller-supplied items in process."""

    items: list[IntelItem] = Field(default_factory=list)
    filter: FilterState = DEFAULT_FILTER_STATE
    # Reference time for relative ranges; server time when omitted
    now: Optional[datetime] = None


class FilterResponse(BaseModel):
    items: list[IntelItem]
    total: int
    stats: IntelStats


class PresetListResponse(BaseModel):
    presets: list[FilterPreset]


class FilterStateUpdateRequest(BaseModel):
    """Partial update merged into ``state`` (field names or camelCase keys)."""

    state: FilterState = DEFAULT_FILTER_STATE
    update: dict[str, Any] = Field(default_factory=dict)
    reset: bool = False
    preset_id: Optional[str] = None


class FilterStateResponse(BaseModel):
    state: FilterState
    active_count: int
    is_active: bool
    query_params: dict[str, str]


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------

class FavoritesResponse(BaseModel):
    user_id: str
    item_ids: list[str]


class FavoriteToggleResponse(BaseModel):
    user_id: str
    item_id: str
    favorite: bool


class WorkbenchModeRequest(BaseModel):
    mode: WorkbenchMode


class WorkbenchModeResponse(BaseModel):
    user_id: str
    mode: WorkbenchMode
