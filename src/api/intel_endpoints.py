"""
정보 피드 필터 API 엔드포인트.

대시보드의 피드 화면에서 호출한다. 필터 상태 병합, 프리셋 조회,
호출 측이 보낸 항목의 필터링, 상위 market-intel 피드 조회 후 필터링을 제공한다.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from src.api.schemas import (
    ErrorResponse,
    FilterRequest,
    FilterResponse,
    FilterStateResponse,
    FilterStateUpdateRequest,
    PresetListResponse,
)
from src.intel.feed_client import IntelFeedClient, IntelFeedError
from src.intel.feed_filter import filter_intel_items
from src.intel.filter_state import (
    BUILT_IN_PRESETS,
    apply_filter_update,
    apply_preset,
    count_active_filters,
    from_query_params,
    get_preset,
    is_filter_active,
    reset_filter_state,
    to_query_params,
)
from src.intel.stats import compute_intel_stats
from src.utils.logger import get_logger

logger = get_logger(__name__)

intel_router = APIRouter(prefix="/api/intel", tags=["intel"])

# 피드 조회 최대 건수
_MAX_FEED_LIMIT: int = 500

# ---------------------------------------------------------------------------
# 의존성 레지스트리 -- set_intel_deps() 호출로 주입된다.
# ---------------------------------------------------------------------------

_feed_client: Optional[IntelFeedClient] = None


def set_intel_deps(feed_client: Optional[IntelFeedClient] = None) -> None:
    """피드 엔드포인트에 필요한 의존성을 주입한다.

    api_server.py의 set_dependencies()에서 호출한다.

    Args:
        feed_client: 상위 피드 API 클라이언트.
    """
    global _feed_client
    _feed_client = feed_client


def get_feed_client() -> IntelFeedClient:
    """주입된 피드 클라이언트를 반환한다.

    Raises:
        HTTPException: 클라이언트가 주입되지 않은 경우 503을 반환한다.
    """
    if _feed_client is None:
        raise HTTPException(status_code=503, detail="피드 클라이언트가 초기화되지 않았습니다.")
    return _feed_client


def _query_multi_dict(request: Request) -> dict[str, Any]:
    """반복 키를 보존한 쿼리 파라미터 딕셔너리를 만든다."""
    params: dict[str, Any] = {}
    for key, value in request.query_params.multi_items():
        params.setdefault(key, []).append(value)
    return params


# ---------------------------------------------------------------------------
# 엔드포인트
# ---------------------------------------------------------------------------


@intel_router.post("/filter", response_model=FilterResponse)
async def filter_items(body: FilterRequest) -> FilterResponse:
    """요청 본문의 항목을 필터 상태로 걸러서 반환한다.

    입력 순서를 유지하며, 통계는 필터링된 항목 기준으로 계산한다.
    """
    now = body.now or datetime.now(timezone.utc)
    items = filter_intel_items(body.items, body.filter, now=now)
    return FilterResponse(
        items=items,
        total=len(items),
        stats=compute_intel_stats(items, now=now),
    )


@intel_router.get(
    "/feed",
    response_model=FilterResponse,
    responses={
        400: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def get_feed(
    request: Request,
    limit: Optional[int] = Query(default=None, ge=1, le=_MAX_FEED_LIMIT),
    client: IntelFeedClient = Depends(get_feed_client),
) -> Any:
    """쿼리 파라미터의 필터 상태로 상위 피드를 조회하고 필터링한다.

    상위 API가 일부 차원(수집 지점 등)을 무시할 수 있으므로
    받은 항목에 같은 필터를 다시 적용한다.

    Raises:
        HTTPException 400: 필터 파라미터가 올바르지 않은 경우.
    """
    try:
        state = from_query_params(_query_multi_dict(request))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"잘못된 필터 파라미터: {exc}") from exc

    now = datetime.now(timezone.utc)
    try:
        fetched = await client.fetch_feed(state, limit=limit, now=now)
    except IntelFeedError as exc:
        logger.error("피드 조회 실패 (upstream status=%s): %s", exc.status_code, exc)
        return JSONResponse(
            status_code=502,
            content=ErrorResponse(
                detail=f"상위 피드 API 호출에 실패했습니다: {exc}",
                error_code="UPSTREAM_ERROR",
            ).model_dump(),
        )

    items = filter_intel_items(fetched, state, now=now)
    return FilterResponse(
        items=items,
        total=len(items),
        stats=compute_intel_stats(items, now=now),
    )


@intel_router.get("/presets", response_model=PresetListResponse)
async def list_presets() -> PresetListResponse:
    """기본 제공 필터 프리셋 목록을 반환한다."""
    return PresetListResponse(presets=BUILT_IN_PRESETS)


@intel_router.post(
    "/filter-state",
    response_model=FilterStateResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_filter_state(body: FilterStateUpdateRequest) -> FilterStateResponse:
    """필터 상태에 부분 업데이트를 병합한다.

    적용 순서: reset 또는 preset_id로 기준 상태를 정한 뒤 update를 병합한다.

    Raises:
        HTTPException 404: 존재하지 않는 프리셋 ID.
        HTTPException 400: 알 수 없는 필드 또는 잘못된 값.
    """
    state = body.state
    if body.reset:
        state = reset_filter_state()
    if body.preset_id is not None:
        preset = get_preset(body.preset_id)
        if preset is None:
            raise HTTPException(status_code=404, detail=f"프리셋을 찾을 수 없습니다: {body.preset_id}")
        state = apply_preset(preset)

    if body.update:
        try:
            state = apply_filter_update(state, body.update)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    return FilterStateResponse(
        state=state,
        active_count=count_active_filters(state),
        is_active=is_filter_active(state),
        query_params=to_query_params(state),
    )
