"""
사용자 선호 설정 API 엔드포인트.

피드 항목 즐겨찾기와 워크벤치 표시 모드(compact/full)를 사용자별로 관리한다.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from src.api.auth import verify_api_key
from src.api.schemas import (
    ErrorResponse,
    FavoritesResponse,
    FavoriteToggleResponse,
    WorkbenchModeRequest,
    WorkbenchModeResponse,
)
from src.intel.preference_store import (
    FavoritesService,
    PreferenceStore,
    WorkbenchModeService,
)
from src.utils.logger import get_logger

logger = get_logger(__name__)

preference_router = APIRouter(
    prefix="/api/preferences",
    tags=["preferences"],
    dependencies=[Depends(verify_api_key)],
)

# ---------------------------------------------------------------------------
# 의존성 레지스트리 -- set_preference_deps() 호출로 주입된다.
# ---------------------------------------------------------------------------

_store: Optional[PreferenceStore] = None
_key_prefix: str = "intel:pref:"


def set_preference_deps(
    store: Optional[PreferenceStore] = None,
    key_prefix: Optional[str] = None,
) -> None:
    """선호 설정 엔드포인트에 필요한 의존성을 주입한다.

    Args:
        store: 선호 저장소 (메모리 또는 Redis).
        key_prefix: 저장소 키 접두사. None이면 기존 값을 유지한다.
    """
    global _store, _key_prefix
    _store = store
    if key_prefix is not None:
        _key_prefix = key_prefix


def get_preference_store() -> PreferenceStore:
    """주입된 선호 저장소를 반환한다.

    Raises:
        HTTPException: 저장소가 주입되지 않은 경우 503을 반환한다.
    """
    if _store is None:
        raise HTTPException(status_code=503, detail="선호 저장소가 초기화되지 않았습니다.")
    return _store


# ---------------------------------------------------------------------------
# 즐겨찾기
# ---------------------------------------------------------------------------


@preference_router.get("/{user_id}/favorites", response_model=FavoritesResponse)
async def list_favorites(
    user_id: str,
    store: PreferenceStore = Depends(get_preference_store),
) -> FavoritesResponse:
    """사용자의 즐겨찾기 항목 ID 목록을 반환한다."""
    service = FavoritesService(store, user_id, key_prefix=_key_prefix)
    return FavoritesResponse(user_id=user_id, item_ids=await service.list_favorites())


@preference_router.post(
    "/{user_id}/favorites/{item_id}",
    response_model=FavoriteToggleResponse,
    responses={503: {"model": ErrorResponse}},
)
async def toggle_favorite(
    user_id: str,
    item_id: str,
    store: PreferenceStore = Depends(get_preference_store),
) -> FavoriteToggleResponse:
    """즐겨찾기를 토글하고 토글 후 상태를 반환한다."""
    service = FavoritesService(store, user_id, key_prefix=_key_prefix)
    favorite = await service.toggle_favorite(item_id)
    return FavoriteToggleResponse(user_id=user_id, item_id=item_id, favorite=favorite)


# ---------------------------------------------------------------------------
# 워크벤치 모드
# ---------------------------------------------------------------------------


@preference_router.get("/{user_id}/workbench-mode", response_model=WorkbenchModeResponse)
async def get_workbench_mode(
    user_id: str,
    store: PreferenceStore = Depends(get_preference_store),
) -> WorkbenchModeResponse:
    """워크벤치 표시 모드를 반환한다. 저장된 값이 없으면 compact."""
    service = WorkbenchModeService(store, user_id, key_prefix=_key_prefix)
    return WorkbenchModeResponse(user_id=user_id, mode=await service.get_mode())


@preference_router.put("/{user_id}/workbench-mode", response_model=WorkbenchModeResponse)
async def set_workbench_mode(
    user_id: str,
    body: WorkbenchModeRequest,
    store: PreferenceStore = Depends(get_preference_store),
) -> WorkbenchModeResponse:
    """워크벤치 표시 모드를 저장한다. compact/full 외의 값은 422."""
    service = WorkbenchModeService(store, user_id, key_prefix=_key_prefix)
    mode = await service.set_mode(body.mode)
    logger.info("워크벤치 모드 변경: user=%s mode=%s", user_id, mode.value)
    return WorkbenchModeResponse(user_id=user_id, mode=mode)
