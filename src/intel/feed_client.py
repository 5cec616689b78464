"""
market-intel 피드 API 클라이언트.

상위 API의 ``GET /market-intel/feed``를 호출하여 응답을 IntelItem 목록으로
정규화한다. 재시도는 하지 않는다. 실패는 IntelFeedError로 올려 보내고
호출 측(API 라우터)에서 502로 변환한다.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import httpx

from src.intel.filter_state import FilterState, to_feed_query
from src.intel.models import IntelItem
from src.intel.normalizer import normalize_feed
from src.utils.config import Settings, get_settings
from src.utils.logger import get_logger

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# 상수 정의
# ---------------------------------------------------------------------------

_FEED_PATH = "/market-intel/feed"

# 응답 본문이 객체일 때 항목 목록이 들어 있을 수 있는 키
_ENVELOPE_KEYS: tuple[str, ...] = ("data", "items", "feed")


class IntelFeedError(Exception):
    """상위 피드 API 호출 실패.

    Attributes:
        status_code: 상위 응답의 HTTP 상태 코드. 연결 실패/타임아웃이면 None.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _extract_entries(payload: Any) -> list[Any]:
    """응답 본문에서 피드 항목 리스트를 꺼낸다.

    Raises:
        IntelFeedError: 리스트를 찾을 수 없는 경우.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in _ENVELOPE_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    raise IntelFeedError("피드 응답 형식이 올바르지 않습니다 (리스트 없음)")


class IntelFeedClient:
    """market-intel 피드 API에 대한 비동기 클라이언트.

    하나의 httpx.AsyncClient를 재사용한다. 종료 시 ``aclose()``를 호출해야 한다.
    테스트에서는 ``transport``에 httpx.MockTransport를 넘긴다.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token: Optional[str] = None,
        default_limit: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.base_url = (base_url or settings.feed_api_base_url).rstrip("/")
        self.default_limit = default_limit or settings.feed_default_limit
        token = settings.feed_api_token if token is None else token

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.feed_api_timeout,
            headers=headers,
            transport=transport,
        )

    async def fetch_feed(
        self,
        filter_state: FilterState,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[IntelItem]:
        """필터 상태에 맞는 피드를 상위 API에서 조회한다.

        Args:
            filter_state: 쿼리 파라미터로 변환할 필터 상태.
            limit: 최대 항목 수. None이면 설정의 기본값을 사용한다.
            now: 상대 기간 계산 기준 시각.

        Returns:
            정규화된 IntelItem 리스트 (상위 응답 순서 유지).

        Raises:
            IntelFeedError: 타임아웃, 연결 실패, 비 2xx 응답, JSON 디코딩 실패 시.
        """
        params = to_feed_query(filter_state, limit=limit or self.default_limit, now=now)

        try:
            resp = await self._client.get(_FEED_PATH, params=params)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.TimeoutException as exc:
            logger.warning("피드 API 타임아웃: %s", exc)
            raise IntelFeedError("피드 API 타임아웃") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("피드 API HTTP 오류 (status=%d): %s", status, exc)
            raise IntelFeedError(f"피드 API 오류 (status={status})", status_code=status) from exc
        except httpx.HTTPError as exc:
            logger.error("피드 API 요청 실패: %s", exc)
            raise IntelFeedError(f"피드 API 요청 실패: {exc}") from exc
        except ValueError as exc:
            logger.error("피드 API 응답 JSON 디코딩 실패: %s", exc)
            raise IntelFeedError(
                "피드 API 응답을 해석할 수 없습니다", status_code=resp.status_code
            ) from exc

        entries = _extract_entries(payload)
        items = normalize_feed(entries)
        logger.info("피드 조회 완료: %d건 (원본 %d건)", len(items), len(entries))
        return items

    async def aclose(self) -> None:
        await self._client.aclose()
