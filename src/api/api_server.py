"""
FastAPI backend for the market intelligence feed.

Serves the dashboard's feed view: filtering, filter state merging, presets,
upstream feed access and per-user preferences.

이 모듈은 FastAPI 앱 인스턴스, 라이프사이클, 미들웨어, 의존성 주입 허브만
담당한다. REST 엔드포인트는 개별 라우터 모듈에 분산되어 있다.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.intel_endpoints import intel_router, set_intel_deps
from src.api.preference_endpoints import preference_router, set_preference_deps
from src.api.schemas import ErrorResponse, HealthResponse
from src.db.connection import close_redis, ping_redis
from src.intel.feed_client import IntelFeedClient
from src.intel.preference_store import PreferenceStore, build_preference_store
from src.utils.config import get_settings
from src.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Global service registry -- populated via set_dependencies()
# ---------------------------------------------------------------------------

_deps: dict[str, Any] = {}


def set_dependencies(
    feed_client: Optional[IntelFeedClient] = None,
    preference_store: Optional[PreferenceStore] = None,
    preference_key_prefix: Optional[str] = None,
) -> None:
    """Inject runtime dependencies.

    Must be called before the app starts serving requests. Missing
    dependencies cause the corresponding endpoints to return 503.

    Args:
        feed_client: 상위 피드 API 클라이언트.
        preference_store: 즐겨찾기/워크벤치 모드 저장소.
        preference_key_prefix: 선호 저장소 키 접두사.
    """
    _deps.update({
        "feed_client": feed_client,
        "preference_store": preference_store,
    })

    # 각 라우터 모듈에 필요한 의존성을 전달한다.
    set_intel_deps(feed_client=feed_client)
    set_preference_deps(store=preference_store, key_prefix=preference_key_prefix)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[type-arg]
    """Startup / shutdown lifecycle handler.

    set_dependencies()가 먼저 호출되지 않았다면 설정값으로 피드 클라이언트와
    선호 저장소를 만든다. 종료 시 HTTP 클라이언트와 Redis 연결을 닫는다.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info("Intel feed API server starting up")

    if not _deps:
        set_dependencies(
            feed_client=IntelFeedClient(settings=settings),
            preference_store=build_preference_store(settings.preference_backend),
            preference_key_prefix=settings.preference_key_prefix,
        )

    if settings.use_redis_preferences:
        if await ping_redis():
            logger.info("Redis connection verified")
        else:
            logger.error("Redis ping failed -- preference endpoints will error until it recovers")

    yield

    logger.info("Intel feed API server shutting down")
    feed_client = _deps.get("feed_client")
    if feed_client is not None:
        await feed_client.aclose()
    await close_redis()
    _deps.clear()


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Market Intel Feed API",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 대시보드가 다양한 포트에서 접속할 수 있으므로 모든 origin 허용
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Router 등록
# ---------------------------------------------------------------------------

app.include_router(intel_router)
app.include_router(preference_router)


# ---------------------------------------------------------------------------
# Middleware: request logging
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Log every HTTP request and its response time."""
    start = time.monotonic()
    response = await call_next(request)
    elapsed = (time.monotonic() - start) * 1000
    logger.debug(
        "%s %s -> %d (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        elapsed,
    )
    return response


# ---------------------------------------------------------------------------
# Global exception handler
# ---------------------------------------------------------------------------

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch unhandled exceptions and return a unified error response."""
    logger.error(
        "Unhandled error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            detail="내부 서버 오류가 발생했습니다. 서버 로그를 확인하세요.",
            error_code="INTERNAL_ERROR",
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@app.get("/api/health", response_model=HealthResponse, tags=["system"])
async def health() -> HealthResponse:
    """서버 상태를 반환한다. Redis 백엔드일 때만 Redis 연결을 확인한다."""
    settings = get_settings()
    redis_ok = await ping_redis() if settings.use_redis_preferences else None
    return HealthResponse(
        status="ok" if redis_ok is not False else "degraded",
        version=API_VERSION,
        preference_backend=settings.preference_backend,
        redis=redis_ok,
        timestamp=datetime.now(timezone.utc),
    )
