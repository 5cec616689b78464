#!/usr/bin/env python3
"""
정보 피드 API 서버 시작 스크립트.

설정값으로 피드 클라이언트와 선호 저장소를 만든 뒤 set_dependencies()를
호출하여 uvicorn을 시작한다.

uvicorn의 lifespan 이벤트 내에서 의존성을 초기화하므로,
httpx/Redis 클라이언트가 동일한 이벤트 루프 내에서 올바르게 작동한다.

사용법:
    .venv/bin/python scripts/start_feed_server.py
    # 또는 포트 변경:
    API_PORT=8080 .venv/bin/python scripts/start_feed_server.py
"""

from __future__ import annotations

import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# 프로젝트 루트를 sys.path에 추가한다.
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(_PROJECT_ROOT))
os.chdir(_PROJECT_ROOT)

from dotenv import load_dotenv

# 호스트에서 직접 실행하므로 항상 .env 파일을 로드한다.
load_dotenv()

import uvicorn
from fastapi import FastAPI

from src.utils.config import get_settings
from src.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


async def _init_dependencies() -> None:
    """피드 클라이언트와 선호 저장소를 초기화하고 set_dependencies()를 호출한다.

    이 함수는 반드시 uvicorn의 이벤트 루프 내에서 호출되어야 한다.
    """
    settings = get_settings()

    # ------------------------------------------------------------------
    # 1. Feed client
    # ------------------------------------------------------------------
    logger.info("[1/2] Initializing feed client...")
    from src.intel.feed_client import IntelFeedClient

    feed_client = IntelFeedClient(settings=settings)
    logger.info("  Feed client initialized (base_url=%s).", feed_client.base_url)

    # ------------------------------------------------------------------
    # 2. Preference store
    # ------------------------------------------------------------------
    logger.info("[2/2] Initializing preference store...")
    from src.intel.preference_store import build_preference_store

    preference_store = build_preference_store(settings.preference_backend)

    # ------------------------------------------------------------------
    # Inject all dependencies into the API server
    # ------------------------------------------------------------------
    logger.info("Injecting dependencies into API server...")
    from src.api.api_server import set_dependencies

    set_dependencies(
        feed_client=feed_client,
        preference_store=preference_store,
        preference_key_prefix=settings.preference_key_prefix,
    )
    logger.info("All dependencies injected. Feed server is ready.")


def main() -> None:
    """정보 피드 API 서버를 시작한다."""
    settings = get_settings()
    setup_logging(settings)

    # 원본 api_server.app의 lifespan을 래핑하여 의존성 초기화를 추가한다.
    from src.api.api_server import app as api_app

    original_lifespan = api_app.router.lifespan_context

    @asynccontextmanager
    async def feed_lifespan(app: FastAPI):
        """의존성 초기화 + 원본 lifespan을 합친 라이프사이클 핸들러이다."""
        await _init_dependencies()
        async with original_lifespan(app):
            yield

    api_app.router.lifespan_context = feed_lifespan

    logger.info("=" * 60)
    logger.info("  Intel Feed Server Starting")
    logger.info("  Port: %d", settings.api_port)
    logger.info("  Upstream: %s", settings.feed_api_base_url)
    logger.info("  Preference backend: %s", settings.preference_backend)
    if settings.use_redis_preferences:
        logger.info("  Redis Host: %s", settings.redis_host)
    logger.info("=" * 60)

    # uvicorn에 app 객체를 직접 전달한다 (import 문자열 대신).
    uvicorn.run(
        api_app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
