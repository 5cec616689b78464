"""
로깅 설정
- get_logger()는 로거만 돌려준다. 핸들러는 붙이지 않는다.
- 콘솔/파일 핸들러는 진입점(API lifespan, 실행 스크립트)에서 setup_logging()으로 한 번 붙인다.
- 파일 로그는 Settings.log_dir 아래에 자정마다 로테이션된다.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

from src.utils.config import Settings, get_settings

LOG_FILE_NAME = "intel_feed.log"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "redis")

_initialized: bool = False


def _formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def _file_handler(log_dir: Path, level: int, backup_days: int) -> TimedRotatingFileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=log_dir / LOG_FILE_NAME,
        when="midnight",
        interval=1,
        backupCount=backup_days,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"
    handler.setLevel(level)
    handler.setFormatter(_formatter())
    return handler


def setup_logging(settings: Optional[Settings] = None) -> None:
    """루트 로거에 콘솔 핸들러와 (log_dir가 설정된 경우) 파일 핸들러를 붙인다.

    두 번째 호출부터는 아무것도 하지 않는다.

    Args:
        settings: 사용할 설정. 생략하면 get_settings() 싱글톤을 쓴다.
            ``log_dir`` 가 빈 문자열이면 파일 로그를 남기지 않는다.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(_formatter())
    root_logger.addHandler(console_handler)

    if settings.log_dir:
        root_logger.addHandler(
            _file_handler(Path(settings.log_dir), level, settings.log_backup_days)
        )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """모듈 로거를 반환한다. 보통 ``__name__`` 을 넘긴다."""
    return logging.getLogger(name)
