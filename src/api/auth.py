"""
공유 API 키 인증 모듈.

사용자별 상태를 바꾸는 선호 설정 라우터가 사용하는 verify_api_key 의존성을 제공한다.
"""

from __future__ import annotations

from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.utils.config import get_settings

_http_bearer = HTTPBearer(auto_error=False)


async def verify_api_key(
    credentials: HTTPAuthorizationCredentials | None = Security(_http_bearer),
) -> None:
    """Authorization: Bearer <API_SECRET_KEY> 헤더를 검증한다.

    API_SECRET_KEY가 설정된 경우에만 검증을 수행한다.
    설정되지 않은 경우(개발 환경) 모든 요청을 허용한다.

    Raises:
        HTTPException: 토큰이 없거나 올바르지 않은 경우 401을 반환한다.
    """
    secret_key = get_settings().api_secret_key
    if not secret_key:
        return
    if credentials is None or credentials.credentials != secret_key:
        raise HTTPException(
            status_code=401,
            detail="유효하지 않은 API 키입니다. Authorization: Bearer <API_SECRET_KEY> 헤더를 확인하세요.",
        )
