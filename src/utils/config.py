"""
프로젝트 설정 관리
.env 파일에서 환경변수를 로드하여 타입-안전한 설정 객체 제공
"""
from pydantic import computed_field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """애플리케이션 전체 설정을 관리하는 클래스."""

    # 상위 market-intel API (정보 피드 원본)
    feed_api_base_url: str = "http://localhost:3000/api"
    feed_api_timeout: float = 15.0
    feed_api_token: str = ""  # 비어 있으면 Authorization 헤더를 보내지 않는다
    feed_default_limit: int = 100

    # Redis (즐겨찾기 / 워크벤치 모드 저장소)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str = ""

    # 선호 저장소 백엔드: "memory" 또는 "redis"
    preference_backend: str = "memory"
    preference_key_prefix: str = "intel:pref:"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_secret_key: str = ""  # 비어 있으면 선호 설정 API 인증을 건너뛴다 (개발 환경)

    # 로깅 (log_dir는 작업 디렉토리 기준, 빈 문자열이면 파일 로그를 끈다)
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_backup_days: int = 30

    @computed_field
    @property
    def use_redis_preferences(self) -> bool:
        """선호 저장소로 Redis를 사용하는지 여부를 반환한다."""
        return self.preference_backend.lower() == "redis"

    @property
    def redis_url(self) -> str:
        """Redis 연결 URL."""
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}"
        return f"redis://{self.redis_host}:{self.redis_port}"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


_settings: Settings | None = None


def get_settings() -> Settings:
    """Settings 싱글톤 인스턴스를 반환한다."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
