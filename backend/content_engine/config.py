"""환경 변수 기반 애플리케이션 설정을 중앙에서 관리합니다."""

from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./content_engine.db"
    SECRET_KEY: str = "change-me-to-a-random-secret-key"
    DEBUG: bool = True
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]
    LOG_LEVEL: str = "INFO"

    # JWT
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # SQLite 동시 쓰기 시 write lock 대기 시간(초)
    SQLITE_BUSY_TIMEOUT: float = 30.0

    # Versions
    VERSION_ALLOCATION_RETRIES: int = 5
    VERSION_PAGE_SIZE: int = 50

    # Releases
    DEFAULT_RELEASE: str = "Basis"
    RELEASE_NAME_MAX_LENGTH: int = 100

    # Purge
    PURGE_BATCH_SIZE: int = 100

    class Config:
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


settings = Settings()
