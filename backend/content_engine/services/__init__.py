"""서비스 레이어 패키지 초기화 모듈입니다."""

from content_engine.services import (
    auth_service,
    element_index,
    version_service,
    lock_service,
    release_service,
    purge_service,
    content_service,
)
