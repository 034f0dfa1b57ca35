"""버전/릴리스/잠금 엔진이 호출자에게 돌려주는 타입별 도메인 예외입니다.

서비스 레이어는 HTTP를 알지 못하고 아래 예외만 발생시킨다.
라우터 계층은 main.py에 등록된 핸들러가 status_code/to_response()로 변환한다.
"""

from datetime import datetime
from typing import Any, Dict, Optional


class ContentEngineError(Exception):
    status_code = 400
    code = "content_engine_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class NotFoundError(ContentEngineError):
    status_code = 404
    code = "not_found"


class ValidationError(ContentEngineError):
    status_code = 422
    code = "validation_error"


class ForbiddenError(ContentEngineError):
    status_code = 403
    code = "forbidden"


class ConflictError(ContentEngineError):
    """중복 릴리스 이름, 버전 번호 할당 충돌, 다른 사용자가 보유한 잠금."""

    status_code = 409
    code = "conflict"

    def __init__(self, message: str, lock_info: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.lock_info = lock_info

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        if self.lock_info is not None:
            body["lock_info"] = self.lock_info
        return body


class ResourceLockedError(ContentEngineError):
    """잠긴 리소스(또는 잠긴 상위 리소스)를 수정하려 할 때 발생한다.

    source_level 은 차단한 잠금의 위치다: self / content / collection.
    """

    status_code = 423
    code = "resource_locked"

    def __init__(
        self,
        message: str,
        *,
        resource_type: str,
        resource_id: str,
        locked_by: int,
        locked_at: Optional[datetime],
        reason: Optional[str],
        source_level: str,
    ):
        super().__init__(message)
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.locked_by = locked_by
        self.locked_at = locked_at
        self.reason = reason
        self.source_level = source_level

    def lock_info(self) -> Dict[str, Any]:
        return {
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "locked_by": self.locked_by,
            "locked_at": self.locked_at.isoformat() if self.locked_at else None,
            "reason": self.reason,
            "source_level": self.source_level,
        }

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        body["lock_info"] = self.lock_info()
        return body
