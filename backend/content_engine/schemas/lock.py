"""리소스 잠금 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LockRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class LockOut(BaseModel):
    resource_type: str
    resource_id: str
    locked_by: int
    locked_at: Optional[datetime] = None
    reason: Optional[str] = None

    model_config = {"from_attributes": True}


class LockStatusOut(BaseModel):
    resource_type: str
    resource_id: str
    is_locked: bool
    source_level: Optional[str] = None
    lock: Optional[LockOut] = None
