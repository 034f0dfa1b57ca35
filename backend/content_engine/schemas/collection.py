"""Collection/Release 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class CollectionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class ReleaseOut(BaseModel):
    name: str
    position: int
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CollectionOut(BaseModel):
    collection_id: int
    name: str
    current_release: Optional[str] = None
    releases: List[ReleaseOut] = []
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ReleaseCreate(BaseModel):
    name: str
    copy_contents: bool = False


class PurgePreviewOut(BaseModel):
    collection_id: int
    purgeable_count: int


class PurgeResult(BaseModel):
    collection_id: int
    deleted_count: int
