"""Content/Element 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime


class ContentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    slug: Optional[str] = None
    metadata: Dict[str, Any] = {}
    elements: List[Dict[str, Any]] = []


class ContentUpdate(BaseModel):
    title: Optional[str] = None
    slug: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    elements: Optional[List[Dict[str, Any]]] = None
    change_note: Optional[str] = Field(default=None, max_length=500)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("title must not be blank")
        return v


class ContentOut(BaseModel):
    content_id: int
    collection_id: int
    title: str
    slug: Optional[str] = None
    metadata: Dict[str, Any] = Field(default={}, validation_alias="meta")
    elements: List[Dict[str, Any]] = []
    status: str
    current_version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ElementCreate(BaseModel):
    id: Optional[str] = Field(default=None, max_length=64)
    type: str = "text"
    data: Dict[str, Any] = {}
    children: List[Dict[str, Any]] = []
    parent_id: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=0)


class ElementUpdate(BaseModel):
    type: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class ElementMove(BaseModel):
    parent_id: Optional[str] = None
    position: int = Field(ge=0)
