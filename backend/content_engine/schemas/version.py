"""콘텐츠 버전 이력 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ContentVersionOut(BaseModel):
    version_id: int
    content_id: int
    version_number: int
    snapshot: Dict[str, Any]
    release: str
    is_release_end: bool
    change_note: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None


class ContentVersionPage(BaseModel):
    items: List[ContentVersionOut]
    next_cursor: Optional[int] = None


class ElementMoveOut(BaseModel):
    id: str
    from_parent_id: Optional[str] = None
    to_parent_id: Optional[str] = None
    from_position: int
    to_position: int
    delta: int


class ElementDiffOut(BaseModel):
    added: List[Dict[str, Any]]
    removed: List[Dict[str, Any]]
    changed: List[Dict[str, Any]]  # {id, from, to}
    moved: List[ElementMoveOut]


class MetadataDiffOut(BaseModel):
    added: Dict[str, Any]
    removed: Dict[str, Any]
    changed: Dict[str, Dict[str, Any]]


class VersionDiffOut(BaseModel):
    content_id: int
    from_version: int
    to_version: int
    title_changed: bool
    from_title: Optional[str] = None
    to_title: Optional[str] = None
    status_changed: bool
    metadata: MetadataDiffOut
    elements: ElementDiffOut


class ContentRestoreResult(BaseModel):
    message: str
    restored_from: int
    version: ContentVersionOut


class VersionSummaryOut(BaseModel):
    added: int
    removed: int
    modified: int
    title_changed: bool


class VersionHistoryItem(BaseModel):
    version: ContentVersionOut
    creator_name: Optional[str] = None
    diff_summary: VersionSummaryOut


class ReleaseContentOut(BaseModel):
    content_id: int
    title: str
    version: ContentVersionOut
