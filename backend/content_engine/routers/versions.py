"""콘텐츠 버전 이력 API 라우터입니다."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from content_engine.database import get_db
from content_engine.schemas.version import (
    ContentVersionOut, ContentVersionPage, VersionDiffOut, VersionHistoryItem, ContentRestoreResult,
)
from content_engine.services import content_service
from content_engine.services.version_service import VersionStore, to_response
from content_engine.middleware.auth_middleware import get_current_user, require_writer
from content_engine.models.user import User

router = APIRouter(prefix="/api/contents/{content_id}/versions", tags=["versions"])


@router.get("", response_model=ContentVersionPage)
def list_versions(
    content_id: int,
    after: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    page = VersionStore(db).list_versions(content_id, after=after, limit=limit)
    return {"items": [to_response(row) for row in page.items], "next_cursor": page.next_cursor}


@router.get("/history", response_model=List[VersionHistoryItem])
def version_history(content_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    history = VersionStore(db).version_history(content_id)
    return [{**item, "version": to_response(item["version"])} for item in history]


@router.get("/compare", response_model=VersionDiffOut)
def compare_versions(
    content_id: int,
    from_version: int = Query(..., alias="from", ge=1),
    to_version: int = Query(..., alias="to", ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return VersionStore(db).compare_versions(content_id, from_version, to_version)


@router.get("/{version_number}", response_model=ContentVersionOut)
def get_version(
    content_id: int,
    version_number: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return to_response(VersionStore(db).get_version(content_id, version_number))


@router.post("/{version_number}/restore", response_model=ContentRestoreResult)
def restore_version(
    content_id: int,
    version_number: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
):
    row = content_service.restore_content(db, content_id, version_number, current_user)
    return {
        "message": f"버전 {version_number}(으)로 복원했습니다.",
        "restored_from": version_number,
        "version": to_response(row),
    }
