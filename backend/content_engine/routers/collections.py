"""Collection/Release/Purge API 라우터입니다. 요청을 검증하고 서비스 레이어로 위임합니다."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from content_engine.database import get_db
from content_engine.schemas.collection import (
    CollectionCreate, CollectionOut, ReleaseCreate, ReleaseOut, PurgePreviewOut, PurgeResult,
)
from content_engine.schemas.content import ContentCreate, ContentOut
from content_engine.schemas.version import ReleaseContentOut
from content_engine.services import content_service, version_service
from content_engine.services.purge_service import PurgeEngine
from content_engine.services.release_service import ReleaseManager
from content_engine.middleware.auth_middleware import get_current_user, require_admin, require_writer
from content_engine.models.user import User

router = APIRouter(tags=["collections"])


@router.post("/api/collections", response_model=CollectionOut)
def create_collection(
    data: CollectionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
):
    return content_service.create_collection(db, data, current_user)


@router.get("/api/collections/{collection_id}", response_model=CollectionOut)
def get_collection(collection_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return content_service.get_collection(db, collection_id)


@router.get("/api/collections/{collection_id}/releases", response_model=List[ReleaseOut])
def list_releases(collection_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return ReleaseManager(db).list_releases(collection_id)


@router.post("/api/collections/{collection_id}/releases", response_model=ReleaseOut)
def create_release(
    collection_id: int,
    data: ReleaseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
):
    return ReleaseManager(db).create_release(collection_id, data.name, current_user, data.copy_contents)


@router.get("/api/collections/{collection_id}/releases/{release_name}/contents", response_model=List[ReleaseContentOut])
def get_release_contents(
    collection_id: int,
    release_name: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = ReleaseManager(db).get_contents_for_release(collection_id, release_name)
    return [
        {
            "content_id": row["content"].content_id,
            "title": row["content"].title,
            "version": version_service.to_response(row["version"]),
        }
        for row in rows
    ]


@router.get("/api/collections/{collection_id}/contents", response_model=List[ContentOut])
def list_contents(collection_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return content_service.list_contents(db, collection_id)


@router.post("/api/collections/{collection_id}/contents", response_model=ContentOut)
def create_content(
    collection_id: int,
    data: ContentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
):
    return content_service.create_content(db, collection_id, data, current_user)


@router.get("/api/collections/{collection_id}/purge-preview", response_model=PurgePreviewOut)
def preview_purge(
    collection_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    count = PurgeEngine(db).preview_purge(collection_id)
    return PurgePreviewOut(collection_id=collection_id, purgeable_count=count)


@router.post("/api/collections/{collection_id}/purge", response_model=PurgeResult)
def purge(
    collection_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    deleted = PurgeEngine(db).purge(collection_id)
    return PurgeResult(collection_id=collection_id, deleted_count=deleted)
