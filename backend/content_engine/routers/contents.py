"""Content/Element API 라우터입니다. 변경 요청은 content_service 워크플로우로 위임합니다."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Any, Dict
from content_engine.database import get_db
from content_engine.schemas.content import ContentOut, ContentUpdate, ElementCreate, ElementUpdate, ElementMove
from content_engine.services import content_service
from content_engine.middleware.auth_middleware import get_current_user, require_writer
from content_engine.models.user import User

router = APIRouter(prefix="/api/contents", tags=["contents"])


@router.get("/{content_id}", response_model=ContentOut)
def get_content(content_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return content_service.get_content(db, content_id)


@router.put("/{content_id}", response_model=ContentOut)
def update_content(
    content_id: int,
    data: ContentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
):
    return content_service.update_content(db, content_id, data, current_user)


@router.post("/{content_id}/publish", response_model=ContentOut)
def publish_content(
    content_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
):
    return content_service.publish_content(db, content_id, current_user)


@router.post("/{content_id}/unpublish", response_model=ContentOut)
def unpublish_content(
    content_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
):
    return content_service.unpublish_content(db, content_id, current_user)


@router.post("/{content_id}/archive", response_model=ContentOut)
def archive_content(
    content_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
):
    return content_service.archive_content(db, content_id, current_user)


@router.post("/{content_id}/elements")
def add_element(
    content_id: int,
    data: ElementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
) -> Dict[str, Any]:
    return content_service.add_element(db, content_id, data, current_user)


@router.put("/{content_id}/elements/{element_id}")
def update_element(
    content_id: int,
    element_id: str,
    data: ElementUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
) -> Dict[str, Any]:
    return content_service.update_element(db, content_id, element_id, data, current_user)


@router.delete("/{content_id}/elements/{element_id}")
def delete_element(
    content_id: int,
    element_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
):
    content_service.delete_element(db, content_id, element_id, current_user)
    return {"message": "삭제되었습니다."}


@router.post("/{content_id}/elements/{element_id}/move", response_model=ContentOut)
def move_element(
    content_id: int,
    element_id: str,
    data: ElementMove,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
):
    return content_service.move_element(db, content_id, element_id, data, current_user)
