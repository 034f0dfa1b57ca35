"""리소스 잠금 API 라우터입니다."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from content_engine.database import get_db
from content_engine.schemas.lock import LockOut, LockRequest, LockStatusOut
from content_engine.services.lock_service import LockManager
from content_engine.middleware.auth_middleware import get_current_user, require_writer
from content_engine.models.user import User

router = APIRouter(prefix="/api/locks", tags=["locks"])


@router.get("/{resource_type}/{resource_id}", response_model=LockStatusOut)
def get_lock_status(
    resource_type: str,
    resource_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    effective = LockManager(db).get_effective_lock(resource_type, resource_id)
    return LockStatusOut(
        resource_type=resource_type,
        resource_id=resource_id,
        is_locked=effective is not None,
        source_level=effective.source_level if effective else None,
        lock=LockOut.model_validate(effective.lock) if effective else None,
    )


@router.post("/{resource_type}/{resource_id}", response_model=LockOut)
def acquire_lock(
    resource_type: str,
    resource_id: str,
    data: Optional[LockRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
):
    reason = data.reason if data else None
    return LockManager(db).acquire_lock(resource_type, resource_id, current_user, reason)


@router.delete("/{resource_type}/{resource_id}")
def release_lock(
    resource_type: str,
    resource_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_writer),
):
    LockManager(db).release_lock(resource_type, resource_id, current_user)
    return {"message": "잠금이 해제되었습니다."}
