"""collection/content/element 계층형 권고 잠금 서비스입니다.

잠금은 수정 전에 호출자가 확인하는 권고형이며 저장 계층이 강제하지 않는다.
대기열이 없으므로 막힌 호출자는 즉시 실패를 받는다. 잠금은 자동 만료되지 않는다.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from content_engine.errors import ConflictError, ForbiddenError, NotFoundError, ResourceLockedError, ValidationError
from content_engine.models.collection import Collection
from content_engine.models.content import Content, ContentElement
from content_engine.models.resource_lock import RESOURCE_TYPES, ResourceLock
from content_engine.models.user import User
from content_engine.utils.permissions import is_admin

logger = logging.getLogger(__name__)

LOCK_REASON_MAX_LENGTH = 500

_BLOCKED_MESSAGES = {
    ("collection", "self"): "컬렉션이 잠겨 있어 수정할 수 없습니다.",
    ("content", "self"): "콘텐츠가 잠겨 있어 수정할 수 없습니다.",
    ("content", "collection"): "상위 컬렉션이 잠겨 있어 콘텐츠를 수정할 수 없습니다.",
    ("element", "self"): "요소가 잠겨 있어 수정할 수 없습니다.",
    ("element", "content"): "상위 콘텐츠가 잠겨 있어 요소를 수정할 수 없습니다.",
    ("element", "collection"): "상위 컬렉션이 잠겨 있어 요소를 수정할 수 없습니다.",
}


@dataclass
class EffectiveLock:
    lock: ResourceLock
    source_level: str  # self/content/collection


def lock_info(lock: ResourceLock) -> Dict[str, Any]:
    return {
        "resource_type": lock.resource_type,
        "resource_id": lock.resource_id,
        "locked_by": lock.locked_by,
        "locked_by_name": lock.holder.name if lock.holder else None,
        "locked_at": lock.locked_at.isoformat() if lock.locked_at else None,
        "reason": lock.reason,
    }


class LockManager:
    def __init__(self, db: Session):
        self.db = db

    def _validate_type(self, resource_type: str) -> None:
        if resource_type not in RESOURCE_TYPES:
            raise ValidationError(f"지원하지 않는 리소스 유형입니다: {resource_type}")

    def _canonical_id(self, resource_type: str, resource_id: str) -> str:
        """잠금 키로 쓰는 id. "01", " 1" 같은 숫자 표기는 "1"로 맞춘다."""
        self._validate_type(resource_type)
        if resource_type == "element":
            return str(resource_id)
        return str(_as_int(resource_id))

    def _hierarchy(self, resource_type: str, resource_id: str) -> List[Tuple[str, str, str]]:
        """(resource_type, resource_id, source_level) 목록. 가까운 단계가 먼저 온다."""
        resource_id = self._canonical_id(resource_type, resource_id)
        if resource_type == "collection":
            exists = self.db.query(Collection.collection_id).filter(
                Collection.collection_id == _as_int(resource_id)
            ).first()
            if not exists:
                raise NotFoundError("컬렉션을 찾을 수 없습니다.")
            return [("collection", resource_id, "self")]

        if resource_type == "content":
            row = self.db.query(Content.collection_id).filter(Content.content_id == _as_int(resource_id)).first()
            if not row:
                raise NotFoundError("콘텐츠를 찾을 수 없습니다.")
            return [
                ("content", resource_id, "self"),
                ("collection", str(row[0]), "collection"),
            ]

        row = (
            self.db.query(ContentElement.content_id, Content.collection_id)
            .join(Content, Content.content_id == ContentElement.content_id)
            .filter(ContentElement.element_id == resource_id)
            .first()
        )
        if not row:
            raise NotFoundError("요소를 찾을 수 없습니다.")
        return [
            ("element", resource_id, "self"),
            ("content", str(row[0]), "content"),
            ("collection", str(row[1]), "collection"),
        ]

    def get_lock(self, resource_type: str, resource_id: str) -> Optional[ResourceLock]:
        resource_id = self._canonical_id(resource_type, resource_id)
        return (
            self.db.query(ResourceLock)
            .filter(
                ResourceLock.resource_type == resource_type,
                ResourceLock.resource_id == resource_id,
            )
            .first()
        )

    def get_effective_lock(
        self,
        resource_type: str,
        resource_id: str,
        actor: Optional[User] = None,
    ) -> Optional[EffectiveLock]:
        levels = self._hierarchy(resource_type, resource_id)
        locks = (
            self.db.query(ResourceLock)
            .filter(or_(*[
                and_(ResourceLock.resource_type == r_type, ResourceLock.resource_id == r_id)
                for r_type, r_id, _level in levels
            ]))
            .all()
        )
        by_key = {(lock.resource_type, lock.resource_id): lock for lock in locks}
        for r_type, r_id, level in levels:
            lock = by_key.get((r_type, r_id))
            if lock is None:
                continue
            # 잠금 보유자 본인은 자신의 잠금에 막히지 않는다.
            if actor is not None and lock.locked_by == actor.user_id:
                continue
            return EffectiveLock(lock=lock, source_level=level)
        return None

    def ensure_modifiable(self, resource_type: str, resource_id: str, actor: Optional[User] = None) -> None:
        effective = self.get_effective_lock(resource_type, resource_id, actor)
        if effective is None:
            return
        lock = effective.lock
        raise ResourceLockedError(
            _BLOCKED_MESSAGES[(resource_type, effective.source_level)],
            resource_type=lock.resource_type,
            resource_id=lock.resource_id,
            locked_by=lock.locked_by,
            locked_at=lock.locked_at,
            reason=lock.reason,
            source_level=effective.source_level,
        )

    def acquire_lock(
        self,
        resource_type: str,
        resource_id: str,
        actor: User,
        reason: Optional[str] = None,
    ) -> ResourceLock:
        resource_id = self._hierarchy(resource_type, resource_id)[0][1]
        if reason is not None and len(reason) > LOCK_REASON_MAX_LENGTH:
            raise ValidationError("잠금 사유가 너무 깁니다.")

        existing = self.get_lock(resource_type, resource_id)
        if existing is not None:
            return self._resolve_existing(existing, actor)

        lock = ResourceLock(
            resource_type=resource_type,
            resource_id=resource_id,
            locked_by=actor.user_id,
            reason=reason,
        )
        self.db.add(lock)
        try:
            self.db.commit()
        except IntegrityError:
            # 동시에 다른 요청이 먼저 잠금을 만들었다.
            self.db.rollback()
            existing = self.get_lock(resource_type, resource_id)
            if existing is None:
                raise
            return self._resolve_existing(existing, actor)
        self.db.refresh(lock)
        logger.info("[lock] acquired %s:%s by user_id=%s", resource_type, resource_id, actor.user_id)
        return lock

    def _resolve_existing(self, existing: ResourceLock, actor: User) -> ResourceLock:
        if existing.locked_by == actor.user_id:
            return existing
        raise ConflictError("이미 다른 사용자가 잠근 리소스입니다.", lock_info=lock_info(existing))

    def release_lock(self, resource_type: str, resource_id: str, actor: User) -> None:
        resource_id = self._canonical_id(resource_type, resource_id)
        lock = self.get_lock(resource_type, resource_id)
        if lock is None:
            return
        if lock.locked_by != actor.user_id and not is_admin(actor):
            raise ForbiddenError("잠금을 건 사용자 또는 관리자만 해제할 수 있습니다.")
        holder_id = lock.locked_by
        self.db.delete(lock)
        self.db.commit()
        logger.info(
            "[lock] released %s:%s by user_id=%s (holder=%s)",
            resource_type, resource_id, actor.user_id, holder_id,
        )


def _as_int(resource_id: str) -> int:
    try:
        return int(resource_id)
    except (TypeError, ValueError):
        raise NotFoundError("리소스를 찾을 수 없습니다.")
