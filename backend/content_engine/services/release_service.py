"""컬렉션 단위 릴리스(마일스톤) 생성과 릴리스별 콘텐츠 조회를 담당하는 서비스입니다.

release 생성은 컬렉션 행의 쓰기 잠금을 먼저 잡아 컬렉션 단위로 직렬화된다.
생성 시점의 각 콘텐츠 최신 버전이 is_release_end 로 표시되어 purge 대상에서 보호된다.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from content_engine.config import settings
from content_engine.errors import ConflictError, NotFoundError, ValidationError
from content_engine.models.collection import Collection, CollectionRelease
from content_engine.models.content import Content
from content_engine.models.content_version import ContentVersion
from content_engine.models.user import User
from content_engine.services.version_service import VersionStore

logger = logging.getLogger(__name__)


def to_response(row: CollectionRelease) -> Dict[str, Any]:
    return {
        "name": row.name,
        "position": row.position,
        "created_by": row.created_by,
        "created_at": row.created_at,
    }


class ReleaseManager:
    def __init__(self, db: Session, versions: Optional[VersionStore] = None):
        self.db = db
        self.versions = versions or VersionStore(db)

    def _get_collection(self, collection_id: int) -> Collection:
        collection = self.db.query(Collection).filter(Collection.collection_id == collection_id).first()
        if not collection:
            raise NotFoundError("컬렉션을 찾을 수 없습니다.")
        return collection

    def _validate_name(self, name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("릴리스 이름을 입력해 주세요.")
        if len(name) > settings.RELEASE_NAME_MAX_LENGTH:
            raise ValidationError(f"릴리스 이름은 {settings.RELEASE_NAME_MAX_LENGTH}자 이하로 입력해 주세요.")
        return name

    def _lock_collection(self, collection_id: int) -> None:
        # 첫 쓰기로 컬렉션 행을 잠가 같은 컬렉션의 release 생성과 버전 태깅을 직렬화한다.
        self.db.execute(
            update(Collection.__table__)
            .where(Collection.__table__.c.collection_id == collection_id)
            .values(updated_at=func.now())
        )

    def list_releases(self, collection_id: int) -> List[CollectionRelease]:
        self._get_collection(collection_id)
        return (
            self.db.query(CollectionRelease)
            .filter(CollectionRelease.collection_id == collection_id)
            .order_by(CollectionRelease.position.asc())
            .all()
        )

    def release_exists(self, collection_id: int, name: str) -> bool:
        return (
            self.db.query(CollectionRelease.release_id)
            .filter(
                CollectionRelease.collection_id == collection_id,
                CollectionRelease.name == name,
            )
            .first()
            is not None
        )

    def initialize_collection_release(self, collection: Collection, actor: Optional[User] = None) -> None:
        if collection.current_release:
            return
        self.db.add(
            CollectionRelease(
                collection_id=collection.collection_id,
                name=settings.DEFAULT_RELEASE,
                position=1,
                created_by=actor.user_id if actor else None,
            )
        )
        collection.current_release = settings.DEFAULT_RELEASE

    def _mark_release_ends(self, collection_id: int) -> int:
        latest = (
            select(
                ContentVersion.content_id.label("content_id"),
                func.max(ContentVersion.version_number).label("version_number"),
            )
            .join(Content, Content.content_id == ContentVersion.content_id)
            .where(Content.collection_id == collection_id)
            .group_by(ContentVersion.content_id)
            .subquery()
        )
        # UPDATE 대상 테이블과 같은 테이블을 읽으므로 자동 correlation 을 끈다.
        version_ids = (
            select(ContentVersion.version_id)
            .join(
                latest,
                (ContentVersion.content_id == latest.c.content_id)
                & (ContentVersion.version_number == latest.c.version_number),
            )
            .correlate(None)
        )
        result = self.db.execute(
            update(ContentVersion.__table__)
            .where(ContentVersion.__table__.c.version_id.in_(version_ids))
            .values(is_release_end=True)
        )
        return result.rowcount

    def create_release(
        self,
        collection_id: int,
        name: str,
        actor: Optional[User] = None,
        copy_contents: bool = False,
    ) -> CollectionRelease:
        name = self._validate_name(name)
        self._get_collection(collection_id)

        self._lock_collection(collection_id)
        if self.release_exists(collection_id, name):
            self.db.rollback()
            raise ConflictError(f"이미 존재하는 릴리스 이름입니다: {name}")

        marked = self._mark_release_ends(collection_id)

        collection = (
            self.db.query(Collection)
            .filter(Collection.collection_id == collection_id)
            .populate_existing()
            .one()
        )
        last_position = (
            self.db.query(func.coalesce(func.max(CollectionRelease.position), 0))
            .filter(CollectionRelease.collection_id == collection_id)
            .scalar()
        )
        release = CollectionRelease(
            collection_id=collection_id,
            name=name,
            position=last_position + 1,
            created_by=actor.user_id if actor else None,
        )
        self.db.add(release)
        previous = collection.current_release
        collection.current_release = name
        self.db.commit()
        self.db.refresh(release)
        logger.info(
            "[release] collection_id=%s closed=%s opened=%s release_end_marked=%s",
            collection_id, previous, name, marked,
        )

        if copy_contents:
            self._copy_contents_to_release(collection_id, name, actor)
        return release

    def _copy_contents_to_release(self, collection_id: int, name: str, actor: Optional[User]) -> None:
        contents = (
            self.db.query(Content)
            .filter(Content.collection_id == collection_id, Content.current_version > 0)
            .order_by(Content.content_id.asc())
            .all()
        )
        for content in contents:
            self.versions.create_version(content, actor, f"Copied to release: {name}")

    def get_content_for_release(self, content_id: int, release: str) -> Optional[ContentVersion]:
        """해당 릴리스의 release-end 버전, 없으면 그 릴리스에서의 최신 버전."""
        base = self.db.query(ContentVersion).filter(
            ContentVersion.content_id == content_id,
            ContentVersion.release == release,
        )
        row = base.filter(ContentVersion.is_release_end.is_(True)).order_by(
            ContentVersion.version_number.desc()
        ).first()
        if row is None:
            row = base.order_by(ContentVersion.version_number.desc()).first()
        return row

    def get_contents_for_release(self, collection_id: int, release: str) -> List[Dict[str, Any]]:
        self._get_collection(collection_id)
        if not self.release_exists(collection_id, release):
            raise NotFoundError("릴리스를 찾을 수 없습니다.")
        results = []
        contents = (
            self.db.query(Content)
            .filter(Content.collection_id == collection_id)
            .order_by(Content.content_id.asc())
            .all()
        )
        for content in contents:
            version = self.get_content_for_release(content.content_id, release)
            if version is not None:
                results.append({"content": content, "version": version})
        return results
