"""릴리스 경계와 현재 버전을 제외한 중간 버전을 정리(purge)하는 서비스입니다.

보존 대상은 저장된 플래그에서 매번 다시 계산된다:
    is_release_end == True 이거나 version_number == content.current_version
따라서 중간에 실패한 purge 는 그대로 다시 실행해도 안전하며, 두 번째 실행은 0건을 지운다.
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from content_engine.config import settings
from content_engine.errors import NotFoundError
from content_engine.models.collection import Collection
from content_engine.models.content import Content
from content_engine.models.content_version import ContentVersion

logger = logging.getLogger(__name__)


def _purgeable(content_ids):
    # 현재 버전은 release-end 여부와 무관하게 항상 남긴다.
    current_version = (
        select(Content.current_version)
        .where(Content.content_id == ContentVersion.content_id)
        .scalar_subquery()
    )
    return (
        ContentVersion.content_id.in_(content_ids),
        ContentVersion.is_release_end.is_(False),
        ContentVersion.version_number != current_version,
    )


class PurgeEngine:
    def __init__(self, db: Session, batch_size: Optional[int] = None):
        self.db = db
        self.batch_size = batch_size or settings.PURGE_BATCH_SIZE

    def _ensure_collection(self, collection_id: int) -> None:
        exists = self.db.query(Collection.collection_id).filter(Collection.collection_id == collection_id).first()
        if not exists:
            raise NotFoundError("컬렉션을 찾을 수 없습니다.")

    def _content_id_batches(self, collection_id: int):
        last_id = 0
        while True:
            ids: List[int] = [
                row[0]
                for row in self.db.query(Content.content_id)
                .filter(Content.collection_id == collection_id, Content.content_id > last_id)
                .order_by(Content.content_id.asc())
                .limit(self.batch_size)
                .all()
            ]
            if not ids:
                return
            yield ids
            last_id = ids[-1]

    def preview_purge(self, collection_id: int) -> int:
        self._ensure_collection(collection_id)
        content_ids = select(Content.content_id).where(Content.collection_id == collection_id)
        return (
            self.db.query(func.count(ContentVersion.version_id))
            .filter(*_purgeable(content_ids))
            .scalar()
        ) or 0

    def purge(self, collection_id: int) -> int:
        self._ensure_collection(collection_id)
        total = 0
        for ids in self._content_id_batches(collection_id):
            total += self._delete(ids)
        logger.info("[purge] collection_id=%s deleted=%s", collection_id, total)
        return total

    def purge_content(self, content_id: int) -> int:
        exists = self.db.query(Content.content_id).filter(Content.content_id == content_id).first()
        if not exists:
            raise NotFoundError("콘텐츠를 찾을 수 없습니다.")
        deleted = self._delete([content_id])
        logger.info("[purge] content_id=%s deleted=%s", content_id, deleted)
        return deleted

    def _delete(self, content_ids: List[int]) -> int:
        # 배치 단위로 커밋한다. 각 배치는 독립적이고 멱등이다.
        result = self.db.execute(
            delete(ContentVersion)
            .where(*_purgeable(content_ids))
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount or 0
