"""콘텐츠 버전 저장/조회/비교/복원 기능을 제공하는 도메인 서비스입니다.

Invariants:
    - content 별 version_number 는 1부터 빈틈/중복 없이 할당된다 (purge만 레코드를 지운다).
    - 저장된 snapshot 은 다시 쓰지 않는다. 복원은 항상 새 버전을 앞으로 추가한다.
    - 번호 할당은 content.current_version 원자적 증가 + (content_id, version_number) 유니크 제약으로 보호된다.
"""

import copy
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import func, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from content_engine.config import settings
from content_engine.errors import ConflictError, NotFoundError, ValidationError
from content_engine.models.collection import Collection
from content_engine.models.content import Content
from content_engine.models.content_version import ContentVersion
from content_engine.models.user import User
from content_engine.services.element_index import sync_element_index
from content_engine.utils import element_tree

logger = logging.getLogger(__name__)

content_table = Content.__table__
version_table = ContentVersion.__table__
_SNAPSHOT_FIELDS = ["title", "slug", "status", "meta", "elements"]


@dataclass
class VersionPage:
    items: List[ContentVersion]
    next_cursor: Optional[int]


def build_snapshot(content: Content) -> Dict[str, Any]:
    return copy.deepcopy({
        "title": content.title,
        "slug": content.slug,
        "status": content.status,
        "metadata": content.meta or {},
        "elements": content.elements or [],
    })


def parse_snapshot(row: ContentVersion) -> Dict[str, Any]:
    try:
        return json.loads(row.snapshot or "{}")
    except json.JSONDecodeError:
        return {}


def to_response(row: ContentVersion) -> Dict[str, Any]:
    return {
        "version_id": row.version_id,
        "content_id": row.content_id,
        "version_number": row.version_number,
        "snapshot": parse_snapshot(row),
        "release": row.release,
        "is_release_end": bool(row.is_release_end),
        "change_note": row.change_note,
        "created_by": row.created_by,
        "created_at": row.created_at,
    }


class VersionStore:
    def __init__(self, db: Session):
        self.db = db

    def _get_content(self, content_id: int) -> Content:
        content = self.db.query(Content).filter(Content.content_id == content_id).first()
        if not content:
            raise NotFoundError("콘텐츠를 찾을 수 없습니다.")
        return content

    # 할당 ------------------------------------------------------------------

    def _allocate_number(self, content_id: int) -> int:
        self.db.execute(
            update(content_table)
            .where(content_table.c.content_id == content_id)
            .values(current_version=content_table.c.current_version + 1)
        )
        return self.db.execute(
            select(content_table.c.current_version).where(content_table.c.content_id == content_id)
        ).scalar_one()

    def _current_release(self, collection_id: int) -> str:
        # release 생성과 직렬화: 진행 중인 create_release 가 끝난 뒤의 이름을 읽는다.
        release = self.db.execute(
            select(Collection.current_release)
            .where(Collection.collection_id == collection_id)
            .with_for_update(read=True)
        ).scalar()
        return release or settings.DEFAULT_RELEASE

    def _insert_version(self, values: Dict[str, Any]) -> bool:
        dialect = self.db.get_bind().dialect.name
        if dialect == "sqlite":
            stmt = sqlite.insert(version_table).values(**values).on_conflict_do_nothing(
                index_elements=["content_id", "version_number"]
            )
        elif dialect == "postgresql":
            stmt = postgresql.insert(version_table).values(**values).on_conflict_do_nothing(
                index_elements=["content_id", "version_number"]
            )
        else:
            stmt = insert(version_table).values(**values)
        return self.db.execute(stmt).rowcount == 1

    def _resync_counter(self, content_id: int) -> None:
        stored_max = (
            select(func.coalesce(func.max(version_table.c.version_number), 0))
            .where(version_table.c.content_id == content_id)
            .scalar_subquery()
        )
        self.db.execute(
            update(content_table)
            .where(content_table.c.content_id == content_id)
            .values(current_version=stored_max)
        )

    def create_version(
        self,
        content: Content,
        actor: Optional[User] = None,
        change_note: Optional[str] = None,
    ) -> ContentVersion:
        content_id = content.content_id
        self.db.flush()

        number = None
        snapshot = None
        for attempt in range(1, settings.VERSION_ALLOCATION_RETRIES + 1):
            candidate = self._allocate_number(content_id)
            if snapshot is None:
                # 행 잠금을 잡은 뒤 head 를 다시 읽어 다른 트랜잭션이 먼저 커밋한 필드까지 담는다.
                self.db.refresh(content, attribute_names=_SNAPSHOT_FIELDS)
                snapshot = json.dumps(build_snapshot(content), ensure_ascii=False)
            inserted = self._insert_version({
                "content_id": content_id,
                "version_number": candidate,
                "snapshot": snapshot,
                "release": self._current_release(content.collection_id),
                "is_release_end": False,
                "change_note": change_note,
                "created_by": actor.user_id if actor else None,
            })
            if inserted:
                number = candidate
                break
            logger.warning(
                "[versions] version number collision content_id=%s number=%s attempt=%s",
                content_id, candidate, attempt,
            )
            self._resync_counter(content_id)

        if number is None:
            self.db.rollback()
            raise ConflictError("버전 번호 할당이 반복해서 충돌했습니다. 잠시 후 다시 시도해 주세요.")

        set_committed_value(content, "current_version", number)
        self.db.commit()
        logger.info("[versions] created content_id=%s version=%s note=%s", content_id, number, change_note)
        return self.get_version(content_id, number)

    # 조회 ------------------------------------------------------------------

    def get_version(self, content_id: int, version_number: int) -> ContentVersion:
        row = (
            self.db.query(ContentVersion)
            .filter(
                ContentVersion.content_id == content_id,
                ContentVersion.version_number == version_number,
            )
            .first()
        )
        if not row:
            raise NotFoundError("버전 이력을 찾을 수 없습니다.")
        return row

    def list_versions(self, content_id: int, after: int = 0, limit: Optional[int] = None) -> VersionPage:
        """version_number 오름차순 페이지. next_cursor 를 after 로 넘기면 이어서 조회한다."""
        self._get_content(content_id)
        limit = limit or settings.VERSION_PAGE_SIZE
        if limit < 1 or after < 0:
            raise ValidationError("잘못된 페이지 요청입니다.")
        rows = (
            self.db.query(ContentVersion)
            .filter(
                ContentVersion.content_id == content_id,
                ContentVersion.version_number > after,
            )
            .order_by(ContentVersion.version_number.asc())
            .limit(limit + 1)
            .all()
        )
        items = rows[:limit]
        next_cursor = items[-1].version_number if len(rows) > limit else None
        return VersionPage(items=items, next_cursor=next_cursor)

    def iter_versions(self, content_id: int) -> Iterator[ContentVersion]:
        after = 0
        while True:
            page = self.list_versions(content_id, after=after)
            yield from page.items
            if page.next_cursor is None:
                return
            after = page.next_cursor

    def compare_versions(self, content_id: int, from_version: int, to_version: int) -> Dict[str, Any]:
        source = self.get_version(content_id, from_version)
        target = self.get_version(content_id, to_version)
        before = parse_snapshot(source)
        after = parse_snapshot(target)
        return {
            "content_id": content_id,
            "from_version": from_version,
            "to_version": to_version,
            "title_changed": before.get("title") != after.get("title"),
            "from_title": before.get("title"),
            "to_title": after.get("title"),
            "status_changed": before.get("status") != after.get("status"),
            "metadata": element_tree.diff_metadata(before.get("metadata"), after.get("metadata")),
            "elements": element_tree.diff_elements(before.get("elements") or [], after.get("elements") or []),
        }

    def summarize_version(self, content_id: int, version_number: int) -> Dict[str, Any]:
        row = self.get_version(content_id, version_number)
        previous = (
            self.db.query(ContentVersion)
            .filter(
                ContentVersion.content_id == content_id,
                ContentVersion.version_number < version_number,
            )
            .order_by(ContentVersion.version_number.desc())
            .first()
        )
        return _diff_summary(row, previous)

    def version_history(self, content_id: int) -> List[Dict[str, Any]]:
        """최신순 이력. 작성자 이름과 직전 버전 대비 변경 요약을 포함한다."""
        rows = list(self.iter_versions(content_id))
        creator_ids = {row.created_by for row in rows if row.created_by}
        creators = {}
        if creator_ids:
            creators = {
                user.user_id: user.name
                for user in self.db.query(User).filter(User.user_id.in_(creator_ids)).all()
            }
        history = []
        previous = None
        for row in rows:
            history.append({
                "version": row,
                "creator_name": creators.get(row.created_by),
                "diff_summary": _diff_summary(row, previous),
            })
            previous = row
        history.reverse()
        return history

    # 복원 ------------------------------------------------------------------

    def restore_version(self, content_id: int, version_number: int, actor: Optional[User] = None) -> ContentVersion:
        content = self._get_content(content_id)
        source = self.get_version(content_id, version_number)
        snapshot = parse_snapshot(source)

        content.title = snapshot.get("title") or content.title
        content.slug = snapshot.get("slug", content.slug)
        content.meta = copy.deepcopy(snapshot.get("metadata") or {})
        content.elements = copy.deepcopy(snapshot.get("elements") or [])
        sync_element_index(self.db, content)

        return self.create_version(content, actor, f"Restored to version {version_number}")


def _diff_summary(row: ContentVersion, previous: Optional[ContentVersion]) -> Dict[str, Any]:
    current = parse_snapshot(row)
    if previous is None:
        return {
            "added": len(element_tree.flatten(current.get("elements") or [])),
            "removed": 0,
            "modified": 0,
            "title_changed": False,
        }
    before = parse_snapshot(previous)
    changes = element_tree.diff_elements(before.get("elements") or [], current.get("elements") or [])
    return {
        "added": len(changes["added"]),
        "removed": len(changes["removed"]),
        "modified": len(changes["changed"]),
        "title_changed": before.get("title") != current.get("title"),
    }
