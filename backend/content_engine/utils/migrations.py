"""버전이 매겨진 스키마/데이터 마이그레이션 단계와 실행기입니다.

적용된 단계는 schema_migration 테이블에 기록되어 다시 실행되지 않는다.
각 단계는 이미 정리된 데이터에 대해 다시 실행해도 아무것도 바꾸지 않는다.
"""

import logging
from typing import Callable, List, Tuple

from sqlalchemy import func, insert, or_, select, update
from sqlalchemy.engine import Engine

from content_engine.config import settings
from content_engine.database import Base
import content_engine.models  # noqa: F401 - 모델 import로 metadata 등록
from content_engine.models.collection import Collection, CollectionRelease
from content_engine.models.content import Content
from content_engine.models.content_version import ContentVersion
from content_engine.models.schema_migration import SchemaMigration
from content_engine.utils.schema_sync import sync_missing_schema_objects

logger = logging.getLogger(__name__)

collection_table = Collection.__table__
release_table = CollectionRelease.__table__
content_table = Content.__table__
version_table = ContentVersion.__table__
migration_table = SchemaMigration.__table__


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
    sync_missing_schema_objects(engine, Base.metadata)


def backfill_releases(engine: Engine) -> None:
    """릴리스 목록이 없는 컬렉션과 릴리스 태그가 없는 버전에 기본 릴리스를 채운다."""
    with engine.begin() as conn:
        has_release = (
            select(release_table.c.release_id)
            .where(release_table.c.collection_id == collection_table.c.collection_id)
            .exists()
        )
        missing = conn.execute(
            select(collection_table.c.collection_id).where(~has_release)
        ).scalars().all()
        for collection_id in missing:
            conn.execute(
                insert(release_table).values(
                    collection_id=collection_id,
                    name=settings.DEFAULT_RELEASE,
                    position=1,
                )
            )

        latest_release = (
            select(release_table.c.name)
            .where(release_table.c.collection_id == collection_table.c.collection_id)
            .order_by(release_table.c.position.desc())
            .limit(1)
            .scalar_subquery()
        )
        opened = conn.execute(
            update(collection_table)
            .where(or_(collection_table.c.current_release.is_(None), collection_table.c.current_release == ""))
            .values(current_release=latest_release)
        ).rowcount

        tagged = conn.execute(
            update(version_table)
            .where(or_(version_table.c.release.is_(None), version_table.c.release == ""))
            .values(release=settings.DEFAULT_RELEASE)
        ).rowcount
        conn.execute(
            update(version_table)
            .where(version_table.c.is_release_end.is_(None))
            .values(is_release_end=False)
        )
    logger.info(
        "[migrate] backfilled releases collections=%s current_release=%s versions=%s",
        len(missing), opened, tagged,
    )


def resync_current_version(engine: Engine) -> None:
    """content.current_version 을 저장된 최대 버전 번호에 맞춘다."""
    stored_max = (
        select(func.coalesce(func.max(version_table.c.version_number), 0))
        .where(version_table.c.content_id == content_table.c.content_id)
        .scalar_subquery()
    )
    with engine.begin() as conn:
        fixed = conn.execute(
            update(content_table)
            .where(or_(content_table.c.current_version.is_(None), content_table.c.current_version != stored_max))
            .values(current_version=stored_max)
        ).rowcount
    logger.info("[migrate] resynced current_version contents=%s", fixed)


MIGRATIONS: List[Tuple[str, Callable[[Engine], None]]] = [
    ("0001_create_tables", create_tables),
    ("0002_backfill_releases", backfill_releases),
    ("0003_resync_current_version", resync_current_version),
]


def applied_migrations(engine: Engine) -> List[str]:
    Base.metadata.create_all(bind=engine, tables=[migration_table])
    with engine.connect() as conn:
        return list(
            conn.execute(select(migration_table.c.migration_id).order_by(migration_table.c.migration_id)).scalars().all()
        )


def run_migrations(engine: Engine) -> List[str]:
    """적용되지 않은 단계를 순서대로 실행하고 새로 적용한 id 목록을 돌려준다."""
    done = set(applied_migrations(engine))
    applied = []
    for migration_id, step in MIGRATIONS:
        if migration_id in done:
            continue
        step(engine)
        with engine.begin() as conn:
            conn.execute(insert(migration_table).values(migration_id=migration_id))
        logger.info("[migrate] applied %s", migration_id)
        applied.append(migration_id)
    if not applied:
        logger.info("[migrate] schema is up to date")
    return applied
