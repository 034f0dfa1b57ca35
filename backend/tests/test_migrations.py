"""버전이 매겨진 마이그레이션 단계 테스트입니다."""

import json
from pathlib import Path
from uuid import uuid4

import pytest
from sqlalchemy import create_engine, insert, select

from content_engine.database import Base
from content_engine.models.collection import Collection, CollectionRelease
from content_engine.models.content import Content
from content_engine.models.content_version import ContentVersion
from content_engine.utils.migrations import MIGRATIONS, applied_migrations, run_migrations


@pytest.fixture
def migration_engine():
    db_path = Path(f"./migrations_{uuid4().hex}.db").resolve()
    engine = create_engine(f"sqlite:///{db_path}")
    yield engine
    engine.dispose()
    if db_path.exists():
        db_path.unlink()


def test_run_migrations_applies_each_step_once(migration_engine):
    applied = run_migrations(migration_engine)

    assert applied == [migration_id for migration_id, _step in MIGRATIONS]
    assert applied_migrations(migration_engine) == applied
    assert run_migrations(migration_engine) == []


def test_backfill_and_resync_legacy_rows(migration_engine):
    Base.metadata.create_all(bind=migration_engine)
    with migration_engine.begin() as conn:
        conn.execute(insert(Collection.__table__).values(collection_id=1, name="Legacy"))
        conn.execute(
            insert(Content.__table__).values(
                content_id=1,
                collection_id=1,
                title="Old",
                metadata={},
                elements=[],
                status="draft",
                current_version=7,
            )
        )
        for number in (1, 2):
            conn.execute(
                insert(ContentVersion.__table__).values(
                    content_id=1,
                    version_number=number,
                    snapshot=json.dumps({"title": "Old"}),
                    release="",
                    is_release_end=False,
                )
            )

    run_migrations(migration_engine)

    with migration_engine.connect() as conn:
        releases = conn.execute(select(CollectionRelease.__table__.c.name, CollectionRelease.__table__.c.position)).all()
        assert [tuple(row) for row in releases] == [("Basis", 1)]
        assert conn.execute(select(Collection.__table__.c.current_release)).scalar() == "Basis"
        tags = conn.execute(select(ContentVersion.__table__.c.release)).scalars().all()
        assert tags == ["Basis", "Basis"]
        assert conn.execute(select(Content.__table__.c.current_version)).scalar() == 2
