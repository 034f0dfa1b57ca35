"""동시 버전 생성과 릴리스 생성이 겹칠 때 번호와 릴리스 태그가 일관적인지 검증합니다."""

import threading
from concurrent.futures import ThreadPoolExecutor

from content_engine.models.content import Content
from content_engine.models.content_version import ContentVersion
from content_engine.services.release_service import ReleaseManager
from content_engine.services.version_service import VersionStore, parse_snapshot

WRITERS = 50


def test_concurrent_create_version_is_gapless(db, session_factory, seed_content):
    content_id = seed_content.content_id
    db.close()

    def write(index):
        session = session_factory()
        try:
            content = session.get(Content, content_id)
            row = VersionStore(session).create_version(content, None, f"writer {index}")
            return row.version_number
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=8) as pool:
        numbers = list(pool.map(write, range(WRITERS)))

    assert sorted(numbers) == list(range(2, WRITERS + 2))

    session = session_factory()
    try:
        stored = [
            row[0]
            for row in session.query(ContentVersion.version_number)
            .filter(ContentVersion.content_id == content_id)
            .order_by(ContentVersion.version_number)
            .all()
        ]
        assert stored == list(range(1, WRITERS + 2))
        assert session.get(Content, content_id).current_version == WRITERS + 1
    finally:
        session.close()


def test_counter_drift_is_resynced(db, seed_content):
    # current_version 이 저장된 최대 번호보다 뒤처져 있으면 충돌 후 다시 맞춘다
    content_id = seed_content.content_id
    db.query(Content).filter(Content.content_id == content_id).update({"current_version": 0})
    db.commit()

    content = db.get(Content, content_id)
    row = VersionStore(db).create_version(content, None, "after drift")

    assert row.version_number == 2
    assert db.get(Content, content_id).current_version == 2


def test_release_during_concurrent_writes_splits_tags(db, session_factory, seed_collection, seed_content):
    collection_id = seed_collection.collection_id
    content_id = seed_content.content_id
    db.close()

    done = []
    done_lock = threading.Lock()
    halfway = threading.Event()

    def write(index):
        session = session_factory()
        try:
            content = session.get(Content, content_id)
            VersionStore(session).create_version(content, None, f"writer {index}")
        finally:
            session.close()
        with done_lock:
            done.append(index)
            if len(done) >= WRITERS // 2:
                halfway.set()

    def cut_release():
        halfway.wait(timeout=30)
        session = session_factory()
        try:
            ReleaseManager(session).create_release(collection_id, "v1")
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=9) as pool:
        futures = [pool.submit(write, index) for index in range(WRITERS)]
        futures.append(pool.submit(cut_release))
        for future in futures:
            future.result()

    session = session_factory()
    try:
        rows = (
            session.query(ContentVersion)
            .filter(ContentVersion.content_id == content_id)
            .order_by(ContentVersion.version_number)
            .all()
        )
        assert [row.version_number for row in rows] == list(range(1, WRITERS + 2))

        ends = [row.version_number for row in rows if row.is_release_end]
        assert len(ends) == 1
        release_end = ends[0]
        for row in rows:
            expected = "Basis" if row.version_number <= release_end else "v1"
            assert row.release == expected, (row.version_number, row.release, release_end)
    finally:
        session.close()


def test_snapshot_includes_fields_committed_by_another_session(db, session_factory, seed_content):
    content_id = seed_content.content_id
    db.close()

    first = session_factory()
    second = session_factory()
    try:
        stale = first.get(Content, content_id)
        assert stale.slug == "welcome"

        other = second.get(Content, content_id)
        other.slug = "welcome-renamed"
        VersionStore(second).create_version(other, None, "slug changed")

        stale.title = "Welcome back"
        row = VersionStore(first).create_version(stale, None, "title changed")

        snapshot = parse_snapshot(row)
        assert snapshot["title"] == "Welcome back"
        assert snapshot["slug"] == "welcome-renamed"
        assert row.version_number == 3
    finally:
        first.close()
        second.close()
