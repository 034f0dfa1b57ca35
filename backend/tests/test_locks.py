"""collection/content/element 계층형 잠금 서비스 테스트입니다."""

import copy

import pytest

from content_engine.errors import ConflictError, ForbiddenError, NotFoundError, ResourceLockedError, ValidationError
from content_engine.models.resource_lock import ResourceLock
from content_engine.schemas.content import ContentCreate, ContentUpdate, ElementCreate, ElementUpdate
from content_engine.services import content_service
from content_engine.services.lock_service import LockManager


def test_content_lock_blocks_other_editor(db, seed_users, seed_content):
    a, b = seed_users["editor"], seed_users["editor_b"]
    cid = seed_content.content_id
    LockManager(db).acquire_lock("content", cid, a, reason="editing")

    with pytest.raises(ResourceLockedError) as exc:
        content_service.update_content(db, cid, ContentUpdate(title="B"), b)
    assert exc.value.source_level == "self"
    assert exc.value.locked_by == a.user_id
    assert exc.value.reason == "editing"

    with pytest.raises(ResourceLockedError) as exc:
        content_service.update_element(db, cid, "p1", ElementUpdate(data={"text": "B"}), b)
    assert exc.value.source_level == "content"
    assert exc.value.resource_type == "content"
    assert exc.value.locked_by == a.user_id

    with pytest.raises(ResourceLockedError):
        content_service.publish_content(db, cid, b)
    assert content_service.get_content(db, cid).current_version == 1


def test_holder_is_not_blocked_by_own_lock(db, seed_users, seed_content):
    a = seed_users["editor"]
    cid = seed_content.content_id
    LockManager(db).acquire_lock("content", cid, a)

    content = content_service.update_content(db, cid, ContentUpdate(title="mine"), a)
    assert content.current_version == 2


def test_collection_lock_cascades_until_released(db, seed_users, seed_collection, seed_content):
    a, b = seed_users["editor"], seed_users["editor_b"]
    collection_id = seed_collection.collection_id
    locks = LockManager(db)
    locks.acquire_lock("collection", collection_id, a)

    with pytest.raises(ResourceLockedError) as exc:
        content_service.create_content(db, collection_id, ContentCreate(title="New"), b)
    assert exc.value.source_level == "self"

    with pytest.raises(ResourceLockedError) as exc:
        locks.ensure_modifiable("element", "p2", b)
    assert exc.value.source_level == "collection"

    locks.release_lock("collection", collection_id, a)
    locks.ensure_modifiable("element", "p2", b)
    element = content_service.update_element(db, seed_content.content_id, "p2", ElementUpdate(data={"text": "ok"}), b)
    assert element["data"] == {"text": "ok"}


def test_element_lock_blocks_only_that_subtree(db, seed_users, seed_content):
    a, b = seed_users["editor"], seed_users["editor_b"]
    cid = seed_content.content_id
    LockManager(db).acquire_lock("element", "p1", a)

    content_service.update_element(db, cid, "intro", ElementUpdate(data={"text": "free"}), b)
    with pytest.raises(ResourceLockedError):
        content_service.delete_element(db, cid, "body", b)
    with pytest.raises(ResourceLockedError):
        content_service.update_content(
            db, cid, ContentUpdate(elements=[{"id": "intro", "type": "heading", "data": {}}]), b
        )


def test_add_element_under_locked_parent(db, seed_users, seed_content):
    a, b = seed_users["editor"], seed_users["editor_b"]
    LockManager(db).acquire_lock("element", "body", a)

    with pytest.raises(ResourceLockedError):
        content_service.add_element(db, seed_content.content_id, ElementCreate(parent_id="body"), b)
    element = content_service.add_element(db, seed_content.content_id, ElementCreate(type="quote"), b)
    assert element["type"] == "quote"


def test_acquire_conflicts_with_other_holder(db, seed_users, seed_content):
    a, b = seed_users["editor"], seed_users["editor_b"]
    locks = LockManager(db)
    first = locks.acquire_lock("content", seed_content.content_id, a)

    assert locks.acquire_lock("content", seed_content.content_id, a).lock_id == first.lock_id
    with pytest.raises(ConflictError) as exc:
        locks.acquire_lock("content", seed_content.content_id, b)
    assert exc.value.lock_info["locked_by"] == a.user_id
    assert exc.value.lock_info["locked_by_name"] == "Editor A"


def test_release_rules(db, seed_users, seed_content):
    a, b, admin = seed_users["editor"], seed_users["editor_b"], seed_users["admin"]
    cid = seed_content.content_id
    locks = LockManager(db)
    locks.acquire_lock("content", cid, a)

    with pytest.raises(ForbiddenError):
        locks.release_lock("content", cid, b)
    locks.release_lock("content", cid, admin)
    assert db.query(ResourceLock).count() == 0

    # 잠겨 있지 않은 리소스 해제는 아무 일도 하지 않는다
    locks.release_lock("content", cid, b)


def test_effective_lock_prefers_nearest_level(db, seed_users, seed_collection, seed_content):
    a = seed_users["editor"]
    locks = LockManager(db)
    locks.acquire_lock("collection", seed_collection.collection_id, a)
    locks.acquire_lock("element", "p1", a)

    effective = locks.get_effective_lock("element", "p1")
    assert effective.source_level == "self"
    assert locks.get_effective_lock("element", "p2").source_level == "collection"
    assert locks.get_effective_lock("element", "p1", a) is None


def test_invalid_lock_requests(db, seed_users, seed_content):
    a = seed_users["editor"]
    locks = LockManager(db)
    with pytest.raises(ValidationError):
        locks.acquire_lock("page", "1", a)
    with pytest.raises(NotFoundError):
        locks.acquire_lock("element", "missing", a)
    with pytest.raises(NotFoundError):
        locks.acquire_lock("content", "abc", a)
    with pytest.raises(ValidationError):
        locks.acquire_lock("content", seed_content.content_id, a, reason="x" * 501)


def test_numeric_ids_share_one_lock_key(db, seed_users, seed_content):
    a, b = seed_users["editor"], seed_users["editor_b"]
    cid = seed_content.content_id
    locks = LockManager(db)
    lock = locks.acquire_lock("content", f"0{cid}", a)
    assert lock.resource_id == str(cid)

    for spelled in (str(cid), f" {cid}", cid):
        with pytest.raises(ConflictError):
            locks.acquire_lock("content", spelled, b)
    assert db.query(ResourceLock).count() == 1

    with pytest.raises(ResourceLockedError):
        content_service.update_content(db, cid, ContentUpdate(title="B wins"), b)
    assert locks.get_lock("content", f"00{cid}").lock_id == lock.lock_id

    locks.release_lock("content", f"0{cid}", a)
    assert locks.get_lock("content", cid) is None


def test_restore_respects_element_locks(db, seed_users, seed_content):
    a, b = seed_users["editor"], seed_users["editor_b"]
    cid = seed_content.content_id
    content_service.update_element(db, cid, "p1", ElementUpdate(data={"text": "A draft"}), a)
    LockManager(db).acquire_lock("element", "p1", a)

    with pytest.raises(ResourceLockedError) as exc:
        content_service.restore_content(db, cid, 1, b)
    assert exc.value.resource_id == "p1"
    content = content_service.get_content(db, cid)
    assert content.current_version == 2
    assert content.elements[1]["children"][0]["data"] == {"text": "A draft"}

    restored = content_service.restore_content(db, cid, 1, a)
    assert restored.version_number == 3


def test_inserting_child_under_locked_element(db, seed_users, seed_content):
    a, b = seed_users["editor"], seed_users["editor_b"]
    cid = seed_content.content_id
    LockManager(db).acquire_lock("element", "body", a)

    elements = copy.deepcopy(seed_content.elements)
    elements[1]["children"].append({"id": "p3", "type": "text", "data": {"text": "late"}})
    with pytest.raises(ResourceLockedError) as exc:
        content_service.update_content(db, cid, ContentUpdate(elements=elements), b)
    assert exc.value.resource_id == "body"

    # 잠기지 않은 위치(최상위)에 추가하는 것은 허용된다
    elements = copy.deepcopy(seed_content.elements)
    elements.append({"id": "outro", "type": "text", "data": {}})
    content = content_service.update_content(db, cid, ContentUpdate(elements=elements), b)
    assert [e["id"] for e in content.elements] == ["intro", "body", "outro"]
