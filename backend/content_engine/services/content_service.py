"""Content 변경 워크플로우 서비스 레이어입니다.

모든 변경은 같은 순서를 명시적으로 따른다: 잠금 확인 -> head 변경 -> 버전 생성.
모델 훅(이벤트)으로 숨기지 않고 이 모듈의 함수가 순서를 직접 호출한다.
"""

from typing import Any, Dict, List

from sqlalchemy.orm import Session

from content_engine.errors import NotFoundError, ValidationError
from content_engine.models.collection import Collection
from content_engine.models.content import CONTENT_STATUSES, Content, ContentElement
from content_engine.models.user import User
from content_engine.schemas.collection import CollectionCreate
from content_engine.schemas.content import ContentCreate, ContentUpdate, ElementCreate, ElementMove, ElementUpdate
from content_engine.services.element_index import sync_element_index
from content_engine.services.lock_service import LockManager
from content_engine.services.release_service import ReleaseManager
from content_engine.services.version_service import VersionStore, parse_snapshot
from content_engine.utils import element_tree
from content_engine.utils.helpers import slugify


def create_collection(db: Session, data: CollectionCreate, current_user: User) -> Collection:
    collection = Collection(name=data.name, created_by=current_user.user_id)
    db.add(collection)
    db.flush()
    ReleaseManager(db).initialize_collection_release(collection, current_user)
    db.commit()
    db.refresh(collection)
    return collection


def get_collection(db: Session, collection_id: int) -> Collection:
    collection = db.query(Collection).filter(Collection.collection_id == collection_id).first()
    if not collection:
        raise NotFoundError("컬렉션을 찾을 수 없습니다.")
    return collection


def get_content(db: Session, content_id: int) -> Content:
    content = db.query(Content).filter(Content.content_id == content_id).first()
    if not content:
        raise NotFoundError("콘텐츠를 찾을 수 없습니다.")
    return content


def list_contents(db: Session, collection_id: int) -> List[Content]:
    get_collection(db, collection_id)
    return (
        db.query(Content)
        .filter(Content.collection_id == collection_id)
        .order_by(Content.content_id.asc())
        .all()
    )


def create_content(db: Session, collection_id: int, data: ContentCreate, current_user: User) -> Content:
    get_collection(db, collection_id)
    LockManager(db).ensure_modifiable("collection", collection_id, current_user)

    content = Content(
        collection_id=collection_id,
        title=data.title,
        slug=data.slug or slugify(data.title),
        meta=dict(data.metadata or {}),
        elements=element_tree.normalize_elements(data.elements),
        status="draft",
        current_version=0,
        created_by=current_user.user_id,
    )
    db.add(content)
    db.flush()
    sync_element_index(db, content)
    VersionStore(db).create_version(content, current_user, "Initial version")
    db.refresh(content)
    return content


def _ensure_elements_modifiable(
    locks: LockManager,
    before: List[Dict[str, Any]],
    after: List[Dict[str, Any]],
    current_user: User,
) -> None:
    changes = element_tree.diff_elements(before, after)
    touched = [row["id"] for row in changes["changed"]]
    touched += [row["id"] for row in changes["removed"]]
    touched += [row["id"] for row in changes["moved"]]

    # 새 요소가 들어가거나 옮겨 가는 기존 부모도 수정 대상이다.
    existing = element_tree.flatten(before)
    placed = element_tree.flatten(after)
    parents = [placed[row["id"]]["parent_id"] for row in changes["added"]]
    parents += [row["to_parent_id"] for row in changes["moved"]]
    touched += [parent_id for parent_id in parents if parent_id in existing]

    for element_id in dict.fromkeys(touched):
        locks.ensure_modifiable("element", element_id, current_user)


def update_content(
    db: Session,
    content_id: int,
    data: ContentUpdate,
    current_user: User,
) -> Content:
    content = get_content(db, content_id)
    locks = LockManager(db)
    locks.ensure_modifiable("content", content_id, current_user)

    changes = data.model_dump(exclude_none=True, exclude={"change_note"})
    if not changes:
        return content

    if "elements" in changes:
        elements = element_tree.normalize_elements(data.elements)
        _ensure_elements_modifiable(locks, content.elements or [], elements, current_user)
        content.elements = elements
        sync_element_index(db, content)
    if "title" in changes:
        content.title = data.title
    if "slug" in changes:
        content.slug = data.slug
    if "metadata" in changes:
        content.meta = dict(data.metadata)

    VersionStore(db).create_version(content, current_user, data.change_note or "Content updated")
    db.refresh(content)
    return content


def _change_status(db: Session, content_id: int, status: str, note: str, current_user: User) -> Content:
    if status not in CONTENT_STATUSES:
        raise ValidationError(f"지원하지 않는 상태입니다: {status}")
    content = get_content(db, content_id)
    LockManager(db).ensure_modifiable("content", content_id, current_user)
    content.status = status
    VersionStore(db).create_version(content, current_user, note)
    db.refresh(content)
    return content


def publish_content(db: Session, content_id: int, current_user: User) -> Content:
    return _change_status(db, content_id, "published", "Published", current_user)


def unpublish_content(db: Session, content_id: int, current_user: User) -> Content:
    return _change_status(db, content_id, "draft", "Unpublished", current_user)


def archive_content(db: Session, content_id: int, current_user: User) -> Content:
    return _change_status(db, content_id, "archived", "Archived", current_user)


def restore_content(db: Session, content_id: int, version_number: int, current_user: User):
    content = get_content(db, content_id)
    locks = LockManager(db)
    locks.ensure_modifiable("content", content_id, current_user)

    versions = VersionStore(db)
    target = parse_snapshot(versions.get_version(content_id, version_number))
    _ensure_elements_modifiable(locks, content.elements or [], target.get("elements") or [], current_user)
    return versions.restore_version(content_id, version_number, current_user)


def _ensure_element_of_content(db: Session, content_id: int, element_id: str) -> None:
    row = (
        db.query(ContentElement.element_id)
        .filter(ContentElement.element_id == element_id, ContentElement.content_id == content_id)
        .first()
    )
    if not row:
        raise NotFoundError("요소를 찾을 수 없습니다.")


def add_element(db: Session, content_id: int, data: ElementCreate, current_user: User) -> Dict[str, Any]:
    content = get_content(db, content_id)
    locks = LockManager(db)
    if data.parent_id:
        _ensure_element_of_content(db, content_id, data.parent_id)
        locks.ensure_modifiable("element", data.parent_id, current_user)
    else:
        locks.ensure_modifiable("content", content_id, current_user)

    raw = {"type": data.type, "data": data.data or {}, "children": data.children or []}
    if data.id:
        raw["id"] = data.id
    elements, element = element_tree.insert_element(content.elements or [], raw, data.parent_id, data.position)
    content.elements = elements
    sync_element_index(db, content)
    VersionStore(db).create_version(content, current_user, "Element added")
    return element


def update_element(
    db: Session,
    content_id: int,
    element_id: str,
    data: ElementUpdate,
    current_user: User,
) -> Dict[str, Any]:
    content = get_content(db, content_id)
    _ensure_element_of_content(db, content_id, element_id)
    LockManager(db).ensure_modifiable("element", element_id, current_user)

    elements, element = element_tree.update_element(
        content.elements or [], element_id, data.model_dump(exclude_none=True)
    )
    content.elements = elements
    VersionStore(db).create_version(content, current_user, "Element updated")
    return element


def delete_element(db: Session, content_id: int, element_id: str, current_user: User) -> None:
    content = get_content(db, content_id)
    _ensure_element_of_content(db, content_id, element_id)
    locks = LockManager(db)
    subtree = [element_tree.find_element(content.elements or [], element_id)]
    for sub_id, _parent_id, _position, _element in element_tree.walk(subtree):
        locks.ensure_modifiable("element", sub_id, current_user)

    content.elements = element_tree.remove_element(content.elements or [], element_id)
    sync_element_index(db, content)
    VersionStore(db).create_version(content, current_user, "Element deleted")


def move_element(
    db: Session,
    content_id: int,
    element_id: str,
    data: ElementMove,
    current_user: User,
) -> Content:
    content = get_content(db, content_id)
    _ensure_element_of_content(db, content_id, element_id)
    locks = LockManager(db)
    locks.ensure_modifiable("element", element_id, current_user)
    if data.parent_id:
        _ensure_element_of_content(db, content_id, data.parent_id)
        locks.ensure_modifiable("element", data.parent_id, current_user)

    content.elements = element_tree.move_element(content.elements or [], element_id, data.parent_id, data.position)
    sync_element_index(db, content)
    VersionStore(db).create_version(content, current_user, "Element moved")
    db.refresh(content)
    return content
