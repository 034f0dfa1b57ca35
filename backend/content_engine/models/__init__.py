"""SQLAlchemy 모델 패키지 초기화 모듈입니다."""

from content_engine.models.user import User
from content_engine.models.collection import Collection, CollectionRelease
from content_engine.models.content import Content, ContentElement
from content_engine.models.content_version import ContentVersion
from content_engine.models.resource_lock import ResourceLock
from content_engine.models.schema_migration import SchemaMigration

__all__ = [
    "User",
    "Collection", "CollectionRelease",
    "Content", "ContentElement",
    "ContentVersion",
    "ResourceLock",
    "SchemaMigration",
]
