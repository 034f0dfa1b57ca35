"""Content(가변 head)와 element 소유 인덱스의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from content_engine.database import Base

CONTENT_STATUSES = ("draft", "published", "archived")


class Content(Base):
    __tablename__ = "content"

    content_id = Column(Integer, primary_key=True, autoincrement=True)
    collection_id = Column(Integer, ForeignKey("collection.collection_id"), nullable=False)
    title = Column(String(300), nullable=False)
    slug = Column(String(300))
    # declarative Base가 metadata 속성을 예약하므로 meta로 매핑한다.
    meta = Column("metadata", JSON, nullable=False, default=dict)
    elements = Column(JSON, nullable=False, default=list)  # [{id, type, data, children}]
    status = Column(String(20), nullable=False, default="draft")  # draft/published/archived
    current_version = Column(Integer, nullable=False, default=0)
    created_by = Column(Integer, ForeignKey("users.user_id"))
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    collection = relationship("Collection", back_populates="contents")
    versions = relationship(
        "ContentVersion",
        back_populates="content",
        order_by="ContentVersion.version_number",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_content_collection", "collection_id", "content_id"),
    )


class ContentElement(Base):
    """element id -> 소속 content 인덱스. head의 elements 트리를 쓸 때마다 재구성된다."""

    __tablename__ = "content_element"

    element_id = Column(String(64), primary_key=True)
    content_id = Column(Integer, ForeignKey("content.content_id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(String(64))
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("idx_content_element_content", "content_id"),
    )
