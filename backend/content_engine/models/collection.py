"""Collection 과 릴리스(마일스톤) 목록의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from content_engine.database import Base


class Collection(Base):
    __tablename__ = "collection"

    collection_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    current_release = Column(String(100))  # 현재 열려 있는 릴리스 이름
    created_by = Column(Integer, ForeignKey("users.user_id"))
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    releases = relationship(
        "CollectionRelease",
        back_populates="collection",
        order_by="CollectionRelease.position",
        cascade="all, delete-orphan",
    )
    contents = relationship("Content", back_populates="collection", cascade="all, delete-orphan")


class CollectionRelease(Base):
    __tablename__ = "collection_release"

    release_id = Column(Integer, primary_key=True, autoincrement=True)
    collection_id = Column(Integer, ForeignKey("collection.collection_id"), nullable=False)
    name = Column(String(100), nullable=False)
    position = Column(Integer, nullable=False)  # append-only 순서 (1부터)
    created_by = Column(Integer, ForeignKey("users.user_id"))
    created_at = Column(DateTime, server_default=func.now())

    collection = relationship("Collection", back_populates="releases")

    __table_args__ = (
        UniqueConstraint("collection_id", "name", name="uq_collection_release_name"),
        UniqueConstraint("collection_id", "position", name="uq_collection_release_position"),
    )
