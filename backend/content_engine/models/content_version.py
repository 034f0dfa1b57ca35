"""콘텐츠 변경 이력(불변 스냅샷)을 저장하는 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func

from content_engine.database import Base


class ContentVersion(Base):
    __tablename__ = "content_version"

    version_id = Column(Integer, primary_key=True, autoincrement=True)
    content_id = Column(Integer, ForeignKey("content.content_id", ondelete="CASCADE"), nullable=False)
    version_number = Column(Integer, nullable=False)
    snapshot = Column(Text, nullable=False)  # JSON string: title/slug/status/metadata/elements
    release = Column(String(100), nullable=False)
    is_release_end = Column(Boolean, nullable=False, default=False)
    change_note = Column(String(500))
    created_by = Column(Integer, ForeignKey("users.user_id"))
    created_at = Column(DateTime, server_default=func.now())

    content = relationship("Content", back_populates="versions")
    creator = relationship("User")

    __table_args__ = (
        UniqueConstraint("content_id", "version_number", name="uq_content_version_number"),
        Index("idx_content_version_release", "content_id", "release", "is_release_end"),
    )

    @validates("snapshot", "version_number", "content_id")
    def _freeze_after_insert(self, key, value):
        # 저장된 스냅샷은 다시 쓸 수 없다. release 경계 필드만 이후에 변경된다.
        if self.version_id is not None:
            raise ValueError(f"content_version.{key} is immutable once stored")
        return value
