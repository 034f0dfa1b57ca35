"""collection/content/element 에 걸리는 권고형(advisory) 잠금 모델입니다."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from content_engine.database import Base

RESOURCE_TYPES = ("collection", "content", "element")


class ResourceLock(Base):
    __tablename__ = "resource_lock"

    lock_id = Column(Integer, primary_key=True, autoincrement=True)
    resource_type = Column(String(20), nullable=False)  # collection/content/element
    resource_id = Column(String(64), nullable=False)
    locked_by = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    locked_at = Column(DateTime, server_default=func.now())
    reason = Column(String(500))

    holder = relationship("User")

    __table_args__ = (
        UniqueConstraint("resource_type", "resource_id", name="uq_resource_lock_resource"),
    )
