"""적용된 스키마 마이그레이션 이력 모델입니다."""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from content_engine.database import Base


class SchemaMigration(Base):
    __tablename__ = "schema_migration"

    migration_id = Column(String(100), primary_key=True)
    applied_at = Column(DateTime, server_default=func.now())
