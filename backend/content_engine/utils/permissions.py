"""Permissions 관련 공용 유틸리티 헬퍼입니다."""

from content_engine.models.user import User


ADMIN = "admin"
EDITOR = "editor"

# viewer 는 조회만 가능하다
WRITER_ROLES = (ADMIN, EDITOR)


def is_admin(user: User) -> bool:
    return user.role == ADMIN
