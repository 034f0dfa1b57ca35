"""Bearer JWT 인증과 역할 기반 접근 제어 의존성입니다."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError, jwt
from content_engine.database import get_db
from content_engine.models.user import User
from content_engine.config import settings
from content_engine.services.auth_service import ALGORITHM
from content_engine.utils.permissions import ADMIN, WRITER_ROLES

security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_user_id(token: str) -> int:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise _unauthorized("Invalid or expired token")
    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise _unauthorized("Invalid token payload")
    return int(subject)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    user_id = decode_user_id(credentials.credentials)
    user = db.query(User).filter(User.user_id == user_id, User.is_active == True).first()
    if not user:
        raise _unauthorized("User not found or inactive")
    return user


def require_roles(*roles: str):
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(roles)}",
            )
        return current_user
    return checker


# 콘텐츠/릴리스/잠금 변경은 editor 이상, purge 는 admin 전용
require_writer = require_roles(*WRITER_ROLES)
require_admin = require_roles(ADMIN)
