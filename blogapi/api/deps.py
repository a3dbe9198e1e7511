from typing import Optional, Tuple

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from .. import models
from ..core.config import Settings
from ..core.errors import AppError, AuthenticationError
from ..core.security import AuthService
from ..database import get_db
from ..services import PostService, PostVersionService, TagService, UserService

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# Maior inteiro aceito em ids e paginação (INTEGER de 32 bits)
MAX_ID = 2**31 - 1


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(settings: Settings = Depends(get_settings)) -> AuthService:
    return AuthService(settings)


def get_user_service(db: Session = Depends(get_db),
                     auth: AuthService = Depends(get_auth_service)) -> UserService:
    return UserService(db, auth)


def get_tag_service(db: Session = Depends(get_db)) -> TagService:
    return TagService(db)


def get_post_service(db: Session = Depends(get_db),
                     tags: TagService = Depends(get_tag_service)) -> PostService:
    return PostService(db, tags)


def get_version_service(db: Session = Depends(get_db)) -> PostVersionService:
    return PostVersionService(db)


def _user_from_header(authorization: Optional[str], auth: AuthService, db: Session) -> models.User:
    if not authorization:
        raise AuthenticationError("Authorization header required")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise AuthenticationError("Invalid authorization format. Use 'Bearer <token>'")

    try:
        user_id = auth.validate_token(parts[1])
    except AuthenticationError:
        raise AuthenticationError("Invalid or expired token")

    user = db.query(models.User).filter(models.User.id == user_id).first()
    if user is None:
        raise AuthenticationError("Invalid or expired token")
    return user


def get_current_user(
    authorization: Optional[str] = Header(None),
    auth: AuthService = Depends(get_auth_service),
    db: Session = Depends(get_db),
) -> models.User:
    return _user_from_header(authorization, auth, db)


def get_optional_user(
    authorization: Optional[str] = Header(None),
    auth: AuthService = Depends(get_auth_service),
    db: Session = Depends(get_db),
) -> Optional[models.User]:
    if not authorization:
        return None
    try:
        return _user_from_header(authorization, auth, db)
    except AppError:
        return None


def _positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if 1 <= value <= MAX_ID else default


def parse_pagination(page: Optional[str], limit: Optional[str],
                     default_limit: int = DEFAULT_LIMIT) -> Tuple[int, int]:
    """Valores inválidos voltam ao padrão em vez de gerar erro."""
    return _positive_int(page, DEFAULT_PAGE), min(_positive_int(limit, default_limit), MAX_LIMIT)


def parse_tag_list(raw: Optional[str]) -> list:
    if not raw:
        return []
    return [name.strip() for name in raw.split(",") if name.strip()]
