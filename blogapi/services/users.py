import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..core.errors import ConflictError, NotFoundError, ValidationFailedError
from ..core.security import AuthService

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session, auth: AuthService):
        self.db = db
        self.auth = auth

    def create(self, name: str, email: str, password: str) -> models.User:
        if not name:
            raise ValidationFailedError("name is required")
        if not email:
            raise ValidationFailedError("email is required")
        if not password:
            raise ValidationFailedError("password is required")

        if self._find_by_email(email) is not None:
            raise ConflictError("email already registered")

        user = models.User(name=name, email=email, hashed_password=self.auth.hash_password(password))
        self.db.add(user)
        self._commit_unique_email()
        self.db.refresh(user)

        logger.info(f"Created user {user.id}")
        return user

    def _find_by_email(self, email: str) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.email == email).first()

    def _commit_unique_email(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("email already registered") from e

    def get_by_id(self, user_id: int) -> models.User:
        user = self.db.query(models.User).filter(models.User.id == user_id).first()
        if user is None:
            raise NotFoundError("user not found")
        return user

    def get_by_email(self, email: str) -> models.User:
        user = self._find_by_email(email)
        if user is None:
            raise NotFoundError("user not found")
        return user

    def partial_update(
        self,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> models.User:
        user = self.get_by_id(user_id)

        if name is not None:
            user.name = name
        if email is not None and email != user.email:
            existing = self._find_by_email(email)
            if existing is not None:
                raise ConflictError("email already registered")
            user.email = email
        if password is not None:
            user.hashed_password = self.auth.hash_password(password)

        self._commit_unique_email()
        self.db.refresh(user)
        return user

    def delete(self, user_id: int) -> None:
        self.get_by_id(user_id)
        self.db.query(models.User).filter(models.User.id == user_id).delete(synchronize_session=False)
        self.db.commit()
        logger.info(f"Deleted user {user_id}")
