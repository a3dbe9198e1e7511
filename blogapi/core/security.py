from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from .config import Settings
from .errors import AuthenticationError, InternalError, ValidationFailedError

BCRYPT_MAX_BYTES = 72


class AuthService:
    """Hash de senhas (bcrypt) e emissão/validação de JWT."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def hash_password(self, password: str) -> str:
        raw = password.encode("utf-8")
        # bcrypt só usa os primeiros 72 bytes
        if not raw or len(raw) > BCRYPT_MAX_BYTES:
            raise ValidationFailedError("This password is invalid, please try a new one")
        try:
            hashed = bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.settings.BCRYPT_ROUNDS))
        except ValueError as e:
            raise ValidationFailedError("This password is invalid, please try a new one") from e
        return hashed.decode("utf-8")

    def check_password(self, password: str, hashed_password: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
        except ValueError:
            return False

    def _secret(self) -> str:
        if not self.settings.JWT_SECRET:
            raise InternalError("JWT_SECRET not configured")
        return self.settings.JWT_SECRET

    def issue_token(self, user) -> str:
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        claims = {
            "user_id": user.id,
            "email": user.email,
            "name": user.name,
            "exp": expire,
        }
        return jwt.encode(claims, self._secret(), algorithm=self.settings.JWT_ALGORITHM)

    def validate_token(self, token: str) -> int:
        """Valida assinatura, algoritmo e expiração e devolve o ``user_id``."""
        secret = self._secret()
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.JWT_ALGORITHM],
                options={"require": ["exp"]},
            )
        except jwt.PyJWTError as e:
            raise AuthenticationError("invalid token") from e

        user_id = claims.get("user_id")
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            raise AuthenticationError("user_id claim is not a number")
        return user_id
