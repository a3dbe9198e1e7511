from fastapi import APIRouter, Depends

from ... import schemas
from ...core.errors import AuthenticationError, NotFoundError
from ...core.security import AuthService
from ...services import UserService
from ..deps import get_auth_service, get_user_service

router = APIRouter()

INVALID_CREDENTIALS = "Invalid email or password"


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    credentials: schemas.LoginInput,
    users: UserService = Depends(get_user_service),
    auth: AuthService = Depends(get_auth_service),
):
    """
    Troca email e senha por um JWT
    """
    # Mesma mensagem para email desconhecido e senha errada
    try:
        user = users.get_by_email(credentials.email)
    except NotFoundError:
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not auth.check_password(credentials.password, user.hashed_password):
        raise AuthenticationError(INVALID_CREDENTIALS)

    return {
        "token": auth.issue_token(user),
        "user": {"data": user, "message": "Login successful"},
    }
