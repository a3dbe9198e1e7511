from typing import Optional

from fastapi import APIRouter, Depends, Path, status

from ... import models, schemas
from ...core.errors import ForbiddenError
from ...core.security import AuthService
from ...services import ListPostsQuery, PostService, UserService
from ..deps import (
    MAX_ID,
    get_auth_service,
    get_current_user,
    get_post_service,
    get_user_service,
    parse_pagination,
)

router = APIRouter()


@router.post("", response_model=schemas.UserCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user: schemas.UserCreate,
    users: UserService = Depends(get_user_service),
    auth: AuthService = Depends(get_auth_service),
):
    """
    Cria um novo usuário e já devolve um token
    """
    db_user = users.create(user.name, user.email, user.password)
    return {
        "data": db_user,
        "message": "User created successfully",
        "token": auth.issue_token(db_user),
    }


@router.get("/me/posts", response_model=schemas.ListPostsResponse)
def list_my_posts(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    current_user: models.User = Depends(get_current_user),
    posts: PostService = Depends(get_post_service),
):
    page_number, page_size = parse_pagination(page, limit)
    results, total = posts.get_with_pagination(
        ListPostsQuery(page=page_number, limit=page_size, user_id=current_user.id)
    )
    return {"data": results, "limit": page_size, "page": page_number, "total": total}


@router.get("/{user_id}", response_model=schemas.UserResponse)
def get_user(
    user_id: int = Path(..., ge=1, le=MAX_ID),
    users: UserService = Depends(get_user_service),
):
    """
    Retorna um usuário específico pelo ID
    """
    return {"data": users.get_by_id(user_id), "message": "User retrieved successfully"}


@router.patch("/{user_id}", response_model=schemas.UserResponse)
def update_user(
    changes: schemas.UserUpdate,
    user_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: models.User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    # Primeiro 404, depois 403
    users.get_by_id(user_id)
    if current_user.id != user_id:
        raise ForbiddenError("You can only update your own account")

    updated = users.partial_update(user_id, changes.name, changes.email, changes.password)
    return {"data": updated, "message": "User updated successfully"}


@router.delete("/{user_id}", response_model=schemas.MessageResponse)
def delete_user(
    user_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: models.User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    users.get_by_id(user_id)
    if current_user.id != user_id:
        raise ForbiddenError("You can only delete your own account")

    users.delete(user_id)
    return {"message": "User deleted successfully"}
