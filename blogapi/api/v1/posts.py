from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status as http_status

from ... import models, schemas
from ...core.errors import ForbiddenError, ValidationFailedError
from ...services import ListPostsQuery, PostService
from ..deps import (
    MAX_ID,
    get_current_user,
    get_optional_user,
    get_post_service,
    parse_pagination,
    parse_tag_list,
)

router = APIRouter()


def _owned_post(post_id: int, user: models.User, posts: PostService, action: str) -> models.Post:
    post = posts.get_by_id(post_id)
    if post.user_id != user.id:
        raise ForbiddenError(f"You can only {action} your own posts")
    return post


@router.post("", response_model=schemas.PostResponse, status_code=http_status.HTTP_201_CREATED)
def create_post(
    post: schemas.PostCreate,
    current_user: models.User = Depends(get_current_user),
    posts: PostService = Depends(get_post_service),
):
    db_post = posts.create(
        user_id=current_user.id,
        title=post.title,
        content_markdown=post.content_markdown,
        content_json=post.content_json,
        tag_names=post.tags,
        slug=post.slug,
    )
    return {"data": db_post, "message": "Post created successfully"}


@router.get("", response_model=schemas.ListPostsResponse)
def list_posts(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    user_id: Optional[int] = Query(None, ge=1, le=MAX_ID),
    mine: Optional[str] = None,
    tags: Optional[str] = None,
    status: Optional[str] = None,
    current_user: Optional[models.User] = Depends(get_optional_user),
    posts: PostService = Depends(get_post_service),
):
    """
    Lista paginada de posts com filtros por autor, tags e status
    """
    page_number, page_size = parse_pagination(page, limit)
    query = ListPostsQuery(page=page_number, limit=page_size, user_id=user_id, tag_names=parse_tag_list(tags))

    if mine == "true" and current_user is not None:
        query.user_id = current_user.id

    if status:
        try:
            query.status = models.PostVersionStatus(status)
        except ValueError:
            raise ValidationFailedError("Invalid status: must be 'draft' or 'published'")

    results, total = posts.get_with_pagination(query)
    return {"data": results, "limit": page_size, "page": page_number, "total": total}


@router.get("/{post_id}", response_model=schemas.PostResponse)
def get_post(
    post_id: int = Path(..., ge=1, le=MAX_ID),
    posts: PostService = Depends(get_post_service),
):
    return {"data": posts.get_by_id(post_id)}


@router.put("/{post_id}", response_model=schemas.PostResponse)
def update_post(
    post: schemas.PostUpdate,
    post_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: models.User = Depends(get_current_user),
    posts: PostService = Depends(get_post_service),
):
    _owned_post(post_id, current_user, posts, "update")
    db_post = posts.update(post_id, post.title, slug=post.slug, tag_names=post.tags)
    return {"data": db_post, "message": "Post updated successfully"}


@router.patch("/{post_id}", response_model=schemas.PostResponse)
def partial_update_post(
    post: schemas.PostPatch,
    post_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: models.User = Depends(get_current_user),
    posts: PostService = Depends(get_post_service),
):
    _owned_post(post_id, current_user, posts, "update")
    db_post = posts.partial_update(post_id, post.model_dump(exclude_unset=True))
    return {"data": db_post, "message": "Post updated successfully"}


@router.delete("/{post_id}", response_model=schemas.MessageResponse)
def delete_post(
    post_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: models.User = Depends(get_current_user),
    posts: PostService = Depends(get_post_service),
):
    _owned_post(post_id, current_user, posts, "delete")
    posts.delete(post_id)
    return {"message": "Post deleted successfully"}
