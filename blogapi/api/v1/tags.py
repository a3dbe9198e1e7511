from typing import Optional

from fastapi import APIRouter, Depends, Path, status

from ... import models, schemas
from ...core.errors import ValidationFailedError
from ...services import TagService
from ..deps import MAX_ID, get_current_user, get_tag_service, parse_pagination

router = APIRouter()

DEFAULT_TAG_LIMIT = 20


@router.post("", response_model=schemas.TagResponse, status_code=status.HTTP_201_CREATED)
def create_tag(
    tag: schemas.TagCreate,
    current_user: models.User = Depends(get_current_user),
    tags: TagService = Depends(get_tag_service),
):
    return {"data": tags.create(tag.name, tag.description), "message": "Tag created successfully"}


@router.get("", response_model=schemas.ListTagsResponse)
def list_tags(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort: str = "name",
    tags: TagService = Depends(get_tag_service),
):
    page_number, page_size = parse_pagination(page, limit, default_limit=DEFAULT_TAG_LIMIT)
    results, total = tags.get_all(page_number, page_size, sort)
    return {"data": results, "total": total, "page": page_number, "limit": page_size}


@router.get("/popular", response_model=schemas.ListTagsResponse)
def popular_tags(limit: Optional[str] = None, tags: TagService = Depends(get_tag_service)):
    _, page_size = parse_pagination(None, limit)
    results = tags.get_popular(page_size)
    return {"data": results, "total": len(results)}


@router.get("/search", response_model=schemas.ListTagsResponse)
def search_tags(
    q: Optional[str] = None,
    limit: Optional[str] = None,
    tags: TagService = Depends(get_tag_service),
):
    if not q or not q.strip():
        raise ValidationFailedError("Search query is required")

    _, page_size = parse_pagination(None, limit)
    results = tags.search(q, page_size)
    return {"data": results, "total": len(results)}


@router.get("/{tag_id}", response_model=schemas.TagResponse)
def get_tag(
    tag_id: int = Path(..., ge=1, le=MAX_ID),
    tags: TagService = Depends(get_tag_service),
):
    return {"data": tags.get_by_id(tag_id)}


@router.put("/{tag_id}", response_model=schemas.TagResponse)
def update_tag(
    tag: schemas.TagUpdate,
    tag_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: models.User = Depends(get_current_user),
    tags: TagService = Depends(get_tag_service),
):
    updated = tags.update(tag_id, tag.name, tag.description)
    return {"data": updated, "message": "Tag updated successfully"}


@router.delete("/{tag_id}", response_model=schemas.MessageResponse)
def delete_tag(
    tag_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: models.User = Depends(get_current_user),
    tags: TagService = Depends(get_tag_service),
):
    tags.delete(tag_id)
    return {"message": "Tag deleted successfully"}
