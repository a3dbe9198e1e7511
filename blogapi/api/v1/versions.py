from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status as http_status

from ... import models, schemas
from ...core.errors import ValidationFailedError
from ...services import PostVersionService
from ..deps import MAX_ID, get_current_user, get_version_service, parse_pagination

router = APIRouter()
post_versions_router = APIRouter()


@router.get("", response_model=schemas.ListVersionsResponse)
def list_versions(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    user_id: Optional[int] = Query(None, ge=1, le=MAX_ID),
    status: Optional[str] = None,
    versions: PostVersionService = Depends(get_version_service),
):
    page_number, page_size = parse_pagination(page, limit)

    version_status = None
    if status:
        try:
            version_status = models.PostVersionStatus(status)
        except ValueError:
            raise ValidationFailedError("Invalid status: must be 'draft' or 'published'")

    results, total = versions.get_with_pagination(page_number, page_size, user_id, version_status)
    return {"data": results, "limit": page_size, "page": page_number, "total": total}


@router.get("/{version_id}", response_model=schemas.VersionResponse)
def get_version(
    version_id: int = Path(..., ge=1, le=MAX_ID),
    versions: PostVersionService = Depends(get_version_service),
):
    return {"data": versions.get_by_id(version_id)}


@router.put("/{version_id}", response_model=schemas.VersionResponse)
def update_version(
    content: schemas.VersionInput,
    version_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: models.User = Depends(get_current_user),
    versions: PostVersionService = Depends(get_version_service),
):
    """
    Auto-save de um rascunho
    """
    version = versions.auto_save_draft(
        version_id,
        current_user.id,
        content.title,
        content.content_markdown,
        content.content_json,
    )
    return {"data": version, "message": "Version updated successfully"}


@router.patch("/{version_id}/publish", response_model=schemas.VersionResponse)
def publish_version(
    version_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: models.User = Depends(get_current_user),
    versions: PostVersionService = Depends(get_version_service),
):
    version = versions.publish_version(version_id, current_user.id)
    return {"data": version, "message": "Version published successfully"}


@post_versions_router.post(
    "/{post_id}/versions",
    response_model=schemas.VersionResponse,
    status_code=http_status.HTTP_201_CREATED,
)
def create_version(
    content: schemas.VersionInput,
    post_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: models.User = Depends(get_current_user),
    versions: PostVersionService = Depends(get_version_service),
):
    version = versions.create_draft_version(
        post_id,
        current_user.id,
        content.title,
        content.content_markdown,
        content.content_json,
    )
    return {"data": version, "message": "Version created successfully"}


@post_versions_router.get("/{post_id}/versions", response_model=schemas.ListVersionsResponse)
def list_post_versions(
    post_id: int = Path(..., ge=1, le=MAX_ID),
    versions: PostVersionService = Depends(get_version_service),
):
    results = versions.get_versions_for_post(post_id)
    return {"data": results, "limit": len(results), "page": 1, "total": len(results)}
