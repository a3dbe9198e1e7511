import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .. import models
from ..core.errors import ConflictError, NotFoundError, ValidationFailedError
from .tags import TagService, normalize_tag_name

logger = logging.getLogger(__name__)

POST_FIELDS = ("title", "slug", "tags")


class ListPostsQuery(BaseModel):
    page: int = 1
    limit: int = 10
    user_id: Optional[int] = None
    tag_names: List[str] = []
    status: Optional[models.PostVersionStatus] = None


class PostService:
    def __init__(self, db: Session, tags: TagService):
        self.db = db
        self.tags = tags

    def _query(self):
        return self.db.query(models.Post).options(
            selectinload(models.Post.user),
            selectinload(models.Post.tags),
            selectinload(models.Post.versions),
        )

    def _slug_taken(self, slug: str, post_id: Optional[int] = None) -> bool:
        query = self.db.query(models.Post.id).filter(models.Post.slug == slug)
        if post_id is not None:
            query = query.filter(models.Post.id != post_id)
        return query.first() is not None

    def create(
        self,
        user_id: int,
        title: str,
        content_markdown: str = "",
        content_json: str = models.EMPTY_DOCUMENT,
        tag_names: Optional[List[str]] = None,
        slug: Optional[str] = None,
    ) -> models.Post:
        """Cria o post, a versão inicial (rascunho) e as tags numa transação só."""
        if not title:
            raise ValidationFailedError("title is required")
        if slug and self._slug_taken(slug):
            raise ConflictError("slug already in use")

        post = models.Post(user_id=user_id, title=title, slug=slug)
        try:
            self.db.add(post)
            self.db.flush()

            self.db.add(models.PostVersion(
                post_id=post.id,
                author_id=user_id,
                title=title,
                content_markdown=content_markdown,
                content_json=content_json,
                status=models.PostVersionStatus.DRAFT,
            ))
            if tag_names:
                self.tags.associate_tags_with_post(post.id, tag_names)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Post {post.id} created by user {user_id}")
        return self.get_by_id(post.id)

    def get_by_id(self, post_id: int) -> models.Post:
        post = self._query().filter(models.Post.id == post_id).first()
        if post is None:
            raise NotFoundError("post not found")
        return post

    def get_with_pagination(self, params: ListPostsQuery) -> Tuple[List[models.Post], int]:
        query = self.db.query(models.Post)

        if params.user_id is not None:
            query = query.filter(models.Post.user_id == params.user_id)

        names = {normalize_tag_name(name) for name in params.tag_names} - {""}
        if names:
            tag_ids = [tag_id for (tag_id,) in self.db.query(models.Tag.id).filter(models.Tag.name.in_(names))]
            # Nomes desconhecidos não casam com nenhum post
            tagged = select(models.PostTag.post_id).where(models.PostTag.tag_id.in_(tag_ids))
            query = query.filter(models.Post.id.in_(tagged))

        if params.status is not None:
            has_published = models.Post.versions.any(
                models.PostVersion.status == models.PostVersionStatus.PUBLISHED
            )
            if params.status == models.PostVersionStatus.PUBLISHED:
                query = query.filter(has_published)
            else:
                query = query.filter(~has_published)

        # Contagem e página são duas consultas separadas
        total = query.count()

        posts = query.options(
            selectinload(models.Post.user),
            selectinload(models.Post.tags),
            selectinload(models.Post.versions),
        )\
            .order_by(models.Post.created_at.desc(), models.Post.id.desc())\
            .offset((params.page - 1) * params.limit)\
            .limit(params.limit)\
            .all()
        return posts, total

    def update(
        self,
        post_id: int,
        title: str,
        slug: Optional[str] = None,
        tag_names: Optional[List[str]] = None,
    ) -> models.Post:
        changes: Dict[str, Any] = {"title": title, "slug": slug}
        if tag_names is not None:
            changes["tags"] = tag_names
        return self.partial_update(post_id, changes)

    def partial_update(self, post_id: int, changes: Dict[str, Any]) -> models.Post:
        changes = {key: value for key, value in changes.items() if key in POST_FIELDS}
        if not changes:
            raise ValidationFailedError("no fields to update")

        post = self.get_by_id(post_id)
        try:
            if "title" in changes:
                if not changes["title"]:
                    raise ValidationFailedError("title cannot be empty")
                post.title = changes["title"]

            if "slug" in changes:
                slug = changes["slug"] or None
                if slug and self._slug_taken(slug, post.id):
                    raise ConflictError("slug already in use")
                post.slug = slug

            # Conteúdo muda só através das versões
            if changes.get("tags") is not None:
                self.tags.associate_tags_with_post(post.id, changes["tags"])

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return self.get_by_id(post_id)

    def delete(self, post_id: int) -> None:
        self.get_by_id(post_id)

        try:
            self.db.query(models.PostTag)\
                .filter(models.PostTag.post_id == post_id)\
                .delete(synchronize_session=False)
            self.db.query(models.PostVersion)\
                .filter(models.PostVersion.post_id == post_id)\
                .delete(synchronize_session=False)
            self.db.query(models.Post)\
                .filter(models.Post.id == post_id)\
                .delete(synchronize_session=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Post {post_id} deleted")
