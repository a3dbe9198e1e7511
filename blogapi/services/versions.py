import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..core.errors import ConflictError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

DRAFT = models.PostVersionStatus.DRAFT
PUBLISHED = models.PostVersionStatus.PUBLISHED


class PostVersionService:
    """Fluxo de rascunho/publicação das versões de um post.

    Uma versão é ``draft`` ou ``published``; a troca de estado acontece só em
    ``publish_version``, que rebaixa a versão publicada anterior e promove a
    nova na mesma transação. O índice parcial ``uq_post_versions_one_published``
    garante no banco que há no máximo uma publicada por post.

    ``create_draft_version`` e ``publish_version`` não travam linhas: chamadas
    concorrentes para o mesmo post podem se intercalar.
    """

    def __init__(self, db: Session):
        self.db = db

    def _get_post(self, post_id: int) -> models.Post:
        post = self.db.query(models.Post).filter(models.Post.id == post_id).first()
        if post is None:
            raise NotFoundError("post not found")
        return post

    def _versions_of(self, post_id: int, status: models.PostVersionStatus):
        return self.db.query(models.PostVersion).filter(
            models.PostVersion.post_id == post_id,
            models.PostVersion.status == status,
        )

    def create_draft_version(
        self,
        post_id: int,
        author_id: int,
        title: Optional[str] = None,
        content_markdown: Optional[str] = None,
        content_json: Optional[str] = None,
    ) -> models.PostVersion:
        post = self._get_post(post_id)
        if post.user_id != author_id:
            raise ForbiddenError("you can only create versions for your own posts")

        # Já existe rascunho: sobrescreve o conteúdo no lugar
        draft = self._versions_of(post_id, DRAFT)\
            .order_by(models.PostVersion.updated_at.desc(), models.PostVersion.id.desc())\
            .first()
        if draft is not None:
            self._apply_content(draft, title, content_markdown, content_json)
            self.db.commit()
            self.db.refresh(draft)
            return draft

        # Sem rascunho: copia da versão publicada, ou começa em branco
        published = self._versions_of(post_id, PUBLISHED).first()
        if published is not None:
            base = (published.title, published.content_markdown, published.content_json)
        else:
            base = (post.title, "", models.EMPTY_DOCUMENT)

        version = models.PostVersion(
            post_id=post_id,
            author_id=author_id,
            status=DRAFT,
            title=base[0],
            content_markdown=base[1],
            content_json=base[2],
        )
        self._apply_content(version, title, content_markdown, content_json)
        self.db.add(version)
        self.db.commit()
        self.db.refresh(version)

        logger.info(f"Draft version {version.id} created for post {post_id}")
        return version

    @staticmethod
    def _apply_content(version, title, content_markdown, content_json) -> None:
        if title is not None:
            version.title = title
        if content_markdown is not None:
            version.content_markdown = content_markdown
        if content_json is not None:
            version.content_json = content_json

    def auto_save_draft(
        self,
        version_id: int,
        author_id: int,
        title: Optional[str] = None,
        content_markdown: Optional[str] = None,
        content_json: Optional[str] = None,
    ) -> models.PostVersion:
        version = self.get_by_id(version_id)

        if version.author_id != author_id:
            raise ForbiddenError("you can only update your own versions")
        if version.status != DRAFT:
            raise ConflictError("can only auto-save draft versions")

        self._apply_content(version, title, content_markdown, content_json)
        self.db.commit()
        self.db.refresh(version)
        return version

    def publish_version(self, version_id: int, author_id: int) -> models.PostVersion:
        version = self.get_by_id(version_id)

        if version.author_id != author_id:
            raise ForbiddenError("you can only publish your own versions")

        try:
            # Rebaixa antes de promover para não violar o índice parcial
            self.db.query(models.PostVersion)\
                .filter(
                    models.PostVersion.post_id == version.post_id,
                    models.PostVersion.id != version.id,
                    models.PostVersion.status == PUBLISHED,
                )\
                .update({models.PostVersion.status: DRAFT}, synchronize_session=False)

            version.status = PUBLISHED
            version.post.title = version.title
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("another version of this post was published concurrently") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(version)
        logger.info(f"Version {version_id} published for post {version.post_id}")
        return version

    def get_by_id(self, version_id: int) -> models.PostVersion:
        version = self.db.query(models.PostVersion).filter(models.PostVersion.id == version_id).first()
        if version is None:
            raise NotFoundError("version not found")
        return version

    def get_versions_for_post(self, post_id: int) -> List[models.PostVersion]:
        self._get_post(post_id)
        return self.db.query(models.PostVersion)\
            .filter(models.PostVersion.post_id == post_id)\
            .order_by(models.PostVersion.created_at.desc(), models.PostVersion.id.desc())\
            .all()

    def get_with_pagination(
        self,
        page: int = 1,
        limit: int = 10,
        author_id: Optional[int] = None,
        status: Optional[models.PostVersionStatus] = None,
    ) -> Tuple[List[models.PostVersion], int]:
        query = self.db.query(models.PostVersion)

        if author_id is not None:
            query = query.filter(models.PostVersion.author_id == author_id)
        if status is not None:
            query = query.filter(models.PostVersion.status == status)

        total = query.count()
        versions = query.order_by(models.PostVersion.created_at.desc(), models.PostVersion.id.desc())\
            .offset((page - 1) * limit)\
            .limit(limit)\
            .all()
        return versions, total
