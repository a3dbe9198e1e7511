from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from .. import models
from ..core.errors import ConflictError, NotFoundError, ValidationFailedError

TAG_SORTS = {
    "name": models.Tag.name.asc(),
    "usage_count": models.Tag.usage_count.desc(),
    "created_at": models.Tag.created_at.desc(),
}


def normalize_tag_name(name: str) -> str:
    return name.strip().lower()


class TagService:
    def __init__(self, db: Session):
        self.db = db

    def create(self, name: str, description: str = "") -> models.Tag:
        name = normalize_tag_name(name)
        if not name:
            raise ValidationFailedError("tag name is required")

        if self._find(name) is not None:
            raise ConflictError("tag already exists")

        tag = models.Tag(name=name, description=description or "")
        self.db.add(tag)
        self.db.commit()
        self.db.refresh(tag)
        return tag

    def _find(self, name: str) -> Optional[models.Tag]:
        return self.db.query(models.Tag).filter(models.Tag.name == normalize_tag_name(name)).first()

    def get_by_id(self, tag_id: int) -> models.Tag:
        tag = self.db.query(models.Tag).filter(models.Tag.id == tag_id).first()
        if tag is None:
            raise NotFoundError("tag not found")
        return tag

    def get_by_name(self, name: str) -> models.Tag:
        tag = self._find(name)
        if tag is None:
            raise NotFoundError("tag not found")
        return tag

    def get_all(self, page: int = 1, limit: int = 20, sort: str = "name") -> Tuple[List[models.Tag], int]:
        query = self.db.query(models.Tag)
        total = query.count()

        order = TAG_SORTS.get(sort, TAG_SORTS["name"])
        tags = query.order_by(order, models.Tag.id.asc())\
            .offset((page - 1) * limit)\
            .limit(limit)\
            .all()
        return tags, total

    def get_popular(self, limit: int = 10) -> List[models.Tag]:
        return self.db.query(models.Tag)\
            .order_by(models.Tag.usage_count.desc(), models.Tag.name.asc())\
            .limit(limit)\
            .all()

    def search(self, q: str, limit: int = 10) -> List[models.Tag]:
        # % e _ do usuário são literais
        term = normalize_tag_name(q)
        for char in ("\\", "%", "_"):
            term = term.replace(char, "\\" + char)
        return self.db.query(models.Tag)\
            .filter(models.Tag.name.like(f"%{term}%", escape="\\"))\
            .order_by(models.Tag.name.asc())\
            .limit(limit)\
            .all()

    def update(self, tag_id: int, name: Optional[str] = None, description: Optional[str] = None) -> models.Tag:
        tag = self.get_by_id(tag_id)

        if name is not None:
            name = normalize_tag_name(name)
            if not name:
                raise ValidationFailedError("tag name is required")
            existing = self._find(name)
            if existing is not None and existing.id != tag.id:
                raise ConflictError("tag already exists")
            tag.name = name
        if description is not None:
            tag.description = description

        self.db.commit()
        self.db.refresh(tag)
        return tag

    def delete(self, tag_id: int) -> None:
        tag = self.get_by_id(tag_id)
        self.db.query(models.PostTag).filter(models.PostTag.tag_id == tag.id).delete(synchronize_session=False)
        self.db.delete(tag)
        self.db.commit()

    def increment_usage(self, tag_id: int) -> None:
        self.db.execute(
            models.Tag.__table__.update()
            .where(models.Tag.id == tag_id)
            .values(usage_count=models.Tag.usage_count + 1)
        )

    def get_or_create_tags(self, names: List[str]) -> List[models.Tag]:
        """Resolve cada nome para uma tag, criando as que faltam.

        Só faz flush: quem chama decide o commit.
        """
        tags = []
        seen = set()
        for raw in names:
            name = normalize_tag_name(raw)
            if not name or name in seen:
                continue
            seen.add(name)

            tag = self._find(name)
            if tag is None:
                tag = models.Tag(name=name, description="")
                self.db.add(tag)
                self.db.flush()
            tags.append(tag)
        return tags

    def associate_tags_with_post(self, post_id: int, names: List[str]) -> List[models.Tag]:
        # Substituição completa: apaga tudo e reinsere
        self.db.query(models.PostTag).filter(models.PostTag.post_id == post_id).delete(synchronize_session=False)

        tags = self.get_or_create_tags(names)
        for tag in tags:
            self.db.add(models.PostTag(post_id=post_id, tag_id=tag.id))
            self.db.flush()
            self.increment_usage(tag.id)
        return tags
