import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum, Index, func, text
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


EMPTY_DOCUMENT = '{"type":"doc","content":[]}'


class PostVersionStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # As FKs com ON DELETE CASCADE cuidam dos posts ao apagar o usuário
    posts = relationship("Post", back_populates="user", passive_deletes=True)


class PostTag(Base):
    __tablename__ = "post_tags"

    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, index=True, nullable=False)
    description = Column(Text, default="", nullable=False)
    usage_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="posts")
    # Escrita das associações passa sempre por PostTag
    tags = relationship("Tag", secondary="post_tags", viewonly=True, order_by="Tag.name")
    versions = relationship(
        "PostVersion",
        back_populates="post",
        passive_deletes=True,
        order_by=lambda: (PostVersion.created_at.desc(), PostVersion.id.desc()),
    )

    @property
    def published_version(self):
        for version in self.versions:
            if version.status == PostVersionStatus.PUBLISHED:
                return version
        return None

    @property
    def current_version(self):
        """Versão publicada ou, na falta dela, a mais recente."""
        published = self.published_version
        if published is not None:
            return published
        return self.versions[0] if self.versions else None

    @property
    def status(self) -> PostVersionStatus:
        if self.published_version is not None:
            return PostVersionStatus.PUBLISHED
        return PostVersionStatus.DRAFT

    @property
    def content_markdown(self) -> str:
        version = self.current_version
        return version.content_markdown if version else ""

    @property
    def content_json(self) -> str:
        version = self.current_version
        return version.content_json if version else ""


class PostVersion(Base):
    __tablename__ = "post_versions"
    __table_args__ = (
        # No máximo uma versão publicada por post
        Index(
            "uq_post_versions_one_published",
            "post_id",
            unique=True,
            sqlite_where=text("status = 'published'"),
            postgresql_where=text("status = 'published'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    content_markdown = Column(Text, default="", nullable=False)
    content_json = Column(Text, default="", nullable=False)
    status = Column(
        Enum(
            PostVersionStatus,
            name="post_version_status",
            native_enum=False,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=PostVersionStatus.DRAFT,
        nullable=False,
    )
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    post = relationship("Post", back_populates="versions")
    author = relationship("User", lazy="joined")
