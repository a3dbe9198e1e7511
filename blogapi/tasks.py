from celery import Celery
from faker import Faker
import json
import logging
import random

from .core.config import get_settings
from .core.security import AuthService
from .database import build_engine, build_session_factory
from .services import PostService, PostVersionService, TagService, UserService

logger = logging.getLogger(__name__)

settings = get_settings()

# Configurar Celery
celery_app = Celery('blogapi', broker=settings.CELERY_BROKER_URL)

# Configurar SQLAlchemy
engine = build_engine(settings.DATABASE_URL)
SessionLocal = build_session_factory(engine)

DEMO_PASSWORD = "demo-password-123"
TAG_POOL = ["python", "fastapi", "sqlalchemy", "devops", "testing", "design", "career", "databases"]


def fake_document(fake):
    """Documento rich-text no formato ProseMirror"""
    return json.dumps({
        "type": "doc",
        "content": [
            {
                "type": "heading",
                "attrs": {"level": 1},
                "content": [{"type": "text", "text": fake.sentence(nb_words=4)}],
            },
            {
                "type": "paragraph",
                "content": [{"type": "text", "text": fake.sentence(nb_words=10)}],
            },
        ],
    })


@celery_app.task(name="seed_demo_content")
def seed_demo_content(num_users=10, posts_per_user=5, publish_ratio=0.5):
    """Popula o banco com usuários, posts, tags e versões de exemplo"""
    fake = Faker()
    db = SessionLocal()
    auth = AuthService(settings)
    users = UserService(db, auth)
    tags = TagService(db)
    posts = PostService(db, tags)
    versions = PostVersionService(db)

    created_users = 0
    created_posts = 0
    published = 0
    try:
        for i in range(num_users):
            user = users.create(fake.name(), f"user_{i}_{fake.unique.email()}", DEMO_PASSWORD)
            created_users += 1

            for _ in range(posts_per_user):
                post = posts.create(
                    user_id=user.id,
                    title=fake.sentence(nb_words=6).rstrip("."),
                    content_markdown=fake.paragraph(nb_sentences=3),
                    content_json=fake_document(fake),
                    tag_names=random.sample(TAG_POOL, k=random.randint(0, 3)),
                )
                created_posts += 1

                if random.random() < publish_ratio:
                    draft = post.versions[0]
                    versions.publish_version(draft.id, user.id)
                    published += 1
    finally:
        db.close()

    logger.info(f"Seeded {created_users} users, {created_posts} posts ({published} published)")
    return {"users": created_users, "posts": created_posts, "published": published}
