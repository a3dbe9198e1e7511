from fastapi import APIRouter
from .auth import router as auth_router
from .health import router as health_router
from .posts import router as posts_router
from .tags import router as tags_router
from .users import router as users_router
from .versions import router as versions_router, post_versions_router

router = APIRouter()

# Incluindo as rotas
router.include_router(health_router, tags=["health"])
router.include_router(users_router, prefix="/users", tags=["users"])
router.include_router(auth_router, prefix="/auth", tags=["auth"])
router.include_router(posts_router, prefix="/posts", tags=["posts"])
router.include_router(post_versions_router, prefix="/posts", tags=["versions"])
router.include_router(versions_router, prefix="/versions", tags=["versions"])
router.include_router(tags_router, prefix="/tags", tags=["tags"])
