from .posts import ListPostsQuery, PostService
from .tags import TagService, normalize_tag_name
from .users import UserService
from .versions import PostVersionService

__all__ = [
    "ListPostsQuery",
    "PostService",
    "PostVersionService",
    "TagService",
    "UserService",
    "normalize_tag_name",
]
