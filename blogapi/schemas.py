import json
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .models import EMPTY_DOCUMENT, PostVersionStatus


SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


def _check_json_document(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        json.loads(value)
    except ValueError:
        raise ValueError("content_json must be a valid JSON document")
    return value


# Usuários
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1)

class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1)

class UserOut(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class UserResponse(BaseModel):
    data: UserOut
    message: str = ""

class UserCreatedResponse(UserResponse):
    token: str


# Autenticação
class LoginInput(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

class AuthResponse(BaseModel):
    token: str
    user: UserResponse


# Tags
class TagCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    description: str = Field("", max_length=500)

class TagUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    description: Optional[str] = Field(None, max_length=500)

class TagOut(BaseModel):
    id: int
    name: str
    description: str
    usage_count: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class TagResponse(BaseModel):
    data: TagOut
    message: str = ""

class ListTagsResponse(BaseModel):
    data: List[TagOut]
    total: int
    page: Optional[int] = None
    limit: Optional[int] = None


# Posts
class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content_markdown: str = ""
    content_json: str = EMPTY_DOCUMENT
    slug: Optional[str] = Field(None, max_length=255, pattern=SLUG_PATTERN)
    tags: List[str] = Field(default_factory=list, max_length=20)

    @field_validator("content_json")
    @classmethod
    def check_content_json(cls, value):
        return _check_json_document(value)

class PostUpdate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255, pattern=SLUG_PATTERN)
    tags: Optional[List[str]] = Field(None, max_length=20)

class PostPatch(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255, pattern=SLUG_PATTERN)
    tags: Optional[List[str]] = Field(None, max_length=20)

class PostOut(BaseModel):
    id: int
    user_id: int
    title: str
    slug: Optional[str] = None
    status: PostVersionStatus
    content_markdown: str
    content_json: str
    user: Optional[UserOut] = None
    tags: List[TagOut] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class PostResponse(BaseModel):
    data: PostOut
    message: str = ""

class ListPostsResponse(BaseModel):
    data: List[PostOut]
    limit: int
    page: int
    total: int


# Versões
class VersionInput(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content_markdown: Optional[str] = None
    content_json: Optional[str] = None

    @field_validator("content_json")
    @classmethod
    def check_content_json(cls, value):
        return _check_json_document(value)

class VersionOut(BaseModel):
    id: int
    post_id: int
    author_id: int
    title: str
    content_markdown: str
    content_json: str
    status: PostVersionStatus
    author: Optional[UserOut] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class VersionResponse(BaseModel):
    data: VersionOut
    message: str = ""

class ListVersionsResponse(BaseModel):
    data: List[VersionOut]
    limit: int
    page: int
    total: int


class MessageResponse(BaseModel):
    message: str
