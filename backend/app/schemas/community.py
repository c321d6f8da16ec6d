"""Community post schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.reading import ReadingType
from app.schemas.common import BaseSchema


class PostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    content: str = Field(min_length=1, max_length=5000)
    reading_type: ReadingType | None = None
    reading_id: UUID | None = None


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=1000)


class AuthorInfo(BaseSchema):
    id: UUID
    username: str
    avatar_url: str | None = None


class CommentResponse(BaseSchema):
    id: UUID
    post_id: UUID
    content: str
    author: AuthorInfo
    created_at: datetime


class PostResponse(BaseSchema):
    id: UUID
    title: str
    content: str
    reading_type: ReadingType | None = None
    reading_id: UUID | None = None
    like_count: int
    author: AuthorInfo
    created_at: datetime


class PostDetailResponse(PostResponse):
    comments: list[CommentResponse] = []


class LikeResponse(BaseModel):
    liked: bool
    like_count: int
