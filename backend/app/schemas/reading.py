"""Saved reading (history) schemas."""

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints, field_validator

from app.models.reading import ReadingSource, ReadingType, normalize_tags
from app.schemas.common import BaseSchema

Tag = Annotated[str, StringConstraints(strip_whitespace=True, max_length=50)]


class ReadingCreate(BaseModel):
    """Save a reading to history."""

    type: ReadingType
    data: dict[str, Any]
    title: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    tags: list[Tag] = Field(default_factory=list, max_length=20)
    is_favorite: bool = False
    notes: str | None = Field(default=None, max_length=1000)
    source: ReadingSource = ReadingSource.USER

    @field_validator("data")
    @classmethod
    def data_not_empty(cls, v: dict[str, Any]) -> dict[str, Any]:
        if not v:
            raise ValueError("Reading data must not be empty")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: list[str]) -> list[str]:
        return normalize_tags(v)


class ReadingUpdate(BaseModel):
    """Owner edits; any field left out is unchanged.

    ``description``, ``notes`` and ``rating`` can be cleared with null. The
    other fields are required columns and reject null.
    """

    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    tags: list[Tag] | None = Field(default=None, max_length=20)
    is_favorite: bool | None = None
    notes: str | None = Field(default=None, max_length=1000)
    rating: int | None = None

    @field_validator("title", "is_favorite")
    @classmethod
    def not_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: list[str] | None) -> list[str]:
        if v is None:
            raise ValueError("Field cannot be null")
        return normalize_tags(v)

    @field_validator("rating")
    @classmethod
    def clamp_rating(cls, v: int | None) -> int | None:
        if v is None:
            return None
        return max(1, min(5, v))


class ReadingShare(BaseModel):
    user_ids: list[UUID] = Field(default_factory=list)
    is_public: bool | None = None


class ReadingResponse(BaseSchema):
    id: UUID
    user_id: UUID
    type: ReadingType
    data: dict[str, Any]
    title: str
    description: str | None = None
    is_favorite: bool
    tags: list[str]
    shared_with: list[UUID]
    is_public: bool
    version: int
    view_count: int
    last_viewed_at: datetime | None = None
    rating: int | None = None
    source: ReadingSource
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class ReadingListResponse(BaseModel):
    """History page with counts."""

    items: list[ReadingResponse]
    count: int
    total: int
    page: int
    pages: int


class ReadingStats(BaseModel):
    type_stats: dict[str, int]
    recent: list[ReadingResponse]
    favorites_count: int
    total: int


ReadingSort = Literal["created_at", "-created_at", "title", "-title", "view_count", "-view_count"]
