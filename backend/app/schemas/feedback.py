"""Feedback schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.reading import ReadingType
from app.schemas.common import BaseSchema


class FeedbackCreate(BaseModel):
    """Create or update the caller's feedback on a reading."""

    reading_id: str = Field(min_length=1, max_length=64)
    reading_type: ReadingType
    rating: int = Field(ge=1, le=5)
    comment: str | None = Field(default=None, max_length=1000)
    helpful: bool | None = None
    accurate: bool | None = None


class FeedbackResponse(BaseSchema):
    id: UUID
    user_id: UUID
    reading_id: str
    reading_type: ReadingType
    rating: int
    comment: str | None = None
    helpful: bool | None = None
    accurate: bool | None = None
    used_for_training: bool
    created_at: datetime
    updated_at: datetime


class FeedbackStats(BaseModel):
    reading_type: ReadingType
    count: int
    average_rating: float
    distribution: dict[int, int]


class MarkUsedRequest(BaseModel):
    ids: list[UUID] = Field(min_length=1, max_length=500)


class MarkUsedResponse(BaseModel):
    updated: int
