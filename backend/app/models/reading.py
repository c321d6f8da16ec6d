"""Saved divination reading (user history)."""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, str_enum

if TYPE_CHECKING:
    from app.models.user import User


class ReadingType(str, enum.Enum):
    """Kind of divination a reading holds."""

    NUMEROLOGY = "numerology"
    TAROT = "tarot"
    ICHING = "iching"
    COMPATIBILITY = "compatibility"
    HOLISTIC = "holistic"
    STAR_ASTROLOGY = "star_astrology"
    BAZI = "bazi"


class ReadingSource(str, enum.Enum):
    """Where a reading came from."""

    USER = "user"
    SYSTEM = "system"
    IMPORT = "import"


def normalize_tags(tags: list[str] | None) -> list[str]:
    """Lowercase, strip and de-duplicate tags, keeping first-seen order."""
    seen: list[str] = []
    for tag in tags or []:
        cleaned = tag.strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


class Reading(BaseModel):
    """A divination result saved to a user's history."""

    __tablename__ = "readings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[ReadingType] = mapped_column(
        str_enum(ReadingType),
        nullable=False,
        index=True,
    )
    data: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        default=dict,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(String(50)),
        default=list,
        nullable=False,
    )
    shared_with: Mapped[list[uuid.UUID]] = mapped_column(
        ARRAY(UUID(as_uuid=True)),
        default=list,
        nullable=False,
    )
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_viewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    source: Mapped[ReadingSource] = mapped_column(
        str_enum(ReadingSource, length=16),
        default=ReadingSource.USER,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="readings")

    def can_view(self, user_id: uuid.UUID | None) -> bool:
        """Owner, anyone for public readings, or users it was shared with."""
        if self.is_public:
            return True
        if user_id is None:
            return False
        return user_id == self.user_id or user_id in (self.shared_with or [])

    def __repr__(self) -> str:
        return f"<Reading {self.type.value} {self.title!r}>"
