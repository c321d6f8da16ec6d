"""Reading feedback model."""

import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel, str_enum
from app.models.reading import ReadingType


class Feedback(BaseModel):
    """User rating of a reading; one per (user, reading)."""

    __tablename__ = "feedback"
    __table_args__ = (
        UniqueConstraint("user_id", "reading_id", name="uq_feedback_user_reading"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Readings may be unsaved calculations, so this is an opaque identifier
    reading_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    reading_type: Mapped[ReadingType] = mapped_column(
        str_enum(ReadingType),
        nullable=False,
        index=True,
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    helpful: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    accurate: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    used_for_training: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Feedback {self.reading_type.value} {self.rating}>"
