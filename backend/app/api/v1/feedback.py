"""Reading feedback endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select, update

from app.api.deps import AdminUser, CurrentUser, DbSession
from app.models.feedback import Feedback
from app.models.reading import ReadingType
from app.schemas.feedback import (
    FeedbackCreate,
    FeedbackResponse,
    FeedbackStats,
    MarkUsedRequest,
    MarkUsedResponse,
)
from app.services.feedback_analytics import RATINGS, average_rating

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=FeedbackResponse)
async def submit_feedback(payload: FeedbackCreate, current_user: CurrentUser, db: DbSession) -> FeedbackResponse:
    """Rate a reading. Submitting again for the same reading updates it."""
    result = await db.execute(
        select(Feedback).where(
            Feedback.user_id == current_user.id,
            Feedback.reading_id == payload.reading_id,
        )
    )
    feedback = result.scalar_one_or_none()

    if feedback is None:
        feedback = Feedback(user_id=current_user.id, used_for_training=False, **payload.model_dump())
        db.add(feedback)
    else:
        for key, value in payload.model_dump().items():
            setattr(feedback, key, value)

    await db.flush()
    await db.refresh(feedback)
    return FeedbackResponse.model_validate(feedback)


@router.get("/stats/{reading_type}", response_model=FeedbackStats)
async def feedback_stats(reading_type: ReadingType, db: DbSession) -> FeedbackStats:
    """Count, average rating and rating distribution for a reading type."""
    result = await db.execute(select(Feedback).where(Feedback.reading_type == reading_type))
    rows = result.scalars().all()

    distribution = {rating: 0 for rating in RATINGS}
    for row in rows:
        distribution[row.rating] = distribution.get(row.rating, 0) + 1

    return FeedbackStats(
        reading_type=reading_type,
        count=len(rows),
        average_rating=average_rating(rows),
        distribution=distribution,
    )


@router.get("/reading/{reading_id}", response_model=FeedbackResponse)
async def get_reading_feedback(reading_id: str, current_user: CurrentUser, db: DbSession) -> FeedbackResponse:
    """The caller's own feedback on a reading."""
    result = await db.execute(
        select(Feedback).where(
            Feedback.user_id == current_user.id,
            Feedback.reading_id == reading_id,
        )
    )
    feedback = result.scalar_one_or_none()
    if feedback is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Feedback not found",
        )
    return FeedbackResponse.model_validate(feedback)


@router.get("/training", response_model=list[FeedbackResponse])
async def training_feedback(
    _admin: AdminUser,
    db: DbSession,
    limit: int = Query(default=100, ge=1, le=500),
) -> list[FeedbackResponse]:
    """Highly rated feedback not yet used for training (admin)."""
    result = await db.execute(
        select(Feedback)
        .where(Feedback.rating >= 4, Feedback.used_for_training.is_(False))
        .order_by(Feedback.created_at.desc())
        .limit(limit)
    )
    return [FeedbackResponse.model_validate(f) for f in result.scalars().all()]


@router.post("/mark-used", response_model=MarkUsedResponse)
async def mark_used(payload: MarkUsedRequest, _admin: AdminUser, db: DbSession) -> MarkUsedResponse:
    """Flag feedback rows as consumed by training (admin)."""
    result = await db.execute(
        update(Feedback)
        .where(Feedback.id.in_(payload.ids))
        .values(used_for_training=True)
    )
    logger.info(f"Marked {result.rowcount} feedback rows as used for training")
    return MarkUsedResponse(updated=result.rowcount or 0)
