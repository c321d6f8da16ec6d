"""Feedback analytics for administrators."""

from typing import Any

from fastapi import APIRouter, Query
from sqlalchemy import select

from app.api.deps import AdminUser, DbSession
from app.models.feedback import Feedback
from app.models.reading import ReadingType
from app.schemas.feedback import FeedbackResponse
from app.services.feedback_analytics import analyze_reading_type, compare_reading_type

router = APIRouter()


@router.get("/analysis/{reading_type}")
async def analysis(
    reading_type: ReadingType,
    _admin: AdminUser,
    db: DbSession,
    time_range: int = Query(default=30, ge=1, le=365),
) -> dict[str, Any]:
    """Totals, distribution, daily trend and recent comments."""
    return await analyze_reading_type(db, reading_type, time_range)


@router.get("/compare/{reading_type}")
async def compare(
    reading_type: ReadingType,
    _admin: AdminUser,
    db: DbSession,
    current_period: int = Query(default=30, ge=1, le=365),
    previous_period: int = Query(default=30, ge=1, le=365),
) -> dict[str, Any]:
    return await compare_reading_type(db, reading_type, current_period, previous_period)


@router.get("/all-types")
async def all_types(
    _admin: AdminUser,
    db: DbSession,
    time_range: int = Query(default=30, ge=1, le=365),
) -> dict[str, Any]:
    """Summary per reading type."""
    summary = {}
    for reading_type in ReadingType:
        result = await analyze_reading_type(db, reading_type, time_range)
        summary[reading_type.value] = {
            "total": result["total"],
            "average_rating": result["average_rating"],
            "helpful_percentage": result["helpful_percentage"],
            "accurate_percentage": result["accurate_percentage"],
        }
    return {"time_range": time_range, "types": summary}


@router.get("/export/{reading_type}", response_model=list[FeedbackResponse])
async def export(
    reading_type: ReadingType,
    _admin: AdminUser,
    db: DbSession,
    min_rating: int = Query(default=4, ge=1, le=5),
    limit: int = Query(default=1000, ge=1, le=10000),
) -> list[FeedbackResponse]:
    """Export feedback at or above a rating."""
    result = await db.execute(
        select(Feedback)
        .where(Feedback.reading_type == reading_type, Feedback.rating >= min_rating)
        .order_by(Feedback.created_at.desc())
        .limit(limit)
    )
    return [FeedbackResponse.model_validate(f) for f in result.scalars().all()]
