"""Aggregate statistics over reading feedback.

The aggregation functions take plain feedback rows so they can run on any
sequence of objects exposing ``rating``, ``helpful``, ``accurate``,
``comment`` and ``created_at``.
"""

import logging
from collections import Counter, defaultdict
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.feedback import Feedback
from app.models.reading import ReadingType

logger = logging.getLogger(__name__)

RATINGS = (1, 2, 3, 4, 5)
TOP_COMMENTS = 10


class FeedbackRow(Protocol):
    rating: int
    helpful: bool | None
    accurate: bool | None
    comment: str | None
    created_at: datetime


def _round(value: float) -> float:
    return round(value, 2)


def percentage(part: int, whole: int) -> float:
    return _round(part / whole * 100) if whole else 0.0


def percent_change(current: float, previous: float) -> float:
    """Relative change in percent; 0 when there is no previous value."""
    if not previous:
        return 0.0
    return _round((current - previous) / previous * 100)


def average_rating(rows: Sequence[FeedbackRow]) -> float:
    if not rows:
        return 0.0
    return _round(sum(r.rating for r in rows) / len(rows))


def rating_distribution(rows: Sequence[FeedbackRow]) -> list[dict[str, Any]]:
    counts = Counter(r.rating for r in rows)
    total = len(rows)
    return [
        {"rating": rating, "count": counts.get(rating, 0), "percentage": percentage(counts.get(rating, 0), total)}
        for rating in RATINGS
    ]


def daily_trends(rows: Sequence[FeedbackRow]) -> list[dict[str, Any]]:
    """Count and average rating per calendar day (UTC), oldest first."""
    by_day: dict[str, list[int]] = defaultdict(list)
    for row in rows:
        created = row.created_at
        if created.tzinfo is not None:
            created = created.astimezone(UTC)
        by_day[created.date().isoformat()].append(row.rating)
    return [
        {"date": day, "count": len(ratings), "average_rating": _round(sum(ratings) / len(ratings))}
        for day, ratings in sorted(by_day.items())
    ]


def analyze_feedback(rows: Sequence[FeedbackRow]) -> dict[str, Any]:
    """Full analysis of one set of feedback rows."""
    total = len(rows)
    helpful_answers = [r.helpful for r in rows if r.helpful is not None]
    accurate_answers = [r.accurate for r in rows if r.accurate is not None]
    commented = sorted(
        (r for r in rows if r.comment and r.comment.strip()),
        key=lambda r: r.created_at,
        reverse=True,
    )

    return {
        "total": total,
        "average_rating": average_rating(rows),
        "rating_distribution": rating_distribution(rows),
        "daily_trends": daily_trends(rows),
        "helpful_percentage": percentage(sum(helpful_answers), len(helpful_answers)),
        "accurate_percentage": percentage(sum(accurate_answers), len(accurate_answers)),
        "recent_comments": [
            {"rating": r.rating, "comment": r.comment, "created_at": r.created_at.isoformat()}
            for r in commented[:TOP_COMMENTS]
        ],
    }


def compare_periods(
    current: Sequence[FeedbackRow],
    previous: Sequence[FeedbackRow],
) -> dict[str, Any]:
    """Totals and averages of two periods with absolute and relative change."""
    current_total, previous_total = len(current), len(previous)
    current_avg, previous_avg = average_rating(current), average_rating(previous)
    return {
        "current": {"total": current_total, "average_rating": current_avg},
        "previous": {"total": previous_total, "average_rating": previous_avg},
        "changes": {
            "total": current_total - previous_total,
            "total_percentage": percent_change(current_total, previous_total),
            "average_rating": _round(current_avg - previous_avg),
            "average_rating_percentage": percent_change(current_avg, previous_avg),
        },
    }


async def fetch_feedback(
    db: AsyncSession,
    reading_type: ReadingType,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Feedback]:
    query = select(Feedback).where(Feedback.reading_type == reading_type)
    if start is not None:
        query = query.where(Feedback.created_at >= start)
    if end is not None:
        query = query.where(Feedback.created_at < end)
    result = await db.execute(query.order_by(Feedback.created_at))
    return list(result.scalars().all())


async def analyze_reading_type(
    db: AsyncSession,
    reading_type: ReadingType,
    time_range_days: int,
) -> dict[str, Any]:
    start = datetime.now(UTC) - timedelta(days=time_range_days)
    rows = await fetch_feedback(db, reading_type, start=start)
    analysis = analyze_feedback(rows)
    logger.debug(f"Analyzed {len(rows)} {reading_type.value} feedback rows over {time_range_days}d")
    return {"reading_type": reading_type.value, "time_range": time_range_days, **analysis}


async def compare_reading_type(
    db: AsyncSession,
    reading_type: ReadingType,
    current_period_days: int,
    previous_period_days: int,
) -> dict[str, Any]:
    """Compare the latest period against the one immediately before it."""
    now = datetime.now(UTC)
    current_start = now - timedelta(days=current_period_days)
    previous_start = current_start - timedelta(days=previous_period_days)

    current = await fetch_feedback(db, reading_type, start=current_start)
    previous = await fetch_feedback(db, reading_type, start=previous_start, end=current_start)
    return {
        "reading_type": reading_type.value,
        "current_period": current_period_days,
        "previous_period": previous_period_days,
        **compare_periods(current, previous),
    }
