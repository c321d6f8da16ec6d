"""Admin analytics: activity feed, totals and request metrics."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from redis.exceptions import RedisError
from sqlalchemy import func, select

from app.api.deps import AdminUser, DbSession
from app.core.middleware import request_metrics
from app.core.redis import get_recent_activity
from app.models.feedback import Feedback
from app.models.payment import Purchase
from app.models.reading import Reading
from app.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/activity")
async def recent_activity(
    _admin: AdminUser,
    limit: int = Query(default=50, ge=1, le=500),
) -> list[dict[str, Any]]:
    """Latest authenticated API calls, newest first."""
    try:
        return await get_recent_activity(limit)
    except RedisError as e:
        logger.error(f"Failed to read activity feed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Activity feed is unavailable",
        )


@router.get("/summary")
async def summary(_admin: AdminUser, db: DbSession) -> dict[str, Any]:
    """Users, readings by type, purchases by status and feedback average."""
    users = (await db.execute(select(func.count(User.id)))).scalar() or 0

    reading_rows = await db.execute(
        select(Reading.type, func.count(Reading.id)).group_by(Reading.type)
    )
    readings_by_type = {row[0].value: row[1] for row in reading_rows.all()}

    purchase_rows = await db.execute(
        select(Purchase.status, func.count(Purchase.id)).group_by(Purchase.status)
    )
    purchases_by_status = {row[0].value: row[1] for row in purchase_rows.all()}

    feedback_row = (
        await db.execute(select(func.count(Feedback.id), func.avg(Feedback.rating)))
    ).one()

    return {
        "users": users,
        "readings": {"total": sum(readings_by_type.values()), "by_type": readings_by_type},
        "purchases": {"total": sum(purchases_by_status.values()), "by_status": purchases_by_status},
        "feedback": {
            "total": feedback_row[0] or 0,
            "average_rating": round(float(feedback_row[1]), 2) if feedback_row[1] is not None else 0.0,
        },
    }


@router.get("/metrics")
async def metrics(_admin: AdminUser) -> dict[str, Any]:
    """Per-route request counts and latency for this process."""
    return request_metrics.snapshot()
