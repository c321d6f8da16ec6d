"""Scheduled tasks for periodic operations."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import update

from app.core.celery import celery_app
from app.core.config import settings

logger = logging.getLogger(__name__)


@celery_app.task(name="app.workers.scheduled.expire_stale_purchases")
def expire_stale_purchases() -> dict:
    """
    Fail purchases that stayed pending past the checkout timeout.

    Runs hourly via Celery Beat.

    Returns:
        dict with cleanup statistics.
    """
    from app.core.database import get_sync_session
    from app.models.payment import Purchase, PurchaseStatus

    logger.info("Starting stale purchase cleanup")

    threshold = datetime.now(timezone.utc) - timedelta(
        hours=settings.pending_purchase_timeout_hours
    )

    try:
        with get_sync_session() as db:
            result = db.execute(
                update(Purchase)
                .where(
                    Purchase.status == PurchaseStatus.PENDING,
                    Purchase.created_at < threshold,
                )
                .values(status=PurchaseStatus.FAILED)
                .returning(Purchase.transaction_id)
            )
            expired = [row[0] for row in result.fetchall()]
            db.commit()

            if expired:
                logger.warning(f"Expired {len(expired)} stale purchases: {expired}")
            else:
                logger.debug("No stale purchases found")

    except Exception as e:
        logger.error(f"Failed to expire stale purchases: {e}")
        raise

    return {
        "status": "completed",
        "expired_count": len(expired),
        "transaction_ids": expired,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@celery_app.task(name="app.workers.scheduled.cleanup_expired_reset_tokens")
def cleanup_expired_reset_tokens() -> dict:
    """
    Clear password reset tokens whose expiry has passed.

    Runs daily via Celery Beat.
    """
    from app.core.database import get_sync_session
    from app.models.user import User

    now = datetime.now(timezone.utc)

    with get_sync_session() as db:
        result = db.execute(
            update(User)
            .where(
                User.reset_token_hash.is_not(None),
                User.reset_token_expires_at < now,
            )
            .values(reset_token_hash=None, reset_token_expires_at=None)
        )
        cleared = result.rowcount or 0
        db.commit()

    logger.info(f"Cleared {cleared} expired reset tokens")
    return {"status": "completed", "cleared_count": cleared, "timestamp": now.isoformat()}
