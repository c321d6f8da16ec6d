"""Reading report generation.

Reports attach a longer narrative to a saved reading. The task runs in the
``reports`` queue so slow LLM calls never block request handling.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone

from app.core.celery import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="app.workers.reports.generate_reading_report",
    max_retries=2,
    default_retry_delay=30,
)
def generate_reading_report(self, user_id: str, reading_id: str) -> dict:
    """
    Generate a report for a saved reading and store it on the reading.

    Args:
        user_id: Owner of the reading
        reading_id: UUID of the reading

    Returns:
        dict with report status
    """
    from sqlalchemy import select

    from app.core.database import get_sync_session
    from app.models.reading import Reading
    from app.services.interpreter import ReadingInterpreter
    from app.services.llm_gateway import LLMError

    logger.info(f"Generating report for reading {reading_id}")

    with get_sync_session() as db:
        reading = db.execute(
            select(Reading).where(
                Reading.id == uuid.UUID(reading_id),
                Reading.user_id == uuid.UUID(user_id),
            )
        ).scalar_one_or_none()

        if reading is None:
            logger.warning(f"Reading {reading_id} not found for user {user_id}")
            return {"reading_id": reading_id, "status": "not_found"}

        reading_type = reading.type
        data = dict(reading.data or {})

    try:
        interpretation = asyncio.run(
            ReadingInterpreter().interpret(reading_type, data, data.get("question"))
        )
    except LLMError as e:
        logger.error(f"Report generation failed for reading {reading_id}: {e}")
        raise self.retry(exc=e)

    with get_sync_session() as db:
        reading = db.get(Reading, uuid.UUID(reading_id))
        if reading is None:
            return {"reading_id": reading_id, "status": "not_found"}
        # Reassign so the JSONB column is flagged dirty
        reading.data = {
            **(reading.data or {}),
            "report": {
                **interpretation,
                "generated_at": datetime.now(timezone.utc).isoformat(),
            },
        }
        db.commit()

    logger.info(f"Report stored for reading {reading_id} ({interpretation['source']})")
    return {"reading_id": reading_id, "status": "completed", "source": interpretation["source"]}
