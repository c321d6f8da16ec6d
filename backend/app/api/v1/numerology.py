"""Numerology reading with interpretation and history."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status

from app.api.deps import CurrentUser, DbSession, interpret_or_503
from app.core.rate_limit import divination_rate_limit
from app.models.reading import ReadingType
from app.schemas.divination import NumerologyReadingRequest
from app.services.divination import DivinationInputError, generate_numerology_analysis
from app.services.history import save_reading
from app.workers.reports import generate_reading_report

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/reading")
async def numerology_reading(
    payload: NumerologyReadingRequest,
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
) -> dict[str, Any]:
    """
    Compute a numerology analysis, interpret it and save it to history.

    A fuller report is generated in the background and attached to the
    saved reading once ready.
    """
    divination_rate_limit(request, str(current_user.id))

    try:
        analysis = generate_numerology_analysis(payload.birth_date, payload.name)
    except DivinationInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    analysis["name"] = payload.name
    analysis["birth_date"] = payload.birth_date
    analysis["ai_interpretation"] = await interpret_or_503(
        request, current_user, ReadingType.NUMEROLOGY, analysis
    )

    reading = await save_reading(db, current_user.id, ReadingType.NUMEROLOGY, analysis)
    # The worker reads the row, so it must be committed before queueing
    await db.commit()
    generate_reading_report.delay(str(current_user.id), str(reading.id))
    logger.info(f"Queued report for numerology reading {reading.id}")

    return {**analysis, "reading_id": str(reading.id)}
