"""Tarot spread readings, free or gated by a purchase."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status

from app.api.deps import CurrentUser, DbSession, interpret_or_503, require_service_access
from app.core.rate_limit import divination_rate_limit
from app.models.reading import ReadingType
from app.schemas.divination import ReadingRequest
from app.schemas.payment import ServiceAccessResponse
from app.services.divination import DivinationInputError, perform_reading
from app.services.divination.tarot import Spread, get_spread
from app.services.history import save_reading
from app.services.payments import ServiceNotFoundError, check_service_access

logger = logging.getLogger(__name__)

router = APIRouter()


def _spread_or_400(spread_type: str) -> Spread:
    try:
        return get_spread(spread_type)
    except DivinationInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/access/{spread_type}", response_model=ServiceAccessResponse)
async def check_access(spread_type: str, current_user: CurrentUser, db: DbSession) -> ServiceAccessResponse:
    """Whether the caller can use a spread."""
    spread = _spread_or_400(spread_type)
    if spread.service_slug is None:
        return ServiceAccessResponse(has_access=True, requires_purchase=False)

    try:
        access = await check_service_access(db, current_user.id, spread.service_slug)
    except ServiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return ServiceAccessResponse(
        has_access=access.has_access,
        requires_purchase=True,
        service_slug=spread.service_slug,
        expires_at=access.expires_at,
    )


@router.post("/reading/{spread_type}")
async def tarot_reading(
    spread_type: str,
    payload: ReadingRequest,
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
) -> dict[str, Any]:
    """Draw a spread. Five and ten card spreads need an active purchase."""
    spread = _spread_or_400(spread_type)
    divination_rate_limit(request, str(current_user.id))

    if spread.service_slug is not None:
        await require_service_access(db, current_user, spread.service_slug)

    result = perform_reading(spread.key, payload.question)

    if payload.interpret:
        result["ai_interpretation"] = await interpret_or_503(
            request, current_user, ReadingType.TAROT, result, payload.question
        )

    if payload.save:
        reading = await save_reading(db, current_user.id, ReadingType.TAROT, result)
        result["reading_id"] = str(reading.id)

    logger.info(f"Tarot {spread.key} reading for user {current_user.id}")
    return result
