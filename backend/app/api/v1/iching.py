"""I Ching readings and the hexagram reference."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Path, Request, status

from app.api.deps import CurrentUser, DbSession, interpret_or_503, require_service_access
from app.core.config import settings
from app.core.rate_limit import divination_rate_limit
from app.core.redis import CACHE_HEXAGRAM_PREFIX, cache_get_json, cache_set_json
from app.models.reading import ReadingType
from app.schemas.divination import ReadingRequest
from app.schemas.payment import ServiceAccessResponse
from app.services.divination import DivinationInputError, cast_hexagram, interpret_hexagram
from app.services.history import save_reading
from app.services.payments import ServiceNotFoundError, check_service_access

logger = logging.getLogger(__name__)

router = APIRouter()

ICHING_SERVICE_SLUG = "iching-divination"


@router.get("/access", response_model=ServiceAccessResponse)
async def check_access(current_user: CurrentUser, db: DbSession) -> ServiceAccessResponse:
    try:
        access = await check_service_access(db, current_user.id, ICHING_SERVICE_SLUG)
    except ServiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return ServiceAccessResponse(
        has_access=access.has_access,
        requires_purchase=True,
        service_slug=ICHING_SERVICE_SLUG,
        expires_at=access.expires_at,
    )


@router.post("/reading")
async def iching_reading(
    payload: ReadingRequest,
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
) -> dict[str, Any]:
    """Cast a hexagram for a question (requires the I Ching service)."""
    divination_rate_limit(request, str(current_user.id))
    await require_service_access(db, current_user, ICHING_SERVICE_SLUG)

    result = {"question": payload.question, **cast_hexagram()}

    if payload.interpret:
        result["ai_interpretation"] = await interpret_or_503(
            request, current_user, ReadingType.ICHING, result, payload.question
        )

    if payload.save:
        reading = await save_reading(db, current_user.id, ReadingType.ICHING, result)
        result["reading_id"] = str(reading.id)

    return result


@router.get("/hexagrams/{number}")
async def get_hexagram(number: int = Path(ge=1, le=64)) -> dict[str, Any]:
    """Hexagram interpretation by King Wen number."""
    cache_key = f"{CACHE_HEXAGRAM_PREFIX}{number}"
    cached = await cache_get_json(cache_key)
    if cached is not None:
        return cached

    try:
        result = interpret_hexagram(number)
    except DivinationInputError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    await cache_set_json(cache_key, result, settings.cache_ttl_hexagram)
    return result
