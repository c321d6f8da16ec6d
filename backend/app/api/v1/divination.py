"""Divination calculation endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status

from app.api.deps import OptionalUser
from app.core.rate_limit import divination_rate_limit
from app.schemas.divination import (
    CompatibilityRequest,
    HolisticRequest,
    IChingRequest,
    NumerologyRequest,
    TarotInterpretRequest,
)
from app.services.divination import (
    DivinationInputError,
    calculate_compatibility,
    cast_hexagram,
    generate_holistic_analysis,
    generate_numerology_analysis,
    interpret_cards,
    interpret_hexagram,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _limit(request: Request, user: OptionalUser) -> None:
    divination_rate_limit(request, str(user.id) if user else None)


def _bad_input(e: DivinationInputError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/numerology")
async def numerology(payload: NumerologyRequest, request: Request, user: OptionalUser) -> dict[str, Any]:
    """Life path and, with a name, expression, soul urge and personality numbers."""
    _limit(request, user)
    try:
        return generate_numerology_analysis(payload.birth_date, payload.name)
    except DivinationInputError as e:
        raise _bad_input(e)


@router.post("/tarot")
async def tarot(payload: TarotInterpretRequest, request: Request, user: OptionalUser) -> dict[str, Any]:
    """Interpret cards drawn on the client."""
    _limit(request, user)
    try:
        return interpret_cards([card.model_dump() for card in payload.cards])
    except DivinationInputError as e:
        raise _bad_input(e)


@router.post("/iching")
async def iching(payload: IChingRequest, request: Request, user: OptionalUser) -> dict[str, Any]:
    """Interpret a hexagram by number, or cast a new one."""
    _limit(request, user)
    if payload.hexagram_number is None:
        return cast_hexagram()
    try:
        return interpret_hexagram(payload.hexagram_number)
    except DivinationInputError as e:
        raise _bad_input(e)


@router.post("/compatibility")
async def compatibility(
    payload: CompatibilityRequest,
    request: Request,
    user: OptionalUser,
) -> dict[str, Any]:
    _limit(request, user)
    try:
        return calculate_compatibility(payload.birth_date_1, payload.birth_date_2)
    except DivinationInputError as e:
        raise _bad_input(e)


@router.post("/holistic")
async def holistic(payload: HolisticRequest, request: Request, user: OptionalUser) -> dict[str, Any]:
    """Numerology combined with optional tarot cards and hexagram."""
    _limit(request, user)
    cards = [card.model_dump() for card in payload.tarot_cards] if payload.tarot_cards else None
    try:
        return generate_holistic_analysis(
            payload.birth_date,
            payload.name,
            tarot_cards=cards,
            hexagram_number=payload.hexagram_number,
        )
    except DivinationInputError as e:
        raise _bad_input(e)
