"""Product recommendations from divination results."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import CurrentUser, DbSession, OptionalUser
from app.schemas.product import ProductResponse, Recommendation, RecommendationRequest
from app.services.recommendation import (
    ProductNotFoundError,
    RecommendationParams,
    get_recommendation_service,
)

router = APIRouter()


def _to_response(items: list[dict]) -> list[Recommendation]:
    return [
        Recommendation(
            product=ProductResponse.model_validate(item["product"]),
            score=item["score"],
            reason=item["reason"],
        )
        for item in items
    ]


@router.post("", response_model=list[Recommendation])
async def recommend(payload: RecommendationRequest, db: DbSession, user: OptionalUser) -> list[Recommendation]:
    """Recommend products for explicit divination results.

    Signed-in callers also get matches from their reading history.
    """
    params = RecommendationParams(
        life_path=payload.life_path,
        expression=payload.expression,
        tarot_cards=payload.tarot_cards,
        hexagram_name=payload.hexagram_name,
        hexagram_number=payload.hexagram_number,
    )
    items = await get_recommendation_service().recommend(
        db, params, limit=payload.limit, user_id=user.id if user else None
    )
    return _to_response(items)


@router.get("/personalized", response_model=list[Recommendation])
async def personalized(
    current_user: CurrentUser,
    db: DbSession,
    limit: int = Query(default=5, ge=1, le=20),
) -> list[Recommendation]:
    """Recommendations from the caller's latest reading of each type."""
    items = await get_recommendation_service().personalized(db, current_user.id, limit=limit)
    return _to_response(items)


@router.get("/related", response_model=list[Recommendation])
async def related(
    db: DbSession,
    product_id: UUID | None = Query(default=None, alias="productId"),
    tags: str | None = Query(default=None, max_length=500),
    limit: int = Query(default=4, ge=1, le=20),
) -> list[Recommendation]:
    """Products related to a product or to comma-separated tags."""
    tag_list = [t for t in (tags or "").split(",") if t.strip()]
    if product_id is None and not tag_list:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="productId or tags is required",
        )

    try:
        items = await get_recommendation_service().related(
            db, product_id=product_id, tags=tag_list, limit=limit
        )
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _to_response(items)


@router.get("/popular", response_model=list[Recommendation])
async def popular(
    db: DbSession,
    limit: int = Query(default=5, ge=1, le=20),
) -> list[Recommendation]:
    items = await get_recommendation_service().popular(db, limit=limit)
    return _to_response(items)
