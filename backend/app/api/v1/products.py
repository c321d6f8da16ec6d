"""Storefront product endpoints."""

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, select

from app.api.deps import DbSession
from app.models.product import Product, ProductCategory
from app.schemas.common import PaginatedResponse, PaginationMeta
from app.schemas.product import ProductResponse

router = APIRouter()


@router.get("", response_model=PaginatedResponse[ProductResponse])
async def list_products(
    db: DbSession,
    category: ProductCategory | None = None,
    in_stock: bool | None = None,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[ProductResponse]:
    """List products, featured and popular first."""
    query = select(Product)
    if category is not None:
        query = query.where(Product.category == category)
    if in_stock is not None:
        query = query.where(Product.in_stock == in_stock)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = (
        query.order_by(Product.is_featured.desc(), Product.is_popular.desc(), Product.name)
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    result = await db.execute(query)

    return PaginatedResponse[ProductResponse](
        data=[ProductResponse.model_validate(p) for p in result.scalars().all()],
        pagination=PaginationMeta.build(page, per_page, total),
    )


@router.get("/{slug}", response_model=ProductResponse)
async def get_product(slug: str, db: DbSession) -> ProductResponse:
    result = await db.execute(select(Product).where(Product.slug == slug))
    product = result.scalar_one_or_none()
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )
    return ProductResponse.model_validate(product)
