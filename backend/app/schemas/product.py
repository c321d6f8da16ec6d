"""Product and recommendation schemas."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.product import ProductCategory
from app.schemas.common import BaseSchema


class ProductResponse(BaseSchema):
    id: UUID
    name: str
    slug: str
    description: str
    price: Decimal
    category: ProductCategory
    tags: list[str]
    image_url: str | None = None
    rating: float
    in_stock: bool


class RecommendationRequest(BaseModel):
    life_path: int | None = Field(default=None, ge=1, le=33)
    expression: int | None = Field(default=None, ge=1, le=33)
    tarot_cards: list[str] = Field(default_factory=list, max_length=10)
    hexagram_name: str | None = Field(default=None, max_length=100)
    hexagram_number: int | None = Field(default=None, ge=1, le=64)
    limit: int = Field(default=5, ge=1, le=20)


class Recommendation(BaseModel):
    product: ProductResponse
    score: int
    reason: str
