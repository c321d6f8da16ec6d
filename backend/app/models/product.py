"""Storefront product model."""

import enum
from decimal import Decimal

from sqlalchemy import Boolean, Float, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel, str_enum


class ProductCategory(str, enum.Enum):
    """Product category."""

    CRYSTAL = "crystal"
    BOOK = "book"
    ACCESSORY = "accessory"
    COURSE = "course"
    CONSULTATION = "consultation"


class Product(BaseModel):
    """A product matched against divination results for recommendations."""

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), unique=True, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category: Mapped[ProductCategory] = mapped_column(
        str_enum(ProductCategory, length=16),
        nullable=False,
        index=True,
    )
    tags: Mapped[list[str]] = mapped_column(ARRAY(String(50)), default=list, nullable=False)
    numerology_numbers: Mapped[list[int]] = mapped_column(
        ARRAY(Integer),
        default=list,
        nullable=False,
    )
    tarot_cards: Mapped[list[str]] = mapped_column(
        ARRAY(String(50)),
        default=list,
        nullable=False,
    )
    hexagram_numbers: Mapped[list[int]] = mapped_column(
        ARRAY(Integer),
        default=list,
        nullable=False,
    )
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    is_popular: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    in_stock: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Product {self.slug}>"
