"""Product recommendations driven by divination results and history."""

import logging
import re
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.product import Product
from app.models.reading import Reading, ReadingType

logger = logging.getLogger(__name__)

STOPWORDS = frozenset(
    {"the", "and", "or", "a", "an", "in", "on", "at", "to", "for", "with", "by", "of", "from", "this", "that"}
)
MAX_KEYWORDS = 10
HISTORY_WINDOW = 20


@dataclass
class RecommendationParams:
    """Divination results used to score products."""

    life_path: int | None = None
    expression: int | None = None
    tarot_cards: list[str] = field(default_factory=list)
    hexagram_name: str | None = None
    hexagram_number: int | None = None

    def is_empty(self) -> bool:
        return not (
            self.life_path or self.expression or self.tarot_cards
            or self.hexagram_name or self.hexagram_number
        )


def as_tag(text: str) -> str:
    return re.sub(r"\s+", "_", text.strip().lower())


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """Most frequent words longer than three characters, stopwords removed."""
    words = re.sub(r"[^\w\s]", "", text.lower()).split()
    counts = Counter(w for w in words if len(w) > 3 and w not in STOPWORDS)
    return [word for word, _ in counts.most_common(limit)]


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _str_or_none(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def card_names(data: Any) -> list[str]:
    """Card names from stored tarot data, skipping entries without one.

    Cards may be stored as ``{"name": ...}`` objects or as bare names.
    """
    cards = data.get("cards") if isinstance(data, dict) else None
    if not isinstance(cards, list):
        return []
    names = []
    for card in cards:
        name = _str_or_none(card.get("name") if isinstance(card, dict) else card)
        if name is not None:
            names.append(name)
    return names


def hexagram_of(data: Any) -> tuple[str | None, int | None]:
    """Hexagram name and number from stored I Ching data.

    Casts keep the hexagram under ``"hexagram"``; lookups by number keep it at
    the top level. ``"hexagram"`` may also be stored as a bare number.
    """
    if not isinstance(data, dict):
        return None, None
    hexagram = data.get("hexagram", data)
    if isinstance(hexagram, dict):
        return _str_or_none(hexagram.get("name")), _int_or_none(hexagram.get("number"))
    return None, _int_or_none(hexagram)


def numerology_numbers(data: Any) -> tuple[int | None, int | None]:
    """Life path and expression numbers from stored numerology data."""
    if not isinstance(data, dict):
        return None, None
    return _int_or_none(data.get("life_path_number")), _int_or_none(data.get("expression_number"))


class ProductNotFoundError(Exception):
    def __init__(self, product_id: uuid.UUID):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class RecommendationService:
    """Scores products against divination results.

    Weights:
        life path +10, expression +8, tarot card tag +5 (title +3,
        description +2), hexagram tag +12 (title +3, description +2),
        popular +5, featured +7.
    """

    LIFE_PATH_WEIGHT = 10
    EXPRESSION_WEIGHT = 8
    TAROT_TAG_WEIGHT = 5
    HEXAGRAM_TAG_WEIGHT = 12
    TITLE_WEIGHT = 3
    DESCRIPTION_WEIGHT = 2
    POPULAR_WEIGHT = 5
    FEATURED_WEIGHT = 7

    def score_product(self, product: Product, params: RecommendationParams) -> int:
        tags = {t.lower() for t in product.tags or []}
        title = (product.name or "").lower()
        description = (product.description or "").lower()
        score = 0

        if params.life_path and (
            f"life_path_{params.life_path}" in tags
            or params.life_path in (product.numerology_numbers or [])
        ):
            score += self.LIFE_PATH_WEIGHT
        if params.expression and f"expression_{params.expression}" in tags:
            score += self.EXPRESSION_WEIGHT

        product_cards = {c.lower() for c in product.tarot_cards or []}
        for card in params.tarot_cards:
            card_name = card.lower()
            if as_tag(card) in tags or card_name in product_cards:
                score += self.TAROT_TAG_WEIGHT
            if card_name in title:
                score += self.TITLE_WEIGHT
            if card_name in description:
                score += self.DESCRIPTION_WEIGHT

        if params.hexagram_name or params.hexagram_number:
            name = (params.hexagram_name or "").lower()
            if (name and as_tag(name) in tags) or (
                params.hexagram_number in (product.hexagram_numbers or [])
            ):
                score += self.HEXAGRAM_TAG_WEIGHT
            if name and name in title:
                score += self.TITLE_WEIGHT
            if name and name in description:
                score += self.DESCRIPTION_WEIGHT

        if product.is_popular or "popular" in tags:
            score += self.POPULAR_WEIGHT
        if product.is_featured or "featured" in tags:
            score += self.FEATURED_WEIGHT
        return score

    def rank_products(
        self,
        products: list[Product],
        params: RecommendationParams,
    ) -> list[tuple[Product, int]]:
        """Products with a positive score, best first, each product once."""
        seen: set[uuid.UUID] = set()
        scored = []
        for product in products:
            if product.id in seen:
                continue
            seen.add(product.id)
            score = self.score_product(product, params)
            if score > 0:
                scored.append((product, score))
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored

    async def _in_stock_products(self, db: AsyncSession) -> list[Product]:
        result = await db.execute(select(Product).where(Product.in_stock.is_(True)))
        return list(result.scalars().all())

    async def popular_products(self, db: AsyncSession, limit: int) -> list[Product]:
        result = await db.execute(
            select(Product)
            .where(Product.in_stock.is_(True))
            .order_by(Product.is_popular.desc(), Product.is_featured.desc(), Product.rating.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def related(
        self,
        db: AsyncSession,
        product_id: uuid.UUID | None = None,
        tags: list[str] | None = None,
        limit: int = 4,
    ) -> list[dict[str, Any]]:
        """Products sharing tags with a product or an explicit tag list.

        The source product itself is never returned. Ranked by shared tag
        count, padded with popular products.
        """
        wanted = {t.strip().lower() for t in tags or [] if t.strip()}
        products = await self._in_stock_products(db)
        if product_id is not None:
            source = next((p for p in products if p.id == product_id), None)
            if source is None:
                source = await db.get(Product, product_id)
            if source is None:
                raise ProductNotFoundError(product_id)
            wanted |= {t.lower() for t in source.tags or []}

        scored = []
        for product in products:
            if product.id == product_id:
                continue
            shared = len(wanted & {t.lower() for t in product.tags or []})
            if shared:
                scored.append((product, shared))
        scored.sort(key=lambda item: item[1], reverse=True)

        picks = [{"product": p, "score": s, "reason": "related"} for p, s in scored[:limit]]
        if len(picks) < limit:
            seen = {item["product"].id for item in picks}
            if product_id is not None:
                seen.add(product_id)
            for product in await self.popular_products(db, limit + 1):
                if len(picks) >= limit:
                    break
                if product.id not in seen:
                    seen.add(product.id)
                    picks.append({"product": product, "score": 0, "reason": "popular"})
        return picks

    async def popular(self, db: AsyncSession, limit: int = 5) -> list[dict[str, Any]]:
        return [
            {"product": product, "score": 0, "reason": "popular"}
            for product in await self.popular_products(db, limit)
        ]

    async def history_keywords(self, db: AsyncSession, user_id: uuid.UUID) -> list[str]:
        result = await db.execute(
            select(Reading)
            .where(Reading.user_id == user_id)
            .order_by(Reading.created_at.desc())
            .limit(HISTORY_WINDOW)
        )
        texts = []
        for reading in result.scalars().all():
            if reading.type == ReadingType.TAROT:
                names = " ".join(as_tag(name) for name in card_names(reading.data))
                texts.append(f"tarot {names}")
            elif reading.type == ReadingType.NUMEROLOGY:
                life_path, expression = numerology_numbers(reading.data)
                parts = ["numerology"]
                if life_path is not None:
                    parts.append(f"life_path_{life_path}")
                if expression is not None:
                    parts.append(f"expression_{expression}")
                texts.append(" ".join(parts))
            elif reading.type == ReadingType.ICHING:
                name, _ = hexagram_of(reading.data)
                texts.append(f"iching {as_tag(name or '')}")
            else:
                texts.append(reading.type.value)
        return extract_keywords(" ".join(texts))

    async def recommend(
        self,
        db: AsyncSession,
        params: RecommendationParams,
        limit: int = 5,
        user_id: uuid.UUID | None = None,
    ) -> list[dict[str, Any]]:
        """Parameter matches, then history matches, padded with popular products."""
        products = await self._in_stock_products(db)
        ranked = self.rank_products(products, params)[: limit * 2]
        picks: list[tuple[Product, int, str]] = [(p, s, "divination") for p, s in ranked]

        if user_id is not None:
            keywords = set(await self.history_keywords(db, user_id))
            if keywords:
                for product in products:
                    if keywords & {t.lower() for t in product.tags or []}:
                        picks.append((product, 0, "history"))

        seen: set[uuid.UUID] = set()
        unique: list[tuple[Product, int, str]] = []
        for product, score, reason in picks:
            if product.id not in seen:
                seen.add(product.id)
                unique.append((product, score, reason))

        if len(unique) < limit:
            for product in await self.popular_products(db, limit):
                if product.id not in seen:
                    seen.add(product.id)
                    unique.append((product, 0, "popular"))

        return [
            {"product": product, "score": score, "reason": reason}
            for product, score, reason in unique[:limit]
        ]

    async def personalized(self, db: AsyncSession, user_id: uuid.UUID, limit: int = 5) -> list[dict[str, Any]]:
        """Recommendations from the user's latest reading of each type."""
        params = RecommendationParams()
        for reading_type in (ReadingType.TAROT, ReadingType.NUMEROLOGY, ReadingType.ICHING):
            result = await db.execute(
                select(Reading)
                .where(Reading.user_id == user_id, Reading.type == reading_type)
                .order_by(Reading.created_at.desc())
                .limit(1)
            )
            reading = result.scalar_one_or_none()
            if reading is None:
                continue
            if reading_type == ReadingType.TAROT:
                params.tarot_cards = card_names(reading.data)[:3]
            elif reading_type == ReadingType.NUMEROLOGY:
                params.life_path, params.expression = numerology_numbers(reading.data)
            else:
                params.hexagram_name, params.hexagram_number = hexagram_of(reading.data)

        logger.debug(f"Personalized recommendation params for {user_id}: {params}")
        return await self.recommend(db, params, limit=limit, user_id=user_id)


_recommendation_service: RecommendationService | None = None


def get_recommendation_service() -> RecommendationService:
    """Get or create the recommendation service singleton."""
    global _recommendation_service
    if _recommendation_service is None:
        _recommendation_service = RecommendationService()
    return _recommendation_service
