"""Tests for product recommendation scoring."""

import uuid
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from app.models.product import Product, ProductCategory
from app.models.reading import ReadingType
from app.services.recommendation import (
    ProductNotFoundError,
    RecommendationParams,
    RecommendationService,
    card_names,
    extract_keywords,
    hexagram_of,
    numerology_numbers,
)


def make_product(**overrides) -> Product:
    values = {
        "id": uuid.uuid4(),
        "name": "Plain Candle",
        "slug": f"product-{uuid.uuid4().hex[:8]}",
        "description": "",
        "price": Decimal("9.99"),
        "category": ProductCategory.ACCESSORY,
        "tags": [],
        "numerology_numbers": [],
        "tarot_cards": [],
        "hexagram_numbers": [],
        "rating": 4.0,
        "is_popular": False,
        "is_featured": False,
        "in_stock": True,
    }
    values.update(overrides)
    return Product(**values)


@pytest.fixture
def service() -> RecommendationService:
    return RecommendationService()


class TestScoreProduct:
    """Weights applied to a single product."""

    def test_life_path_tag(self, service):
        product = make_product(tags=["life_path_7"])
        assert service.score_product(product, RecommendationParams(life_path=7)) == 10

    def test_life_path_number_list(self, service):
        product = make_product(numerology_numbers=[3])
        assert service.score_product(product, RecommendationParams(life_path=3)) == 10

    def test_expression_tag(self, service):
        product = make_product(tags=["expression_5"])
        assert service.score_product(product, RecommendationParams(expression=5)) == 8

    def test_tarot_card_tag_title_and_description(self, service):
        product = make_product(
            name="The Star Candle",
            description="Light it when you draw The Star.",
            tags=["the_star"],
        )
        params = RecommendationParams(tarot_cards=["The Star"])
        assert service.score_product(product, params) == 5 + 3 + 2

    def test_hexagram_number_and_title(self, service):
        product = make_product(name="Peace Journal", hexagram_numbers=[11])
        params = RecommendationParams(hexagram_name="Peace", hexagram_number=11)
        assert service.score_product(product, params) == 12 + 3

    def test_popular_and_featured(self, service):
        product = make_product(is_popular=True, is_featured=True)
        assert service.score_product(product, RecommendationParams()) == 5 + 7

    def test_no_match(self, service):
        product = make_product(tags=["life_path_1"])
        assert service.score_product(product, RecommendationParams(life_path=2)) == 0


class TestRankProducts:
    """Ranking a list of products."""

    def test_sorted_by_score_and_positive_only(self, service):
        low = make_product(tags=["expression_5"])
        high = make_product(tags=["life_path_7", "expression_5"])
        none = make_product()

        ranked = service.rank_products([low, none, high], RecommendationParams(life_path=7, expression=5))

        assert [p.id for p, _ in ranked] == [high.id, low.id]
        assert [s for _, s in ranked] == [18, 8]

    def test_duplicates_counted_once(self, service):
        product = make_product(tags=["life_path_7"])
        ranked = service.rank_products([product, product], RecommendationParams(life_path=7))
        assert len(ranked) == 1


class TestRecommend:
    """Recommendation padding with popular products."""

    @pytest.mark.asyncio
    async def test_pads_with_popular_products(self, service):
        match = make_product(tags=["life_path_7"])
        popular = make_product(name="Best Seller", is_popular=False)

        service._in_stock_products = AsyncMock(return_value=[match])
        service.popular_products = AsyncMock(return_value=[match, popular])

        items = await service.recommend(MagicMock(), RecommendationParams(life_path=7), limit=2)

        assert [item["product"].id for item in items] == [match.id, popular.id]
        assert items[0]["reason"] == "divination"
        assert items[1]["reason"] == "popular"
        assert items[1]["score"] == 0

    @pytest.mark.asyncio
    async def test_respects_limit(self, service):
        products = [make_product(tags=["life_path_7"]) for _ in range(10)]
        service._in_stock_products = AsyncMock(return_value=products)
        service.popular_products = AsyncMock(return_value=[])

        items = await service.recommend(MagicMock(), RecommendationParams(life_path=7), limit=3)
        assert len(items) == 3


json_values = st.recursive(
    st.none() | st.booleans() | st.integers() | st.text(max_size=10),
    lambda children: st.lists(children, max_size=4) | st.dictionaries(st.text(max_size=10), children, max_size=4),
    max_leaves=10,
)


def stored_reading(reading_type: ReadingType, data) -> SimpleNamespace:
    return SimpleNamespace(type=reading_type, data=data)


def db_with_history(readings: list) -> AsyncMock:
    mock_db = AsyncMock()
    result = MagicMock()
    result.scalars.return_value.all.return_value = readings
    mock_db.execute.return_value = result
    return mock_db


class TestStoredReadingData:
    """Reading saved by users can hold any JSON object."""

    def test_card_names_from_engine_output(self):
        data = {"cards": [{"name": "The Fool", "position": "past"}, {"name": "The Star"}]}
        assert card_names(data) == ["The Fool", "The Star"]

    def test_card_names_accept_bare_strings(self):
        assert card_names({"cards": ["The Fool", "  "]}) == ["The Fool"]

    @pytest.mark.parametrize(
        "data",
        [{"cards": [{"name": None}]}, {"cards": [{"name": 3}, 7, None]}, {"cards": "The Fool"}, {}, []],
    )
    def test_card_names_skip_malformed_entries(self, data):
        assert card_names(data) == []

    def test_hexagram_from_cast(self):
        assert hexagram_of({"hexagram": {"name": "Peace", "number": 11}}) == ("Peace", 11)

    def test_hexagram_from_lookup(self):
        assert hexagram_of({"name": "Peace", "number": 11, "chinese": "泰"}) == ("Peace", 11)

    def test_hexagram_as_bare_number(self):
        assert hexagram_of({"hexagram": 11}) == (None, 11)

    @pytest.mark.parametrize(
        "data",
        [{"hexagram": "Peace"}, {"hexagram": None}, {"hexagram": {"name": 1, "number": "11"}}, {"hexagram": True}],
    )
    def test_hexagram_malformed(self, data):
        assert hexagram_of(data) == (None, None)

    def test_numerology_numbers(self):
        assert numerology_numbers({"life_path_number": 3, "expression_number": 7}) == (3, 7)
        assert numerology_numbers({"life_path_number": "3", "expression_number": None}) == (None, None)

    @given(json_values)
    @settings(max_examples=100)
    def test_any_json_is_tolerated(self, data):
        assert all(isinstance(name, str) for name in card_names(data))
        name, number = hexagram_of(data)
        assert name is None or isinstance(name, str)
        assert number is None or isinstance(number, int)
        life_path, expression = numerology_numbers(data)
        assert life_path is None or isinstance(life_path, int)


class TestHistoryKeywords:
    """Keywords from a user's recent readings."""

    @pytest.mark.asyncio
    async def test_engine_shaped_history(self, service):
        mock_db = db_with_history([
            stored_reading(ReadingType.TAROT, {"cards": [{"name": "The Star"}]}),
            stored_reading(ReadingType.NUMEROLOGY, {"life_path_number": 7, "expression_number": 5}),
            stored_reading(ReadingType.ICHING, {"hexagram": {"name": "Peace", "number": 11}}),
        ])

        keywords = await service.history_keywords(mock_db, uuid.uuid4())

        assert {"the_star", "life_path_7", "expression_5", "peace"} <= set(keywords)

    @pytest.mark.asyncio
    async def test_malformed_history_is_skipped(self, service):
        mock_db = db_with_history([
            stored_reading(ReadingType.TAROT, {"cards": ["The Fool"]}),
            stored_reading(ReadingType.TAROT, {"cards": [{"name": None}]}),
            stored_reading(ReadingType.ICHING, {"hexagram": 11}),
            stored_reading(ReadingType.NUMEROLOGY, {"life_path_number": {"x": 1}}),
        ])

        keywords = await service.history_keywords(mock_db, uuid.uuid4())

        assert "the_fool" in keywords
        assert not any("none" in keyword for keyword in keywords)


class TestPersonalized:
    """Parameters taken from the latest reading of each type."""

    @pytest.mark.asyncio
    async def test_malformed_latest_readings(self, service):
        latest = [
            stored_reading(ReadingType.TAROT, {"cards": ["The Fool", {"name": None}, {"name": "The Sun"}]}),
            stored_reading(ReadingType.NUMEROLOGY, {"life_path_number": "seven"}),
            stored_reading(ReadingType.ICHING, {"hexagram": 11}),
        ]
        mock_db = AsyncMock()
        results = []
        for reading in latest:
            result = MagicMock()
            result.scalar_one_or_none.return_value = reading
            results.append(result)
        mock_db.execute.side_effect = results
        service.recommend = AsyncMock(return_value=[])

        await service.personalized(mock_db, uuid.uuid4())

        params = service.recommend.call_args.args[1]
        assert params.tarot_cards == ["The Fool", "The Sun"]
        assert params.life_path is None
        assert params.hexagram_name is None
        assert params.hexagram_number == 11

    def test_string_card_names_score(self, service):
        product = make_product(tags=["the_fool"])
        assert service.score_product(product, RecommendationParams(tarot_cards=card_names({"cards": ["The Fool"]}))) == 5


class TestRelated:
    """Products sharing tags."""

    @pytest.mark.asyncio
    async def test_by_product_excludes_source(self, service):
        source = make_product(tags=["tarot", "the_star"])
        close = make_product(tags=["tarot", "the_star"])
        loose = make_product(tags=["tarot"])
        other = make_product(tags=["iching"])
        service._in_stock_products = AsyncMock(return_value=[source, loose, close, other])
        service.popular_products = AsyncMock(return_value=[])

        items = await service.related(MagicMock(), product_id=source.id)

        assert [item["product"].id for item in items] == [close.id, loose.id]
        assert [item["score"] for item in items] == [2, 1]
        assert all(item["reason"] == "related" for item in items)

    @pytest.mark.asyncio
    async def test_by_tags_pads_with_popular(self, service):
        match = make_product(tags=["crystal"])
        popular = make_product(is_popular=True)
        service._in_stock_products = AsyncMock(return_value=[match, popular])
        service.popular_products = AsyncMock(return_value=[popular, match])

        items = await service.related(MagicMock(), tags=[" Crystal ", "candle"], limit=4)

        assert [item["product"].id for item in items] == [match.id, popular.id]
        assert items[1]["reason"] == "popular"

    @pytest.mark.asyncio
    async def test_padding_never_returns_source(self, service):
        source = make_product(tags=["rare"])
        service._in_stock_products = AsyncMock(return_value=[source])
        service.popular_products = AsyncMock(return_value=[source])

        assert await service.related(MagicMock(), product_id=source.id) == []

    @pytest.mark.asyncio
    async def test_unknown_product(self, service):
        mock_db = AsyncMock()
        mock_db.get.return_value = None
        service._in_stock_products = AsyncMock(return_value=[])
        missing = uuid.uuid4()

        with pytest.raises(ProductNotFoundError) as exc_info:
            await service.related(mock_db, product_id=missing)
        assert exc_info.value.product_id == missing


class TestPopular:
    @pytest.mark.asyncio
    async def test_popular(self, service):
        products = [make_product(is_popular=True), make_product()]
        service.popular_products = AsyncMock(return_value=products)

        items = await service.popular(MagicMock(), limit=2)

        service.popular_products.assert_awaited_once()
        assert [item["reason"] for item in items] == ["popular", "popular"]


class TestExtractKeywords:
    """Keyword extraction from reading text."""

    def test_drops_short_words_and_stopwords(self):
        keywords = extract_keywords("The tarot and the moon, with tarot cards from this deck")
        assert keywords[0] == "tarot"
        assert "the" not in keywords
        assert "with" not in keywords
        assert "and" not in keywords

    def test_limit(self):
        text = " ".join(f"word{i}" for i in range(30))
        assert len(extract_keywords(text)) == 10


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
