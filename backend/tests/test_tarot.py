"""Tests for the tarot deck, spreads and card interpretation."""

import random

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from app.services.divination import DivinationInputError
from app.services.divination.holistic import generate_holistic_analysis
from app.services.divination.tarot import (
    DECK,
    SPREADS,
    draw_cards,
    get_card,
    interpret_cards,
    perform_reading,
    summarize_cards,
)


class TestDeck:
    """The 78-card deck."""

    def test_deck_size(self):
        assert len(DECK) == 78

    def test_arcana_split(self):
        major = [c for c in DECK if c.arcana == "major"]
        minor = [c for c in DECK if c.arcana == "minor"]
        assert len(major) == 22
        assert len(minor) == 56

    def test_minor_suits(self):
        suits = {c.suit for c in DECK if c.arcana == "minor"}
        assert suits == {"wands", "cups", "swords", "pentacles"}
        for suit in suits:
            assert len([c for c in DECK if c.suit == suit]) == 14

    def test_names_unique(self):
        assert len({c.name for c in DECK}) == 78

    def test_every_card_has_both_meanings(self):
        for card in DECK:
            assert card.upright
            assert card.reversed

    def test_lookup_is_case_insensitive(self):
        assert get_card("the fool").name == "The Fool"
        assert get_card("  THE MAGICIAN ").name == "The Magician"

    def test_unknown_card_raises(self):
        with pytest.raises(DivinationInputError):
            get_card("The Programmer")


class TestSpreads:
    """Spread definitions and gating slugs."""

    def test_three_card_spread_is_free(self):
        spread = SPREADS["three"]
        assert spread.positions == ("past", "present", "future")
        assert spread.service_slug is None

    def test_paid_spreads(self):
        assert len(SPREADS["five"].positions) == 5
        assert SPREADS["five"].service_slug == "five-card-tarot"
        assert len(SPREADS["ten"].positions) == 10
        assert SPREADS["ten"].service_slug == "ten-card-tarot"

    def test_unknown_spread_raises(self):
        with pytest.raises(DivinationInputError):
            perform_reading("seven")


class TestDrawing:
    """Drawing cards."""

    @given(st.integers(min_value=1, max_value=78), st.integers(min_value=0, max_value=10_000))
    @settings(max_examples=100)
    def test_draw_without_replacement(self, count, seed):
        drawn = draw_cards(count, random.Random(seed))
        assert len(drawn) == count
        assert len({card.name for card, _ in drawn}) == count

    @pytest.mark.parametrize("count", [0, 79, -1])
    def test_draw_count_bounds(self, count):
        with pytest.raises(DivinationInputError):
            draw_cards(count)

    def test_reversal_rate_is_about_half(self):
        rng = random.Random(1234)
        reversed_count = sum(
            1 for _ in range(200) for _, is_reversed in draw_cards(10, rng) if is_reversed
        )
        assert 800 < reversed_count < 1200

    @pytest.mark.parametrize("spread_type", ["three", "five", "ten"])
    def test_reading_fills_every_position(self, spread_type):
        result = perform_reading(spread_type, "What next?", random.Random(3))

        positions = [card["position"] for card in result["cards"]]
        assert positions == list(SPREADS[spread_type].positions)
        assert result["question"] == "What next?"
        assert result["overall"]
        for card in result["cards"]:
            assert card["name"] in card["meaning"]
            assert card["position"] in card["meaning"]


class TestInterpretation:
    """Interpreting client-supplied cards."""

    def test_interpret_cards(self):
        result = interpret_cards([
            {"name": "The Sun", "reversed": False, "position": "present"},
            {"name": "Three of Cups", "reversed": True},
        ])

        assert [c["name"] for c in result["cards"]] == ["The Sun", "Three of Cups"]
        assert "upright" in result["cards"][0]["meaning"]
        assert "reversed" in result["cards"][1]["meaning"]
        assert result["overall"]

    def test_empty_list_raises(self):
        with pytest.raises(DivinationInputError):
            interpret_cards([])

    def test_summary_all_upright(self):
        cards = [{"reversed": False, "arcana": "minor"}] * 3
        assert "upright" in summarize_cards(cards)

    def test_summary_mostly_reversed_major(self):
        cards = [{"reversed": True, "arcana": "major"}] * 3
        summary = summarize_cards(cards)
        assert "reversed" in summary
        assert "Major arcana" in summary


class TestHolisticAnalysis:
    """Combined numerology, tarot and I Ching analysis."""

    def test_numerology_only(self):
        result = generate_holistic_analysis("1990-05-15")
        assert result["numerology"]["life_path_number"] == 3
        assert result["tarot"] is None
        assert result["iching"] is None
        assert "Life path 3" in result["summary"]

    def test_all_parts(self):
        result = generate_holistic_analysis(
            "1990-05-15",
            name="John",
            tarot_cards=[{"name": "The Star", "reversed": False}],
            hexagram_number=11,
        )
        assert result["tarot"]["cards"][0]["name"] == "The Star"
        assert result["iching"]["number"] == 11
        assert "Expression 2" in result["summary"]
        assert result["iching"]["name"] in result["summary"]

    def test_invalid_hexagram_raises(self):
        with pytest.raises(DivinationInputError):
            generate_holistic_analysis("1990-05-15", hexagram_number=99)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
