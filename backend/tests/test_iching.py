"""Tests for I Ching casting and the King Wen hexagram table."""

import random

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from app.services.divination import DivinationInputError
from app.services.divination.iching import (
    HEXAGRAMS,
    HEXAGRAMS_BY_STRUCTURE,
    cast_from_totals,
    cast_hexagram,
    get_hexagram_by_lines,
    interpret_hexagram,
    line_value,
    toss_line,
)


def line_totals() -> st.SearchStrategy[list[int]]:
    """Six coin totals, bottom line first."""
    return st.lists(st.sampled_from([6, 7, 8, 9]), min_size=6, max_size=6)


class TestHexagramTable:
    """The 64-hexagram table."""

    def test_has_all_64(self):
        assert sorted(HEXAGRAMS) == list(range(1, 65))

    def test_structures_are_unique(self):
        assert len(HEXAGRAMS_BY_STRUCTURE) == 64

    def test_every_entry_has_texts(self):
        for hexagram in HEXAGRAMS.values():
            assert hexagram.chinese
            assert hexagram.pinyin
            assert hexagram.name
            assert hexagram.judgement

    @pytest.mark.parametrize(
        "structure,number",
        [
            ("111111", 1),   # Heaven over Heaven
            ("000000", 2),   # Earth over Earth
            ("111000", 11),  # Earth over Heaven (Peace)
            ("000111", 12),  # Heaven over Earth (Standstill)
            ("101010", 63),  # Water over Fire (After Completion)
            ("010101", 64),  # Fire over Water (Before Completion)
        ],
    )
    def test_known_structures(self, structure, number):
        assert HEXAGRAMS_BY_STRUCTURE[structure].number == number

    def test_lookup_by_lines(self):
        assert get_hexagram_by_lines([1, 1, 1, 1, 1, 1]).number == 1

    def test_lookup_rejects_bad_lines(self):
        with pytest.raises(DivinationInputError):
            get_hexagram_by_lines([1, 1, 1])
        with pytest.raises(DivinationInputError):
            get_hexagram_by_lines([2, 1, 1, 1, 1, 1])


class TestInterpretHexagram:
    """Single hexagram interpretation."""

    def test_interpretation_includes_judgement(self):
        result = interpret_hexagram(1)
        assert result["number"] == 1
        assert result["judgement"] in result["interpretation"]
        assert result["upper_trigram"]["key"] == "qian"

    @pytest.mark.parametrize("number", [0, 65, -1, 100])
    def test_out_of_range_raises(self, number):
        with pytest.raises(DivinationInputError):
            interpret_hexagram(number)


class TestCasting:
    """Three-coin casting."""

    def test_line_values(self):
        assert line_value(6) == 0
        assert line_value(7) == 1
        assert line_value(8) == 0
        assert line_value(9) == 1

    def test_invalid_total_raises(self):
        with pytest.raises(DivinationInputError):
            line_value(5)

    def test_toss_line_range(self):
        rng = random.Random(7)
        assert all(6 <= toss_line(rng) <= 9 for _ in range(200))

    def test_no_changing_lines_has_no_relating_hexagram(self):
        result = cast_from_totals([7, 7, 7, 7, 7, 7])
        assert result["hexagram"]["number"] == 1
        assert result["changing_lines"] == []
        assert result["changed_hexagram"] is None

    def test_all_old_yang_changes_to_receptive(self):
        result = cast_from_totals([9, 9, 9, 9, 9, 9])
        assert result["hexagram"]["number"] == 1
        assert result["changing_lines"] == [1, 2, 3, 4, 5, 6]
        assert result["changed_hexagram"]["number"] == 2

    def test_changing_positions_are_one_based(self):
        result = cast_from_totals([6, 7, 8, 9, 7, 8])
        assert result["changing_lines"] == [1, 4]
        assert [line["type"] for line in result["lines"]] == [
            "old yin", "young yang", "young yin", "old yang", "young yang", "young yin",
        ]

    def test_requires_six_totals(self):
        with pytest.raises(DivinationInputError):
            cast_from_totals([7, 7, 7])

    def test_seeded_cast_is_reproducible(self):
        assert cast_hexagram(random.Random(42)) == cast_hexagram(random.Random(42))

    @given(line_totals())
    @settings(max_examples=100)
    def test_relating_hexagram_flips_changing_lines(self, totals):
        """The relating hexagram differs from the primary exactly at changing lines."""
        result = cast_from_totals(totals)
        primary = result["hexagram"]["structure"]
        changing = result["changing_lines"]

        if not changing:
            assert result["changed_hexagram"] is None
            return

        relating = result["changed_hexagram"]["structure"]
        for position in range(1, 7):
            differs = primary[position - 1] != relating[position - 1]
            assert differs == (position in changing)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
