"""Tests for the numerology engine.

Covers life path reduction (including master numbers), the Pythagorean name
numbers and life path compatibility.
"""

from datetime import date, timedelta

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from app.services.divination import DivinationInputError
from app.services.divination.numerology import (
    MASTER_NUMBERS,
    calculate_compatibility,
    calculate_expression_number,
    calculate_life_path_number,
    calculate_personality_number,
    calculate_soul_urge_number,
    compatibility_score,
    generate_numerology_analysis,
    reduce_number,
)


def birth_dates() -> st.SearchStrategy[str]:
    """Generate valid YYYY-MM-DD birth dates."""
    return st.dates(min_value=date(1900, 1, 1), max_value=date(2099, 12, 31)).map(
        lambda d: d.isoformat()
    )


class TestLifePathNumber:
    """Life path number from a birth date."""

    def test_reduces_to_single_digit(self):
        # 1+9+9+0+0+5+1+5 = 30 -> 3
        assert calculate_life_path_number("1990-05-15") == 3

    def test_keeps_master_number_11(self):
        # 1+9+8+7+1+1+2+9 = 38 -> 11
        assert calculate_life_path_number("1987-11-29") == 11

    def test_keeps_master_number_22(self):
        # 1+9+8+0+1+2+0+1 = 22
        assert calculate_life_path_number("1980-12-01") == 22

    def test_small_sum_is_unchanged(self):
        assert calculate_life_path_number("2000-01-01") == 4

    @pytest.mark.parametrize("value", ["1990/05/15", "15-05-1990", "19900515", "", "1990-5-15"])
    def test_rejects_bad_format(self, value):
        with pytest.raises(DivinationInputError):
            calculate_life_path_number(value)

    @pytest.mark.parametrize("value", ["2023-02-30", "2023-13-01", "2021-02-29"])
    def test_rejects_impossible_dates(self, value):
        with pytest.raises(DivinationInputError):
            calculate_life_path_number(value)

    @given(birth_dates())
    @settings(max_examples=100)
    def test_result_is_single_digit_or_master(self, birth_date):
        """Every valid date reduces to 1-9 or a master number."""
        number = calculate_life_path_number(birth_date)
        assert 1 <= number <= 9 or number in MASTER_NUMBERS


class TestReduceNumber:
    """Digit-sum reduction."""

    @given(st.integers(min_value=0, max_value=10_000))
    @settings(max_examples=100)
    def test_reduction_is_idempotent(self, number):
        reduced = reduce_number(number)
        assert reduce_number(reduced) == reduced

    def test_master_numbers_are_kept(self):
        assert reduce_number(11) == 11
        assert reduce_number(22) == 22

    def test_33_is_reduced(self):
        assert reduce_number(33) == 6


class TestNameNumbers:
    """Expression, soul urge and personality numbers."""

    def test_expression_sums_letter_values(self):
        # a=1 b=2 c=3
        assert calculate_expression_number("abc") == 6

    def test_name_numbers_for_john(self):
        # j=1 o=6 h=8 n=5
        assert calculate_expression_number("John") == 2
        assert calculate_soul_urge_number("John") == 6
        assert calculate_personality_number("John") == 5

    def test_non_letters_are_ignored(self):
        assert calculate_expression_number("J-o h'n 42") == calculate_expression_number("John")

    def test_y_counts_as_vowel(self):
        # y=7
        assert calculate_soul_urge_number("y") == 7
        assert calculate_personality_number("y") == 0

    def test_no_vowels_gives_zero_soul_urge(self):
        assert calculate_soul_urge_number("bcd") == 0

    def test_case_insensitive(self):
        assert calculate_expression_number("MARY") == calculate_expression_number("mary")


class TestNumerologyAnalysis:
    """Full analysis output."""

    def test_birth_date_only(self):
        result = generate_numerology_analysis("1990-05-15")

        assert result["life_path_number"] == 3
        assert "expression_number" not in result
        assert set(result["interpretations"]) == {"life_path"}

    def test_with_name(self):
        result = generate_numerology_analysis("1990-05-15", "John")

        assert result["expression_number"] == 2
        assert result["soul_urge_number"] == 6
        assert result["personality_number"] == 5
        assert set(result["interpretations"]) == {"life_path", "destiny", "soul_urge", "personality"}
        assert all(text for text in result["interpretations"].values())

    def test_master_number_has_interpretation(self):
        result = generate_numerology_analysis("1987-11-29")
        assert "No interpretation" not in result["interpretations"]["life_path"]


class TestCompatibility:
    """Life path compatibility."""

    def test_score_wraps_to_nine(self):
        assert compatibility_score(4, 5) == 9

    def test_score_uses_remainder(self):
        assert compatibility_score(3, 3) == 6

    def test_is_deterministic(self):
        first = calculate_compatibility("1990-05-15", "1987-11-29")
        second = calculate_compatibility("1990-05-15", "1987-11-29")
        assert first == second

    def test_result_shape(self):
        result = calculate_compatibility("1990-05-15", "2000-01-01")

        assert result["person1"]["life_path_number"] == 3
        assert result["person2"]["life_path_number"] == 4
        # (3 + 4) % 9 = 7
        assert result["score"] == 7
        assert result["level"] == "good"
        assert result["advice"]

    def test_invalid_date_raises(self):
        with pytest.raises(DivinationInputError):
            calculate_compatibility("1990-05-15", "not-a-date")

    @given(birth_dates(), birth_dates())
    @settings(max_examples=100)
    def test_score_in_range_and_symmetric(self, first, second):
        result = calculate_compatibility(first, second)
        assert 1 <= result["score"] <= 10
        assert result["score"] == calculate_compatibility(second, first)["score"]
        assert result["level"] in {"excellent", "good", "moderate", "challenging"}

    def test_level_thresholds(self):
        levels = {}
        start = date(2000, 1, 1)
        for offset in range(30):
            other = (start + timedelta(days=offset)).isoformat()
            result = calculate_compatibility(start.isoformat(), other)
            levels[result["score"]] = result["level"]

        for score, level in levels.items():
            if score >= 9:
                assert level == "excellent"
            elif score >= 7:
                assert level == "good"
            elif score >= 5:
                assert level == "moderate"
            else:
                assert level == "challenging"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
