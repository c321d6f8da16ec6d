"""Divination engines: numerology, I Ching, tarot and the combined analysis."""

from app.services.divination.errors import DivinationInputError
from app.services.divination.holistic import generate_holistic_analysis
from app.services.divination.iching import cast_hexagram, interpret_hexagram
from app.services.divination.numerology import (
    calculate_compatibility,
    calculate_life_path_number,
    generate_numerology_analysis,
)
from app.services.divination.tarot import SPREADS, interpret_cards, perform_reading

__all__ = [
    "DivinationInputError",
    "SPREADS",
    "calculate_compatibility",
    "calculate_life_path_number",
    "cast_hexagram",
    "generate_holistic_analysis",
    "generate_numerology_analysis",
    "interpret_cards",
    "interpret_hexagram",
    "perform_reading",
]
