"""Integrated analysis combining numerology, tarot and I Ching."""

from typing import Any

from app.services.divination.iching import interpret_hexagram
from app.services.divination.numerology import generate_numerology_analysis
from app.services.divination.tarot import interpret_cards


def generate_holistic_analysis(
    birth_date: str,
    name: str | None = None,
    tarot_cards: list[dict[str, Any]] | None = None,
    hexagram_number: int | None = None,
) -> dict[str, Any]:
    """Compute each available part and a combined summary."""
    numerology = generate_numerology_analysis(birth_date, name)
    tarot = interpret_cards(tarot_cards) if tarot_cards else None
    iching = interpret_hexagram(hexagram_number) if hexagram_number is not None else None

    summary = [
        f"Life path {numerology['life_path_number']}: "
        f"{numerology['interpretations']['life_path']}"
    ]
    if "expression_number" in numerology:
        summary.append(
            f"Expression {numerology['expression_number']}: "
            f"{numerology['interpretations']['destiny']}"
        )
    if tarot:
        summary.append(f"The cards add: {tarot['overall']}")
    if iching:
        summary.append(
            f"The I Ching answers with {iching['name']} ({iching['chinese']}): {iching['judgement']}"
        )

    return {
        "numerology": numerology,
        "tarot": tarot,
        "iching": iching,
        "summary": " ".join(summary),
    }
