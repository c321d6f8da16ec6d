"""Pythagorean numerology.

Numbers are reduced by repeated digit sums until a single digit remains,
except that the master numbers 11 and 22 are kept as they are.
"""

import re
from datetime import date
from typing import Any

from app.services.divination.errors import DivinationInputError

MASTER_NUMBERS = frozenset({11, 22})

_BIRTH_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# a j s = 1, b k t = 2, ... i r = 9
LETTER_VALUES: dict[str, int] = {
    letter: index % 9 + 1
    for index, letter in enumerate("abcdefghijklmnopqrstuvwxyz")
}
VOWELS = frozenset("aeiouy")

LIFE_PATH_MEANINGS: dict[int, str] = {
    1: "A born initiator. You lead from the front, value independence and thrive when starting something new.",
    2: "A natural mediator. Cooperation, patience and sensitivity to others are your strengths.",
    3: "A creative communicator. Expression, optimism and social ease shape your path.",
    4: "A steady builder. Order, discipline and hard work let you create lasting foundations.",
    5: "A free spirit. Change, travel and new experiences keep you growing.",
    6: "A caretaker. Responsibility toward family and community is central to your path.",
    7: "A seeker. You look beneath the surface and value study, reflection and inner truth.",
    8: "An achiever. Ambition, authority and material mastery define your path.",
    9: "A humanitarian. Compassion and a wide view of the world guide your choices.",
    11: "An intuitive guide. Heightened sensitivity lets you inspire and illuminate others.",
    22: "A master builder. You can turn large visions into practical, lasting results.",
}

DESTINY_MEANINGS: dict[int, str] = {
    1: "Your destiny is to pioneer and to lead through your own determination.",
    2: "Your destiny is to bring people together and build harmony.",
    3: "Your destiny is to uplift others through words, art and joy.",
    4: "Your destiny is to build reliable systems that others can depend on.",
    5: "Your destiny is to embrace freedom and show others the value of change.",
    6: "Your destiny is to nurture, heal and take responsibility for others.",
    7: "Your destiny is to pursue knowledge and share hard-won wisdom.",
    8: "Your destiny is to achieve success and use power well.",
    9: "Your destiny is to serve humanity with compassion.",
    11: "Your destiny is to be a spiritual teacher who awakens others.",
    22: "Your destiny is to create works with a lasting effect on society.",
}

SOUL_URGE_MEANINGS: dict[int, str] = {
    1: "Deep down you long to be self-directed and master of your own fate.",
    2: "Deep down you long for love, partnership and peace.",
    3: "Deep down you long to create and to be heard.",
    4: "Deep down you long for security and order.",
    5: "Deep down you long for freedom and adventure.",
    6: "Deep down you long to care for and protect those you love.",
    7: "Deep down you long to understand the mysteries of life.",
    8: "Deep down you long for achievement and recognition.",
    9: "Deep down you long to make the world a better place.",
    11: "Deep down you long for spiritual awakening and to inspire others.",
    22: "Deep down you long to make lasting change through practical action.",
}

PERSONALITY_MEANINGS: dict[int, str] = {
    1: "Others see you as independent, confident and capable of leading.",
    2: "Others see you as gentle, diplomatic and approachable.",
    3: "Others see you as charming, lively and expressive.",
    4: "Others see you as dependable, practical and grounded.",
    5: "Others see you as energetic, adaptable and adventurous.",
    6: "Others see you as warm, responsible and protective.",
    7: "Others see you as reserved, thoughtful and analytical.",
    8: "Others see you as powerful, efficient and authoritative.",
    9: "Others see you as generous, idealistic and understanding.",
    11: "Others see you as sensitive, idealistic and inspiring.",
    22: "Others see you as wise, determined and constructive.",
}

COMPATIBILITY_LEVELS: list[tuple[int, str, str]] = [
    (9, "excellent", "Your numbers resonate strongly. Build on the natural understanding between you."),
    (7, "good", "You complement each other well. Honest communication keeps the bond healthy."),
    (5, "moderate", "There is balance to find. Respect your different rhythms and meet halfway."),
    (1, "challenging", "Your paths differ. Patience and curiosity about each other will matter most."),
]


def digit_sum(number: int) -> int:
    return sum(int(digit) for digit in str(abs(number)))


def reduce_number(number: int) -> int:
    """Reduce to a single digit, preserving master numbers 11 and 22."""
    while number > 9 and number not in MASTER_NUMBERS:
        number = digit_sum(number)
    return number


def parse_birth_date(birth_date: str) -> date:
    """Parse a YYYY-MM-DD birth date, rejecting impossible calendar dates."""
    if not isinstance(birth_date, str) or not _BIRTH_DATE_RE.match(birth_date):
        raise DivinationInputError("Birth date must use the YYYY-MM-DD format")
    try:
        return date.fromisoformat(birth_date)
    except ValueError as e:
        raise DivinationInputError(f"Invalid birth date: {birth_date}") from e


def calculate_life_path_number(birth_date: str) -> int:
    """Sum every digit of the birth date and reduce."""
    parse_birth_date(birth_date)
    total = sum(int(ch) for ch in birth_date if ch.isdigit())
    return reduce_number(total)


def _letters(name: str) -> list[str]:
    return [ch for ch in name.lower() if ch in LETTER_VALUES]


def calculate_expression_number(name: str) -> int:
    """Destiny number: all letters of the full name."""
    total = sum(LETTER_VALUES[ch] for ch in _letters(name))
    return reduce_number(total)


def calculate_soul_urge_number(name: str) -> int:
    """Heart's desire: vowels only."""
    total = sum(LETTER_VALUES[ch] for ch in _letters(name) if ch in VOWELS)
    return reduce_number(total)


def calculate_personality_number(name: str) -> int:
    """Outer personality: consonants only."""
    total = sum(LETTER_VALUES[ch] for ch in _letters(name) if ch not in VOWELS)
    return reduce_number(total)


def _meaning(table: dict[int, str], number: int) -> str:
    return table.get(number, "No interpretation is available for this number.")


def generate_numerology_analysis(birth_date: str, name: str | None = None) -> dict[str, Any]:
    """Compute every number available for the inputs with interpretations."""
    life_path = calculate_life_path_number(birth_date)
    result: dict[str, Any] = {
        "birth_date": birth_date,
        "life_path_number": life_path,
        "interpretations": {
            "life_path": _meaning(LIFE_PATH_MEANINGS, life_path),
        },
    }

    if name and name.strip():
        expression = calculate_expression_number(name)
        soul_urge = calculate_soul_urge_number(name)
        personality = calculate_personality_number(name)
        result.update(
            name=name.strip(),
            expression_number=expression,
            soul_urge_number=soul_urge,
            personality_number=personality,
        )
        result["interpretations"].update(
            destiny=_meaning(DESTINY_MEANINGS, expression),
            soul_urge=_meaning(SOUL_URGE_MEANINGS, soul_urge),
            personality=_meaning(PERSONALITY_MEANINGS, personality),
        )

    return result


def compatibility_score(life_path_1: int, life_path_2: int) -> int:
    """Score two life path numbers on a 1-10 scale."""
    score = (life_path_1 + life_path_2) % 9 or 9
    return max(1, min(10, score))


def calculate_compatibility(birth_date_1: str, birth_date_2: str) -> dict[str, Any]:
    """Life path compatibility between two people."""
    life_path_1 = calculate_life_path_number(birth_date_1)
    life_path_2 = calculate_life_path_number(birth_date_2)
    score = compatibility_score(life_path_1, life_path_2)

    level, advice = COMPATIBILITY_LEVELS[-1][1:]
    for threshold, label, text in COMPATIBILITY_LEVELS:
        if score >= threshold:
            level, advice = label, text
            break

    return {
        "person1": {
            "birth_date": birth_date_1,
            "life_path_number": life_path_1,
            "interpretation": _meaning(LIFE_PATH_MEANINGS, life_path_1),
        },
        "person2": {
            "birth_date": birth_date_2,
            "life_path_number": life_path_2,
            "interpretation": _meaning(LIFE_PATH_MEANINGS, life_path_2),
        },
        "score": score,
        "level": level,
        "advice": advice,
    }
