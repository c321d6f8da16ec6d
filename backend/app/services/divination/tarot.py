"""Tarot deck, spreads and card interpretation."""

import random
from dataclasses import dataclass
from typing import Any

from app.services.divination.errors import DivinationInputError


@dataclass(frozen=True)
class TarotCard:
    name: str
    arcana: str  # "major" or "minor"
    suit: str | None
    upright: str
    reversed: str


@dataclass(frozen=True)
class Spread:
    key: str
    name: str
    positions: tuple[str, ...]
    service_slug: str | None  # None means the spread is free


_MAJOR_ARCANA: tuple[tuple[str, str, str], ...] = (
    ("The Fool", "new beginnings, spontaneity, a leap of faith", "recklessness, hesitation, poor judgment"),
    ("The Magician", "willpower, skill, manifestation", "manipulation, untapped talent, trickery"),
    ("The High Priestess", "intuition, mystery, inner knowledge", "secrets, disconnection from intuition"),
    ("The Empress", "abundance, nurturing, fertility", "dependence, creative block, smothering"),
    ("The Emperor", "authority, structure, stability", "rigidity, domination, lack of discipline"),
    ("The Hierophant", "tradition, guidance, shared beliefs", "rebellion, unconventional paths"),
    ("The Lovers", "love, harmony, meaningful choices", "imbalance, misalignment of values"),
    ("The Chariot", "determination, control, victory", "lack of direction, opposition"),
    ("Strength", "courage, patience, compassion", "self-doubt, weakness, insecurity"),
    ("The Hermit", "introspection, solitude, guidance", "isolation, withdrawal, loneliness"),
    ("Wheel of Fortune", "cycles, fate, turning points", "bad luck, resistance to change"),
    ("Justice", "fairness, truth, accountability", "injustice, dishonesty, avoidance"),
    ("The Hanged Man", "surrender, new perspective, pause", "stalling, needless sacrifice"),
    ("Death", "endings, transformation, transition", "resistance to change, stagnation"),
    ("Temperance", "balance, moderation, patience", "excess, imbalance, haste"),
    ("The Devil", "attachment, temptation, materialism", "release, breaking free, reclaiming power"),
    ("The Tower", "sudden upheaval, revelation", "averted disaster, fear of change"),
    ("The Star", "hope, renewal, serenity", "despair, lack of faith, discouragement"),
    ("The Moon", "illusion, intuition, the unconscious", "confusion lifting, repressed fears"),
    ("The Sun", "joy, success, vitality", "temporary sadness, overconfidence"),
    ("Judgement", "reflection, awakening, absolution", "self-doubt, refusal of the call"),
    ("The World", "completion, fulfilment, wholeness", "unfinished business, delays"),
)

_SUITS: dict[str, tuple[str, str]] = {
    # suit -> (element theme, reversed theme)
    "Wands": ("passion, energy and ambition", "scattered energy or burnout"),
    "Cups": ("emotion, relationships and intuition", "emotional blockage or withdrawal"),
    "Swords": ("thought, truth and conflict", "confusion or harsh words"),
    "Pentacles": ("work, money and the material world", "insecurity or misplaced priorities"),
}

_RANKS: tuple[tuple[str, str, str], ...] = (
    ("Ace", "a fresh opportunity", "a missed or delayed start"),
    ("Two", "balance and decisions", "indecision"),
    ("Three", "growth and collaboration", "miscommunication"),
    ("Four", "stability and rest", "stagnation"),
    ("Five", "challenge and conflict", "recovery after loss"),
    ("Six", "harmony and generosity", "clinging to the past"),
    ("Seven", "assessment and perseverance", "lack of focus"),
    ("Eight", "movement and mastery", "frustration and delays"),
    ("Nine", "near-fulfilment", "anxiety about the outcome"),
    ("Ten", "completion of a cycle", "burden of excess"),
    ("Page", "curiosity and new messages", "immaturity"),
    ("Knight", "action and pursuit", "impulsiveness"),
    ("Queen", "nurturing mastery", "insecurity"),
    ("King", "leadership and control", "misuse of authority"),
)


def _build_deck() -> tuple[TarotCard, ...]:
    cards = [
        TarotCard(name=name, arcana="major", suit=None, upright=up, reversed=rev)
        for name, up, rev in _MAJOR_ARCANA
    ]
    for suit, (theme, reversed_theme) in _SUITS.items():
        for rank, up, rev in _RANKS:
            cards.append(
                TarotCard(
                    name=f"{rank} of {suit}",
                    arcana="minor",
                    suit=suit.lower(),
                    upright=f"{up} in {theme}",
                    reversed=f"{rev}, {reversed_theme}",
                )
            )
    return tuple(cards)


DECK: tuple[TarotCard, ...] = _build_deck()
CARDS_BY_NAME: dict[str, TarotCard] = {card.name.lower(): card for card in DECK}

SPREADS: dict[str, Spread] = {
    "three": Spread(
        key="three",
        name="Three Card Spread",
        positions=("past", "present", "future"),
        service_slug=None,
    ),
    "five": Spread(
        key="five",
        name="Five Card Spread",
        positions=("situation", "obstacle", "advice", "cause", "potential"),
        service_slug="five-card-tarot",
    ),
    "ten": Spread(
        key="ten",
        name="Celtic Cross",
        positions=(
            "present",
            "challenge",
            "past",
            "future",
            "conscious",
            "subconscious",
            "self",
            "environment",
            "hopes and fears",
            "outcome",
        ),
        service_slug="ten-card-tarot",
    ),
}


def get_spread(spread_type: str) -> Spread:
    spread = SPREADS.get(spread_type)
    if spread is None:
        raise DivinationInputError(
            f"Unknown spread '{spread_type}'. Choose one of: {', '.join(SPREADS)}"
        )
    return spread


def get_card(name: str) -> TarotCard:
    card = CARDS_BY_NAME.get(name.strip().lower())
    if card is None:
        raise DivinationInputError(f"Unknown tarot card: {name}")
    return card


def interpret_card(card: TarotCard, is_reversed: bool, position: str | None = None) -> str:
    """One-sentence meaning of a card in its orientation and position."""
    orientation = "reversed" if is_reversed else "upright"
    meaning = card.reversed if is_reversed else card.upright
    if position:
        return f"{card.name} ({orientation}) in the {position} position speaks of {meaning}."
    return f"{card.name} ({orientation}) speaks of {meaning}."


def summarize_cards(cards: list[dict[str, Any]]) -> str:
    """Overall reading from the balance of reversed and major arcana cards."""
    if not cards:
        return "No cards were drawn."
    total = len(cards)
    reversed_count = sum(1 for c in cards if c["reversed"])
    major_count = sum(1 for c in cards if c["arcana"] == "major")

    parts = []
    if reversed_count > total / 2:
        parts.append("Most cards are reversed: energy is blocked or turned inward, so reflect before acting.")
    elif reversed_count == 0:
        parts.append("Every card is upright: the energies flow freely in your favor.")
    else:
        parts.append("Upright and reversed cards are mixed: progress comes with some inner work.")
    if major_count > total / 2:
        parts.append("Major arcana dominate, marking a significant life lesson.")
    elif major_count == 0:
        parts.append("Only minor arcana appear, so the matter lies in everyday choices.")
    return " ".join(parts)


def interpret_cards(cards: list[dict[str, Any]]) -> dict[str, Any]:
    """Interpret client-supplied cards given as {name, reversed, position}."""
    if not cards:
        raise DivinationInputError("At least one card is required")
    interpreted = []
    for entry in cards:
        card = get_card(str(entry.get("name", "")))
        is_reversed = bool(entry.get("reversed", False))
        position = entry.get("position")
        interpreted.append({
            "name": card.name,
            "arcana": card.arcana,
            "suit": card.suit,
            "reversed": is_reversed,
            "position": position,
            "meaning": interpret_card(card, is_reversed, position),
        })
    return {"cards": interpreted, "overall": summarize_cards(interpreted)}


def draw_cards(count: int, rng: random.Random | None = None) -> list[tuple[TarotCard, bool]]:
    """Draw distinct cards, each reversed with probability one half."""
    if not 1 <= count <= len(DECK):
        raise DivinationInputError(f"Can draw between 1 and {len(DECK)} cards")
    rng = rng or random.SystemRandom()
    return [(card, rng.random() < 0.5) for card in rng.sample(DECK, count)]


def perform_reading(
    spread_type: str,
    question: str | None = None,
    rng: random.Random | None = None,
) -> dict[str, Any]:
    """Draw a full spread and interpret every position."""
    spread = get_spread(spread_type)
    drawn = draw_cards(len(spread.positions), rng)
    cards = [
        {
            "name": card.name,
            "arcana": card.arcana,
            "suit": card.suit,
            "reversed": is_reversed,
            "position": position,
            "meaning": interpret_card(card, is_reversed, position),
        }
        for (card, is_reversed), position in zip(drawn, spread.positions)
    ]
    return {
        "spread": spread.key,
        "spread_name": spread.name,
        "question": question,
        "cards": cards,
        "overall": summarize_cards(cards),
    }
