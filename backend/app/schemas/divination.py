"""Divination calculation request schemas."""

import re
from datetime import date
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field, StringConstraints

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _valid_birth_date(value: str) -> str:
    if not _DATE_RE.match(value):
        raise ValueError("Birth date must use the YYYY-MM-DD format")
    try:
        date.fromisoformat(value)
    except ValueError as e:
        raise ValueError("Birth date is not a valid date") from e
    return value


BirthDate = Annotated[str, AfterValidator(_valid_birth_date)]


class NumerologyRequest(BaseModel):
    birth_date: BirthDate
    name: str | None = Field(default=None, max_length=100)


class NumerologyReadingRequest(BaseModel):
    """Numerology reading with interpretation; both fields required."""

    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
    birth_date: BirthDate


class CompatibilityRequest(BaseModel):
    birth_date_1: BirthDate
    birth_date_2: BirthDate


class TarotCardInput(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    reversed: bool = False
    position: str | None = Field(default=None, max_length=50)


class TarotInterpretRequest(BaseModel):
    """Interpret cards drawn on the client."""

    cards: list[TarotCardInput] = Field(min_length=1, max_length=10)


class ReadingRequest(BaseModel):
    """Options for a gated tarot or I Ching reading."""

    question: str | None = Field(default=None, max_length=500)
    interpret: bool = False
    save: bool = True


class IChingRequest(BaseModel):
    """Interpret a known hexagram, or cast a new one when number is omitted."""

    hexagram_number: int | None = Field(default=None, ge=1, le=64)


class HolisticRequest(BaseModel):
    birth_date: BirthDate
    name: str | None = Field(default=None, max_length=100)
    tarot_cards: list[TarotCardInput] | None = Field(default=None, max_length=10)
    hexagram_number: int | None = Field(default=None, ge=1, le=64)
