"""Saving computed readings to a user's history."""

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.reading import Reading, ReadingSource, ReadingType

logger = logging.getLogger(__name__)

_TITLE_MAX = 100


def default_title(reading_type: ReadingType, data: dict[str, Any]) -> str:
    """Short human title for a computed reading."""
    if reading_type == ReadingType.TAROT:
        title = f"Tarot: {data.get('spread_name', 'reading')}"
    elif reading_type == ReadingType.ICHING:
        hexagram = data.get("hexagram") or {}
        title = f"I Ching: {hexagram.get('number', '?')} {hexagram.get('name', '')}".strip()
    elif reading_type == ReadingType.NUMEROLOGY:
        title = f"Numerology: life path {data.get('life_path_number', '?')}"
    else:
        title = f"{reading_type.value.replace('_', ' ').title()} reading"

    question = data.get("question")
    if question:
        title = f"{title} - {question}"
    return title[:_TITLE_MAX]


async def save_reading(
    db: AsyncSession,
    user_id: uuid.UUID,
    reading_type: ReadingType,
    data: dict[str, Any],
    title: str | None = None,
    source: ReadingSource = ReadingSource.SYSTEM,
) -> Reading:
    """Persist a reading produced by a divination endpoint."""
    reading = Reading(
        user_id=user_id,
        type=reading_type,
        data=data,
        title=title or default_title(reading_type, data),
        tags=[reading_type.value],
        shared_with=[],
        source=source,
        is_favorite=False,
        is_public=False,
        version=1,
        view_count=0,
    )
    db.add(reading)
    await db.flush()
    await db.refresh(reading)
    logger.info(f"Saved {reading_type.value} reading {reading.id} for user {user_id}")
    return reading
