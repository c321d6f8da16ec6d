"""Reading history endpoints."""

import logging
import math
from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, or_, select

from app.api.deps import CurrentUser, DbSession
from app.models.reading import Reading, ReadingType
from app.schemas.common import SuccessResponse
from app.schemas.reading import (
    ReadingCreate,
    ReadingListResponse,
    ReadingResponse,
    ReadingShare,
    ReadingSort,
    ReadingStats,
    ReadingUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_SORT_COLUMNS = {
    "created_at": Reading.created_at,
    "title": Reading.title,
    "view_count": Reading.view_count,
}


def escape_like(text: str) -> str:
    """Match %, _ and the escape character literally in a LIKE pattern."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _order_by(sort: str):
    column = _SORT_COLUMNS[sort.lstrip("-")]
    return column.desc() if sort.startswith("-") else column.asc()


async def _get_owned_reading(db: DbSession, reading_id: UUID, user_id: UUID) -> Reading:
    result = await db.execute(
        select(Reading).where(Reading.id == reading_id, Reading.user_id == user_id)
    )
    reading = result.scalar_one_or_none()
    if reading is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reading not found",
        )
    return reading


@router.post("", response_model=ReadingResponse, status_code=status.HTTP_201_CREATED)
async def create_reading(payload: ReadingCreate, current_user: CurrentUser, db: DbSession) -> ReadingResponse:
    """Save a reading to history."""
    reading = Reading(
        user_id=current_user.id,
        type=payload.type,
        data=payload.data,
        title=payload.title,
        description=payload.description,
        tags=payload.tags,
        is_favorite=payload.is_favorite,
        notes=payload.notes,
        source=payload.source,
        shared_with=[],
        is_public=False,
        version=1,
        view_count=0,
    )
    db.add(reading)
    await db.flush()
    await db.refresh(reading)
    return ReadingResponse.model_validate(reading)


@router.get("", response_model=ReadingListResponse)
async def list_readings(
    current_user: CurrentUser,
    db: DbSession,
    type: ReadingType | None = None,
    tag: str | None = Query(default=None, max_length=50),
    favorite: bool | None = None,
    search: str | None = Query(default=None, max_length=100),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    sort: ReadingSort = "-created_at",
) -> ReadingListResponse:
    """List the caller's readings with filters and pagination."""
    query = select(Reading).where(Reading.user_id == current_user.id)

    if type is not None:
        query = query.where(Reading.type == type)
    if tag:
        query = query.where(Reading.tags.any(tag.strip().lower()))
    if favorite is not None:
        query = query.where(Reading.is_favorite == favorite)
    if search:
        pattern = f"%{escape_like(search)}%"
        query = query.where(
            or_(
                Reading.title.ilike(pattern, escape="\\"),
                Reading.description.ilike(pattern, escape="\\"),
            )
        )

    # Count total
    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(_order_by(sort)).offset((page - 1) * limit).limit(limit)
    result = await db.execute(query)
    readings = result.scalars().all()

    return ReadingListResponse(
        items=[ReadingResponse.model_validate(r) for r in readings],
        count=len(readings),
        total=total,
        page=page,
        pages=math.ceil(total / limit),
    )


@router.get("/shared", response_model=list[ReadingResponse])
async def list_shared_readings(current_user: CurrentUser, db: DbSession) -> list[ReadingResponse]:
    """Readings other users shared with the caller."""
    result = await db.execute(
        select(Reading)
        .where(Reading.shared_with.any(current_user.id))
        .order_by(Reading.created_at.desc())
    )
    return [ReadingResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/stats", response_model=ReadingStats)
async def reading_stats(current_user: CurrentUser, db: DbSession) -> ReadingStats:
    """Counts per type, the five most recent readings and favorites."""
    type_rows = await db.execute(
        select(Reading.type, func.count(Reading.id))
        .where(Reading.user_id == current_user.id)
        .group_by(Reading.type)
    )
    type_stats = {row[0].value: row[1] for row in type_rows.all()}

    recent_result = await db.execute(
        select(Reading)
        .where(Reading.user_id == current_user.id)
        .order_by(Reading.created_at.desc())
        .limit(5)
    )

    favorites_count = (
        await db.execute(
            select(func.count(Reading.id)).where(
                Reading.user_id == current_user.id,
                Reading.is_favorite.is_(True),
            )
        )
    ).scalar() or 0

    return ReadingStats(
        type_stats=type_stats,
        recent=[ReadingResponse.model_validate(r) for r in recent_result.scalars().all()],
        favorites_count=favorites_count,
        total=sum(type_stats.values()),
    )


@router.get("/{reading_id}", response_model=ReadingResponse)
async def get_reading(reading_id: UUID, current_user: CurrentUser, db: DbSession) -> ReadingResponse:
    """Get a reading the caller owns, or one that is public or shared with them."""
    result = await db.execute(select(Reading).where(Reading.id == reading_id))
    reading = result.scalar_one_or_none()
    if reading is None or not reading.can_view(current_user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reading not found",
        )

    if reading.user_id != current_user.id:
        reading.view_count = (reading.view_count or 0) + 1
        reading.last_viewed_at = datetime.now(UTC)
        await db.flush()
        await db.refresh(reading)

    return ReadingResponse.model_validate(reading)


@router.put("/{reading_id}", response_model=ReadingResponse)
async def update_reading(
    reading_id: UUID,
    update: ReadingUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> ReadingResponse:
    """Edit a reading (owner only). Every edit bumps the version."""
    reading = await _get_owned_reading(db, reading_id, current_user.id)

    for key, value in update.model_dump(exclude_unset=True).items():
        setattr(reading, key, value)
    reading.version = (reading.version or 1) + 1

    await db.flush()
    await db.refresh(reading)
    return ReadingResponse.model_validate(reading)


@router.delete("/{reading_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reading(reading_id: UUID, current_user: CurrentUser, db: DbSession) -> None:
    reading = await _get_owned_reading(db, reading_id, current_user.id)
    await db.delete(reading)
    logger.info(f"Deleted reading {reading_id} for user {current_user.id}")


@router.post("/{reading_id}/share", response_model=SuccessResponse)
async def share_reading(
    reading_id: UUID,
    payload: ReadingShare,
    current_user: CurrentUser,
    db: DbSession,
) -> SuccessResponse:
    """Share with specific users and/or toggle public visibility."""
    reading = await _get_owned_reading(db, reading_id, current_user.id)

    shared = list(reading.shared_with or [])
    for user_id in payload.user_ids:
        if user_id != current_user.id and user_id not in shared:
            shared.append(user_id)
    reading.shared_with = shared
    if payload.is_public is not None:
        reading.is_public = payload.is_public

    return SuccessResponse(message=f"Reading shared with {len(shared)} users")
