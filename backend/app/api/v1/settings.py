"""User preference endpoints."""

from fastapi import APIRouter
from sqlalchemy import select

from app.api.deps import CurrentUser, DbSession
from app.models.user_settings import UserSettings
from app.schemas.user import SettingsResponse, SettingsUpdate

router = APIRouter()

_MERGED_FIELDS = ("notifications", "privacy", "customization")


async def get_or_create_settings(db: DbSession, current_user: CurrentUser) -> UserSettings:
    """Load the user's settings row, creating it with defaults on first access."""
    result = await db.execute(
        select(UserSettings).where(UserSettings.user_id == current_user.id)
    )
    user_settings = result.scalar_one_or_none()
    if user_settings is None:
        user_settings = UserSettings.with_defaults(current_user.id)
        db.add(user_settings)
        await db.flush()
        await db.refresh(user_settings)
    return user_settings


@router.get("", response_model=SettingsResponse)
async def get_settings(current_user: CurrentUser, db: DbSession) -> SettingsResponse:
    """Get the current user's preferences."""
    user_settings = await get_or_create_settings(db, current_user)
    return SettingsResponse.model_validate(user_settings)


@router.put("", response_model=SettingsResponse)
async def update_settings(
    update: SettingsUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> SettingsResponse:
    """Update preferences. Nested dicts merge into the stored values."""
    user_settings = await get_or_create_settings(db, current_user)
    changes = update.model_dump(exclude_unset=True, exclude_none=True)

    for key, value in changes.items():
        if key in _MERGED_FIELDS:
            setattr(user_settings, key, {**(getattr(user_settings, key) or {}), **value})
        else:
            setattr(user_settings, key, value)

    await db.flush()
    await db.refresh(user_settings)
    return SettingsResponse.model_validate(user_settings)


@router.post("/reset", response_model=SettingsResponse)
async def reset_settings(current_user: CurrentUser, db: DbSession) -> SettingsResponse:
    """Restore all preferences to their defaults."""
    user_settings = await get_or_create_settings(db, current_user)
    user_settings.reset()
    await db.flush()
    await db.refresh(user_settings)
    return SettingsResponse.model_validate(user_settings)
