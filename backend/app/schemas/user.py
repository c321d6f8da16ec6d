"""User and preference schemas."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.models.user import UserRole
from app.models.user_settings import Language, Theme
from app.schemas.common import BaseSchema


class UserResponse(BaseSchema):
    """User response schema."""

    id: UUID
    username: str
    email: EmailStr
    role: UserRole
    is_verified: bool
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    birth_date: date | None = None
    phone: str | None = None
    address: dict[str, Any] = {}
    social_media: dict[str, Any] = {}
    last_login: datetime | None = None
    created_at: datetime


class ProfileUpdate(BaseModel):
    """Profile update; address and social media are merged key-wise."""

    display_name: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    birth_date: date | None = None
    phone: str | None = Field(default=None, max_length=32)
    address: dict[str, str] | None = None
    social_media: dict[str, str] | None = None


class AvatarUpdate(BaseModel):
    avatar_url: str = Field(min_length=1, max_length=2048)


class SettingsResponse(BaseSchema):
    """User preferences."""

    theme: Theme
    language: Language
    notifications: dict[str, bool]
    privacy: dict[str, bool]
    customization: dict[str, Any]
    updated_at: datetime | None = None


class SettingsUpdate(BaseModel):
    """Partial preferences update; nested dicts are merged."""

    theme: Theme | None = None
    language: Language | None = None
    notifications: dict[str, bool] | None = None
    privacy: dict[str, bool] | None = None
    customization: dict[str, Any] | None = None
