"""Per-user preference model."""

import enum
import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import ForeignKey
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, str_enum

if TYPE_CHECKING:
    from app.models.user import User


class Theme(str, enum.Enum):
    """UI theme preference."""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class Language(str, enum.Enum):
    """Interface language."""

    ZH_CN = "zh-CN"
    EN_US = "en-US"


def default_notifications() -> dict[str, bool]:
    return {"email": True, "push": True, "sms": False}


def default_privacy() -> dict[str, bool]:
    return {"share_profile": False, "share_history": False, "share_results": False}


def default_customization() -> dict[str, Any]:
    return {"favorite_features": [], "default_page": "home"}


class UserSettings(BaseModel):
    """One row of preferences per user, created on first access."""

    __tablename__ = "user_settings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    theme: Mapped[Theme] = mapped_column(
        str_enum(Theme, length=16),
        default=Theme.SYSTEM,
        nullable=False,
    )
    language: Mapped[Language] = mapped_column(
        str_enum(Language, length=16),
        default=Language.ZH_CN,
        nullable=False,
    )
    notifications: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        default=default_notifications,
        nullable=False,
    )
    privacy: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        default=default_privacy,
        nullable=False,
    )
    customization: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        default=default_customization,
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", back_populates="settings")

    @classmethod
    def with_defaults(cls, user_id: uuid.UUID) -> "UserSettings":
        """Build a settings row populated with defaults before flush."""
        return cls(
            user_id=user_id,
            theme=Theme.SYSTEM,
            language=Language.ZH_CN,
            notifications=default_notifications(),
            privacy=default_privacy(),
            customization=default_customization(),
        )

    def reset(self) -> None:
        """Restore every preference to its default."""
        self.theme = Theme.SYSTEM
        self.language = Language.ZH_CN
        self.notifications = default_notifications()
        self.privacy = default_privacy()
        self.customization = default_customization()

    def __repr__(self) -> str:
        return f"<UserSettings {self.user_id}>"
