"""Paid service and purchase models."""

import enum
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, str_enum

if TYPE_CHECKING:
    from app.models.user import User


class ServiceType(str, enum.Enum):
    """Which reading a paid service unlocks."""

    TAROT = "tarot"
    ICHING = "iching"
    NUMEROLOGY = "numerology"


class FeatureLevel(str, enum.Enum):
    """Service tier."""

    BASIC = "basic"
    ADVANCED = "advanced"


class PurchaseStatus(str, enum.Enum):
    """Purchase lifecycle status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaidService(BaseModel):
    """A premium reading feature that can be purchased."""

    __tablename__ = "paid_services"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="usd", nullable=False)
    type: Mapped[ServiceType] = mapped_column(str_enum(ServiceType, length=16), nullable=False)
    feature_level: Mapped[FeatureLevel] = mapped_column(
        str_enum(FeatureLevel, length=16),
        default=FeatureLevel.BASIC,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    purchases: Mapped[list["Purchase"]] = relationship(
        "Purchase",
        back_populates="service",
    )

    def __repr__(self) -> str:
        return f"<PaidService {self.slug}>"


class Purchase(BaseModel):
    """A user's purchase of a paid service."""

    __tablename__ = "purchases"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("paid_services.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    transaction_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[PurchaseStatus] = mapped_column(
        str_enum(PurchaseStatus, length=16),
        default=PurchaseStatus.PENDING,
        nullable=False,
    )
    payment_method: Mapped[str] = mapped_column(String(50), default="card", nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    user: Mapped["User"] = relationship("User", back_populates="purchases")
    service: Mapped["PaidService"] = relationship("PaidService", back_populates="purchases")

    def is_active(self, now: datetime | None = None) -> bool:
        """Completed and not yet expired."""
        if self.status != PurchaseStatus.COMPLETED or self.expires_at is None:
            return False
        return self.expires_at > (now or datetime.now(UTC))

    def __repr__(self) -> str:
        return f"<Purchase {self.transaction_id} {self.status.value}>"
