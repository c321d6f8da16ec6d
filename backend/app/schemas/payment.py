"""Paid service and purchase schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.payment import FeatureLevel, PurchaseStatus, ServiceType
from app.schemas.common import BaseSchema


class PaidServiceResponse(BaseSchema):
    id: UUID
    name: str
    slug: str
    description: str
    price: Decimal
    currency: str
    type: ServiceType
    feature_level: FeatureLevel


class CheckoutRequest(BaseModel):
    service_slug: str = Field(min_length=1, max_length=100)
    payment_method: str = Field(default="card", max_length=50)


class CheckoutResponse(BaseModel):
    transaction_id: str
    checkout_url: str
    amount: Decimal
    status: PurchaseStatus


class PurchaseResponse(BaseSchema):
    id: UUID
    service_id: UUID
    transaction_id: str
    amount: Decimal
    status: PurchaseStatus
    payment_method: str
    expires_at: datetime | None = None
    created_at: datetime


class VerifyPurchaseResponse(BaseModel):
    service_slug: str
    has_purchased: bool
    expires_at: datetime | None = None


class ServiceAccessResponse(BaseModel):
    """Access to a gated reading."""

    has_access: bool
    requires_purchase: bool
    service_slug: str | None = None
    expires_at: datetime | None = None
