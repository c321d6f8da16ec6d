"""Paid services, purchases and payment provider webhooks.

The checkout flow is provider-neutral: a pending purchase is created with a
transaction id, the client is sent to the checkout URL, and the provider
reports the outcome through a signed webhook.
"""

import hashlib
import hmac
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import urlencode

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.payment import PaidService, Purchase, PurchaseStatus

logger = logging.getLogger(__name__)

EVENT_COMPLETED = "checkout.session.completed"
EVENT_EXPIRED = "checkout.session.expired"
EVENT_FAILED = "payment.failed"
EVENT_REFUNDED = "charge.refunded"

EVENT_STATUS: dict[str, PurchaseStatus] = {
    EVENT_COMPLETED: PurchaseStatus.COMPLETED,
    EVENT_EXPIRED: PurchaseStatus.FAILED,
    EVENT_FAILED: PurchaseStatus.FAILED,
    EVENT_REFUNDED: PurchaseStatus.REFUNDED,
}

# Anything else (replays, refunds of unpaid purchases) is a no-op
ALLOWED_TRANSITIONS: dict[PurchaseStatus, frozenset[PurchaseStatus]] = {
    PurchaseStatus.PENDING: frozenset({PurchaseStatus.COMPLETED, PurchaseStatus.FAILED}),
    PurchaseStatus.COMPLETED: frozenset({PurchaseStatus.REFUNDED}),
}


class PaymentError(Exception):
    """Payment processing error."""


class ServiceNotFoundError(PaymentError):
    """The requested paid service does not exist or is inactive."""

    def __init__(self, slug: str):
        super().__init__(f"Service '{slug}' not found")
        self.slug = slug


@dataclass
class AccessCheck:
    has_access: bool
    service: PaidService | None
    purchase: Purchase | None = None

    @property
    def expires_at(self) -> datetime | None:
        return self.purchase.expires_at if self.purchase else None


def sign_payload(payload: bytes, secret: str) -> str:
    """Signature header value for a webhook body."""
    digest = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def verify_webhook_signature(
    payload: bytes,
    signature: str | None,
    secret: str | None = None,
) -> bool:
    """Verify an HMAC-SHA256 webhook signature.

    An unset secret rejects every webhook.
    """
    secret = settings.payment_webhook_secret if secret is None else secret
    if not secret:
        logger.warning("Payment webhook secret not configured, rejecting webhook")
        return False
    if not signature:
        return False
    if signature.startswith("sha256="):
        signature = signature[7:]

    expected = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


async def get_service_by_slug(
    db: AsyncSession,
    slug: str,
    active_only: bool = True,
) -> PaidService | None:
    query = select(PaidService).where(PaidService.slug == slug)
    if active_only:
        query = query.where(PaidService.is_active.is_(True))
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def list_active_services(db: AsyncSession) -> list[PaidService]:
    result = await db.execute(
        select(PaidService)
        .where(PaidService.is_active.is_(True))
        .order_by(PaidService.price)
    )
    return list(result.scalars().all())


async def find_active_purchase(
    db: AsyncSession,
    user_id: uuid.UUID,
    service_id: uuid.UUID,
) -> Purchase | None:
    """Latest-expiring completed, unexpired purchase of a service."""
    result = await db.execute(
        select(Purchase)
        .where(
            Purchase.user_id == user_id,
            Purchase.service_id == service_id,
            Purchase.status == PurchaseStatus.COMPLETED,
            Purchase.expires_at > datetime.now(UTC),
        )
        .order_by(Purchase.expires_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def check_service_access(
    db: AsyncSession,
    user_id: uuid.UUID,
    service_slug: str,
) -> AccessCheck:
    """Whether the user holds an active purchase of the service.

    Raises:
        ServiceNotFoundError: no active service has this slug.
    """
    service = await get_service_by_slug(db, service_slug)
    if service is None:
        raise ServiceNotFoundError(service_slug)
    purchase = await find_active_purchase(db, user_id, service.id)
    return AccessCheck(has_access=purchase is not None, service=service, purchase=purchase)


def generate_transaction_id() -> str:
    return f"txn_{secrets.token_hex(12)}"


def build_checkout_url(transaction_id: str, service: PaidService) -> str:
    params = {"transaction_id": transaction_id, "service": service.slug}
    return f"{settings.checkout_base_url}?{urlencode(params)}"


async def create_checkout(
    db: AsyncSession,
    user_id: uuid.UUID,
    service_slug: str,
    payment_method: str = "card",
) -> tuple[Purchase, str]:
    """Create a pending purchase and the URL to complete it.

    Raises:
        ServiceNotFoundError: unknown or inactive service.
    """
    service = await get_service_by_slug(db, service_slug)
    if service is None:
        raise ServiceNotFoundError(service_slug)

    purchase = Purchase(
        user_id=user_id,
        service_id=service.id,
        transaction_id=generate_transaction_id(),
        amount=service.price,
        status=PurchaseStatus.PENDING,
        payment_method=payment_method,
    )
    db.add(purchase)
    await db.flush()

    logger.info(f"Created pending purchase {purchase.transaction_id} for service {service.slug}")
    return purchase, build_checkout_url(purchase.transaction_id, service)


def can_transition(current: PurchaseStatus, new_status: PurchaseStatus) -> bool:
    return new_status in ALLOWED_TRANSITIONS.get(current, frozenset())


def apply_status(purchase: Purchase, new_status: PurchaseStatus, now: datetime | None = None) -> bool:
    """Move a purchase to a new status, stamping expiry on completion.

    Returns False, leaving the purchase untouched, when the transition is
    not allowed from the current status.
    """
    if not can_transition(purchase.status, new_status):
        return False

    now = now or datetime.now(UTC)
    purchase.status = new_status
    if new_status == PurchaseStatus.COMPLETED:
        purchase.expires_at = now + timedelta(days=settings.purchase_validity_days)
    elif new_status in (PurchaseStatus.FAILED, PurchaseStatus.REFUNDED):
        purchase.expires_at = None
    return True


async def handle_webhook_event(db: AsyncSession, event: dict[str, Any]) -> Purchase | None:
    """Apply a provider event to its purchase.

    Events look like ``{"type": ..., "data": {"transaction_id": ...}}``.
    Unsupported events, unknown transactions and transitions that are not
    allowed from the purchase's current status are logged and ignored.

    Raises:
        PaymentError: a supported event without a string ``data.transaction_id``.
    """
    event_type = event.get("type")
    new_status = EVENT_STATUS.get(event_type) if isinstance(event_type, str) else None
    if new_status is None:
        logger.info(f"Ignoring unsupported payment event: {event_type}")
        return None

    data = event.get("data")
    if not isinstance(data, dict):
        raise PaymentError("Event data must be an object")
    transaction_id = data.get("transaction_id")
    if not isinstance(transaction_id, str) or not transaction_id:
        raise PaymentError("Event is missing data.transaction_id")

    result = await db.execute(
        select(Purchase).where(Purchase.transaction_id == transaction_id)
    )
    purchase = result.scalar_one_or_none()
    if purchase is None:
        logger.warning(f"Payment event {event_type} for unknown transaction {transaction_id}")
        return None

    previous = purchase.status
    if not apply_status(purchase, new_status):
        logger.info(
            f"Ignoring {event_type} for purchase {transaction_id}: "
            f"{previous.value} -> {new_status.value} not allowed"
        )
        return None
    logger.info(f"Purchase {transaction_id} -> {new_status.value} via {event_type}")
    return purchase
