"""Paid services, checkout and payment provider webhooks."""

import json
import logging

from fastapi import APIRouter, Header, HTTPException, Request, status
from sqlalchemy import select

from app.api.deps import CurrentUser, DbSession
from app.core.config import settings
from app.core.redis import CACHE_SERVICES_KEY, cache_get_json, cache_set_json
from app.models.payment import Purchase, PurchaseStatus
from app.schemas.payment import (
    CheckoutRequest,
    CheckoutResponse,
    PaidServiceResponse,
    PurchaseResponse,
    VerifyPurchaseResponse,
)
from app.services.payments import (
    PaymentError,
    ServiceNotFoundError,
    check_service_access,
    create_checkout,
    handle_webhook_event,
    list_active_services,
    verify_webhook_signature,
)
from app.workers.notifications import send_purchase_confirmation

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/services", response_model=list[PaidServiceResponse])
async def list_services(db: DbSession) -> list[PaidServiceResponse]:
    """Active paid services (cached)."""
    cached = await cache_get_json(CACHE_SERVICES_KEY)
    if cached is not None:
        return [PaidServiceResponse.model_validate(item) for item in cached]

    services = [PaidServiceResponse.model_validate(s) for s in await list_active_services(db)]
    await cache_set_json(
        CACHE_SERVICES_KEY,
        [s.model_dump(mode="json") for s in services],
        settings.cache_ttl_services,
    )
    return services


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def checkout(payload: CheckoutRequest, current_user: CurrentUser, db: DbSession) -> CheckoutResponse:
    """Start a purchase and return the URL where it is paid."""
    try:
        purchase, checkout_url = await create_checkout(
            db, current_user.id, payload.service_slug, payload.payment_method
        )
    except ServiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return CheckoutResponse(
        transaction_id=purchase.transaction_id,
        checkout_url=checkout_url,
        amount=purchase.amount,
        status=purchase.status,
    )


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    db: DbSession,
    x_signature: str | None = Header(default=None),
) -> dict[str, str]:
    """
    Handle payment provider events.

    The raw body is authenticated with HMAC-SHA256 (``X-Signature: sha256=<hex>``).
    """
    payload = await request.body()

    if not verify_webhook_signature(payload, x_signature):
        logger.warning("Rejected payment webhook with invalid signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid signature",
        )

    try:
        event = json.loads(payload)
    except json.JSONDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON payload",
        )
    if not isinstance(event, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event must be a JSON object",
        )

    try:
        purchase = await handle_webhook_event(db, event)
    except PaymentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if purchase is None:
        return {"status": "ignored"}

    if purchase.status == PurchaseStatus.COMPLETED:
        # The worker loads the purchase, so commit first
        await db.commit()
        send_purchase_confirmation.delay(str(purchase.id))

    return {"status": "processed", "purchase_status": purchase.status.value}


@router.get("/verify/{service_slug}", response_model=VerifyPurchaseResponse)
async def verify_purchase(service_slug: str, current_user: CurrentUser, db: DbSession) -> VerifyPurchaseResponse:
    """Whether the caller holds an active purchase of a service."""
    try:
        access = await check_service_access(db, current_user.id, service_slug)
    except ServiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return VerifyPurchaseResponse(
        service_slug=service_slug,
        has_purchased=access.has_access,
        expires_at=access.expires_at,
    )


@router.get("/purchases", response_model=list[PurchaseResponse])
async def list_purchases(current_user: CurrentUser, db: DbSession) -> list[PurchaseResponse]:
    """Caller's purchase history, newest first."""
    result = await db.execute(
        select(Purchase)
        .where(Purchase.user_id == current_user.id)
        .order_by(Purchase.created_at.desc())
    )
    return [PurchaseResponse.model_validate(p) for p in result.scalars().all()]
