"""Notification tasks."""

import logging
import smtplib
import uuid
from email.message import EmailMessage

from app.core.celery import celery_app
from app.core.config import settings

logger = logging.getLogger(__name__)


def deliver_email(to: str, subject: str, body: str) -> str:
    """Send an email through SMTP, or log it when SMTP is not configured.

    Returns:
        "sent" or "logged".
    """
    if not settings.smtp_host:
        logger.info(f"SMTP not configured, email to {to}: {subject}\n{body}")
        return "logged"

    message = EmailMessage()
    message["From"] = settings.email_from
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
        if settings.smtp_use_tls:
            smtp.starttls()
        if settings.smtp_username:
            smtp.login(settings.smtp_username, settings.smtp_password)
        smtp.send_message(message)

    logger.info(f"Email sent to {to}: {subject}")
    return "sent"


@celery_app.task(
    name="app.workers.notifications.send_password_reset_email",
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    max_retries=3,
)
def send_password_reset_email(email: str, token: str) -> dict:
    """
    Send the password reset link.

    Args:
        email: Recipient address
        token: Raw reset token (only its hash is stored)
    """
    reset_url = f"{settings.frontend_url}/reset-password/{token}"
    body = (
        "Someone asked to reset the password for your Mystica account.\n\n"
        f"Open this link within {settings.password_reset_expire_minutes} minutes "
        f"to choose a new password:\n{reset_url}\n\n"
        "If this wasn't you, you can ignore this email."
    )
    delivery = deliver_email(email, "Reset your Mystica password", body)
    return {"email": email, "notification_type": "password_reset", "status": delivery}


@celery_app.task(
    name="app.workers.notifications.send_purchase_confirmation",
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    max_retries=3,
)
def send_purchase_confirmation(purchase_id: str) -> dict:
    """
    Email a receipt once a purchase completes.
    """
    from sqlalchemy import select
    from sqlalchemy.orm import selectinload

    from app.core.database import get_sync_session
    from app.models.payment import Purchase

    with get_sync_session() as db:
        purchase = db.execute(
            select(Purchase)
            .options(selectinload(Purchase.user), selectinload(Purchase.service))
            .where(Purchase.id == uuid.UUID(purchase_id))
        ).scalar_one_or_none()

        if purchase is None:
            logger.warning(f"Purchase {purchase_id} not found, skipping confirmation")
            return {"purchase_id": purchase_id, "status": "skipped"}

        expires = purchase.expires_at.strftime("%Y-%m-%d") if purchase.expires_at else "-"
        body = (
            f"Thank you for purchasing {purchase.service.name}.\n\n"
            f"Amount: {purchase.amount} {purchase.service.currency.upper()}\n"
            f"Transaction: {purchase.transaction_id}\n"
            f"Access valid until: {expires}\n"
        )
        email = purchase.user.email

    delivery = deliver_email(email, "Your Mystica purchase", body)
    return {
        "purchase_id": purchase_id,
        "notification_type": "purchase_confirmation",
        "status": delivery,
    }
