"""Celery workers and tasks.

Note: Tasks are NOT imported at module level. app.core.celery imports each
worker module explicitly, and LiteLLM (used by reports) is not fork-safe
under the prefork pool on macOS.
"""

__all__ = [
    "cleanup_expired_reset_tokens",
    "expire_stale_purchases",
    "generate_reading_report",
    "send_password_reset_email",
    "send_purchase_confirmation",
]
