"""Celery configuration and app."""

from celery import Celery
from celery.schedules import crontab

from app.core.config import settings

celery_app = Celery(
    "mystica",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Task settings
    task_track_started=True,
    task_time_limit=5 * 60,
    task_soft_time_limit=4 * 60,

    # Results expire after 1 hour
    result_expires=3600,

    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,

    # Task routing
    task_routes={
        "app.workers.reports.*": {"queue": "reports"},
        "app.workers.notifications.*": {"queue": "notifications"},
    },

    task_default_queue="default",

    # Task acknowledgement
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    beat_schedule={
        "expire-stale-purchases": {
            "task": "app.workers.scheduled.expire_stale_purchases",
            "schedule": crontab(minute=15),  # Every hour at :15
            "options": {"queue": "default"},
        },
        "cleanup-expired-reset-tokens": {
            "task": "app.workers.scheduled.cleanup_expired_reset_tokens",
            "schedule": crontab(hour=3, minute=0),  # Daily 3:00 AM UTC
            "options": {"queue": "default"},
        },
    },
)

# Explicitly import each worker module to register tasks with Celery.
# LiteLLM is imported lazily inside tasks; it is not fork-safe on macOS.
import app.workers.notifications  # noqa: F401, E402
import app.workers.reports  # noqa: F401, E402
import app.workers.scheduled  # noqa: F401, E402
