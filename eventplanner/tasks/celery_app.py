from datetime import timedelta
import os

from celery import Celery

from eventplanner.core.config import settings

broker_url = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/0")
result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/1")

celery_app = Celery(
    "eventplanner",
    broker=broker_url,
    backend=result_backend,
    include=["eventplanner.tasks.expirations", "eventplanner.tasks.reminders"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "expire-stale-waitlist-offers": {
            "task": "waitlist.expire_stale_offers",
            "schedule": timedelta(minutes=settings.celery_offer_expiration_interval_minutes),
        },
        "remind-expiring-waitlist-offers": {
            "task": "waitlist.remind_expiring_offers",
            "schedule": timedelta(minutes=settings.celery_reminder_interval_minutes),
        },
    },
)
