"""Celery worker configuration and task definitions.

This module sets up Celery for background task processing including:
- Expiry of bookings not confirmed in time
- Purging of old completed bookings
"""

from celery import Celery
from celery.schedules import crontab

from app.config import settings

# Create Celery app
celery_app = Celery(
    "rentcar_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["app.tasks"],
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Europe/Paris",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=300,  # 5 minutes max
    task_soft_time_limit=240,  # Soft limit at 4 minutes

    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=2,

    # Result backend settings
    result_expires=3600,  # Results expire after 1 hour

    # Retry settings
    task_default_retry_delay=60,  # 1 minute
    task_max_retries=3,

    # Beat schedule for periodic tasks
    beat_schedule={
        # Cancel PENDING/VERIFIED bookings past their confirmation window
        "expire-stale-bookings": {
            "task": "app.tasks.expire_stale_bookings",
            "schedule": crontab(minute=f"*/{settings.expiration_check_minutes}"),
        },
        # Purge old completed bookings daily at 3 AM
        "purge-completed-bookings": {
            "task": "app.tasks.purge_completed_bookings",
            "schedule": crontab(hour=3, minute=0),
        },
    },
)


if __name__ == "__main__":
    celery_app.start()
