"""Celery background tasks.

This module contains the booking maintenance jobs:
- Expiring bookings whose confirmation window has passed
- Purging completed bookings past the retention period
"""

import asyncio
import logging

from celery import shared_task

from app.config import settings
from app.database import get_db_context
from app.services.booking_service import booking_service

logger = logging.getLogger(__name__)

_loop: asyncio.AbstractEventLoop | None = None


def run_async(coro):
    """Run async function in sync context.

    One event loop is kept per worker process so pooled database connections
    stay bound to the loop that opened them.
    """
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
        asyncio.set_event_loop(_loop)
    return _loop.run_until_complete(coro)


# ==================== BOOKING TASKS ====================


@shared_task(bind=True, max_retries=3)
def expire_stale_bookings(self):
    """Cancel PENDING/VERIFIED bookings past ``expires_at``.

    Runs every ``EXPIRATION_CHECK_MINUTES`` minutes (default 10).
    """
    try:
        expired = run_async(_expire_stale_bookings())
    except Exception as exc:
        logger.error(f"Booking expiry sweep failed: {exc}")
        raise self.retry(exc=exc, countdown=60)
    return {"status": "success", "expired": expired}


async def _expire_stale_bookings() -> int:
    """Async implementation of the expiry sweep."""
    async with get_db_context() as db:
        return await booking_service.expire_stale_bookings(db)


@shared_task
def purge_completed_bookings(days_old: int | None = None):
    """Delete COMPLETED bookings older than the retention period.

    Runs daily; the default retention is ``COMPLETED_BOOKING_RETENTION_DAYS``.
    """
    days_old = days_old if days_old is not None else settings.completed_booking_retention_days
    purged = run_async(_purge_completed_bookings(days_old))
    return {"status": "success", "purged": purged, "days_old": days_old}


async def _purge_completed_bookings(days_old: int) -> int:
    """Async implementation of the purge."""
    async with get_db_context() as db:
        return await booking_service.purge_completed_bookings(db, days_old=days_old)
