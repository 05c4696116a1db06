"""Background task tests; the Celery wrappers are exercised through their async bodies."""

from contextlib import asynccontextmanager
from datetime import timedelta

from app import tasks
from app.domain.booking_state import BookingStatus
from app.worker import celery_app
from tests.conftest import day
from tests.helpers import make_booking


def use_session(monkeypatch, db):
    @asynccontextmanager
    async def session_context():
        yield db
        await db.commit()

    monkeypatch.setattr(tasks, "get_db_context", session_context)


async def test_expiry_sweep(db, vehicle, monkeypatch):
    use_session(monkeypatch, db)
    # Confirmation window already closed
    stale = await make_booking(
        db,
        vehicle,
        day(1),
        day(3),
        now=day(1) - timedelta(days=1),
        initial_status=BookingStatus.PENDING,
    )
    stale.expires_at = day(-300)
    await db.commit()

    assert await tasks._expire_stale_bookings() == 1
    assert stale.status == BookingStatus.CANCELLED


async def test_purge_without_candidates(db, platform, monkeypatch):
    use_session(monkeypatch, db)
    assert await tasks._purge_completed_bookings(90) == 0


def test_beat_schedule():
    schedule = celery_app.conf.beat_schedule
    tasks_scheduled = {entry["task"] for entry in schedule.values()}

    assert "app.tasks.expire_stale_bookings" in tasks_scheduled
    assert "app.tasks.purge_completed_bookings" in tasks_scheduled


def test_purge_keeps_explicit_zero_days(monkeypatch):
    seen = []

    def fake_purge(days_old):
        seen.append(days_old)
        return 0

    monkeypatch.setattr(tasks, "_purge_completed_bookings", fake_purge)
    monkeypatch.setattr(tasks, "run_async", lambda result: result)
    result = tasks.purge_completed_bookings(0)

    assert result["days_old"] == 0
    assert seen == [0]


def test_purge_defaults_to_retention_setting(monkeypatch):
    monkeypatch.setattr(tasks, "_purge_completed_bookings", lambda days_old: 0)
    monkeypatch.setattr(tasks, "run_async", lambda result: result)
    result = tasks.purge_completed_bookings()

    assert result["days_old"] == tasks.settings.completed_booking_retention_days
