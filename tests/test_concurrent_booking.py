"""Concurrent booking creation against a database that serializes writers.

Each request runs in its own session and transaction. SQLite is switched to
``BEGIN IMMEDIATE`` so a second writer waits for the first to commit, the way
the vehicle row lock makes it wait on PostgreSQL.
"""

import asyncio
import itertools
import uuid
from decimal import Decimal

import pytest
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.exceptions import SlotUnavailable
from app.database import Base
from app.domain.booking_state import BookingStatus
from app.models.booking import Booking
from app.schemas.booking import BookingCreate
from app.schemas.vehicle import VehicleCreate
from app.services.availability_service import intervals_overlap
from app.services.booking_service import booking_service
from app.services.platform_service import platform_service
from app.services.vehicle_service import vehicle_service
from tests.conftest import NOW, day


@pytest.fixture
async def serialized_sessions(tmp_path):
    """Session factory over a file database plus the ID of a seeded vehicle."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'rentals.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        await platform_service.get_platform_settings(session)
        vehicle = await vehicle_service.create_vehicle(
            session,
            VehicleCreate(make="Peugeot", model="308", plate_number="AB-123-CD", price_per_day=Decimal("100")),
        )
        await session.commit()

    yield factory, vehicle.id
    await engine.dispose()


async def attempt(factory, vehicle_id, start, end) -> uuid.UUID:
    """One booking request with its own session, committed on success."""
    async with factory() as session:
        booking = await booking_service.create_booking(
            session,
            BookingCreate(vehicle_id=vehicle_id, renter_id=uuid.uuid4(), start_date=start, end_date=end),
            now=NOW,
        )
        await session.commit()
        return booking.id


async def live_bookings(factory, vehicle_id) -> list[Booking]:
    async with factory() as session:
        result = await session.execute(
            select(Booking).where(Booking.vehicle_id == vehicle_id, Booking.status != BookingStatus.CANCELLED)
        )
        return list(result.scalars().all())


class TestConcurrentCreation:
    async def test_only_one_of_two_overlapping_requests_wins(self, serialized_sessions):
        factory, vehicle_id = serialized_sessions

        results = await asyncio.gather(
            attempt(factory, vehicle_id, day(1), day(3)),
            attempt(factory, vehicle_id, day(2), day(4)),
            return_exceptions=True,
        )

        created = [r for r in results if isinstance(r, uuid.UUID)]
        refused = [r for r in results if isinstance(r, SlotUnavailable)]
        assert len(created) == 1, results
        assert len(refused) == 1, results

        bookings = await live_bookings(factory, vehicle_id)
        assert [b.id for b in bookings] == created
        for a, b in itertools.combinations(bookings, 2):
            assert not intervals_overlap(a.start_date, a.end_date, b.start_date, b.end_date)

    async def test_adjacent_requests_both_succeed(self, serialized_sessions):
        factory, vehicle_id = serialized_sessions

        results = await asyncio.gather(
            attempt(factory, vehicle_id, day(1), day(3)),
            attempt(factory, vehicle_id, day(3), day(5)),
            return_exceptions=True,
        )

        assert all(isinstance(r, uuid.UUID) for r in results), results
        assert len(await live_bookings(factory, vehicle_id)) == 2
