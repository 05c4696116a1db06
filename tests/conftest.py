"""Shared fixtures: in-memory SQLite database, seeded fleet and an API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("MOCK_PAYMENTS", "true")

from collections.abc import AsyncGenerator  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.immutability import register_immutability_enforcement  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.gateways.manual import ManualPaymentGateway, ManualVerificationGateway  # noqa: E402
from app.schemas.vehicle import VehicleCreate  # noqa: E402
from app.services.platform_service import platform_service  # noqa: E402
from app.services.vehicle_service import vehicle_service  # noqa: E402

register_immutability_enforcement()

# Fixed reference clock for service tests
NOW = datetime(2026, 3, 2, 8, 0, tzinfo=UTC)


def day(n: int, hour: int = 10) -> datetime:
    """Day ``n`` of the test calendar at ``hour`` UTC (day 1 is the day after NOW)."""
    return (NOW + timedelta(days=n)).replace(hour=hour, minute=0, second=0, microsecond=0)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def platform(db):
    """Platform settings at the defaults: 20% tax, 30.00 fee under 25."""
    platform = await platform_service.get_platform_settings(db)
    await db.commit()
    return platform


@pytest.fixture
async def vehicle(db, platform):
    vehicle = await vehicle_service.create_vehicle(
        db,
        VehicleCreate(
            make="Peugeot",
            model="308",
            plate_number="AB-123-CD",
            price_per_hour=Decimal("10.00"),
            price_per_km=Decimal("0.50"),
            price_per_day=Decimal("100.00"),
            deposit_amount=Decimal("500.00"),
            daily_km_limit=Decimal("200"),
            extra_km_charge=Decimal("0.25"),
            current_odometer=Decimal("10000"),
        ),
    )
    await db.commit()
    return vehicle


@pytest.fixture
async def daily_only_vehicle(db, platform):
    vehicle = await vehicle_service.create_vehicle(
        db,
        VehicleCreate(
            make="Renault",
            model="Clio",
            plate_number="EF-456-GH",
            price_per_day=Decimal("60.00"),
        ),
    )
    await db.commit()
    return vehicle


@pytest.fixture
def verification_gateway(db) -> ManualVerificationGateway:
    return ManualVerificationGateway(db)


@pytest.fixture
def payment_gateway(db) -> ManualPaymentGateway:
    return ManualPaymentGateway(db)


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    from app.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
