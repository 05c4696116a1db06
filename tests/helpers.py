"""Booking builders shared by the service and API tests."""

import uuid
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking
from app.models.vehicle import Vehicle
from app.schemas.booking import BookingCreate
from app.services.booking_service import booking_service
from tests.conftest import NOW


async def make_booking(
    db: AsyncSession,
    vehicle: Vehicle,
    start: datetime,
    end: datetime,
    now: datetime = NOW,
    **fields,
) -> Booking:
    """Create a booking for a registered renter unless guest fields are given."""
    if "guest_name" not in fields:
        fields.setdefault("renter_id", uuid.uuid4())
    data = BookingCreate(vehicle_id=vehicle.id, start_date=start, end_date=end, **fields)
    booking = await booking_service.create_booking(db, data, now=now)
    await db.commit()
    return booking
