"""Fleet service: vehicles, rate cards and physical status."""

import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidInput, NotFoundError
from app.domain.booking_state import TERMINAL_STATES
from app.domain.pricing import RateCard
from app.models.booking import Booking, BookingStatusLog
from app.models.types import as_utc
from app.models.vehicle import Vehicle, VehicleStatus
from app.schemas.vehicle import VehicleCreate, VehicleUpdate
from app.services.availability_service import availability_service

logger = logging.getLogger(__name__)

# Fields an update may clear; any other null is ignored
NULLABLE_VEHICLE_FIELDS = frozenset({"price_per_hour", "price_per_km", "price_per_day", "daily_km_limit"})


class VehicleService:
    """Service for fleet operations."""

    async def create_vehicle(self, db: AsyncSession, data: VehicleCreate) -> Vehicle:
        """Add a vehicle to the fleet."""
        vehicle = Vehicle(
            make=data.make,
            model=data.model,
            plate_number=data.plate_number.upper(),
            price_per_hour=data.price_per_hour,
            price_per_km=data.price_per_km,
            price_per_day=data.price_per_day,
            deposit_amount=data.deposit_amount,
            daily_km_limit=data.daily_km_limit,
            extra_km_charge=data.extra_km_charge,
            current_odometer=data.current_odometer,
            is_available=True,
            status=VehicleStatus.AVAILABLE,
        )
        db.add(vehicle)
        try:
            await db.flush()
        except IntegrityError:
            raise InvalidInput(f"Plate number {vehicle.plate_number} is already registered") from None

        logger.info(f"Vehicle created: {vehicle.display_name} ({vehicle.id})")
        return vehicle

    async def list_vehicles(
        self,
        db: AsyncSession,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Vehicle]:
        """Whole fleet, or only the vehicles bookable for ``[start, end)``."""
        if start is None and end is None:
            result = await db.execute(select(Vehicle).order_by(Vehicle.make, Vehicle.model, Vehicle.plate_number))
            return list(result.scalars().all())
        if start is None or end is None:
            raise InvalidInput("start_date and end_date must be given together")
        return await self.list_available(db, start, end)

    async def list_available(self, db: AsyncSession, start: datetime, end: datetime) -> list[Vehicle]:
        """Vehicles open to bookings with no booking holding any part of the window.

        Vehicles out on a rental still count when the window is free, since
        they come back before it starts; vehicles in maintenance do not.
        """
        start, end = as_utc(start), as_utc(end)
        if end <= start:
            raise InvalidInput("end_date must be after start_date")

        booked = (
            select(Booking.id)
            .where(Booking.vehicle_id == Vehicle.id, availability_service.overlap_filter(start, end))
            .exists()
        )
        result = await db.execute(
            select(Vehicle)
            .where(
                Vehicle.is_available.is_(True),
                Vehicle.status.in_([VehicleStatus.AVAILABLE, VehicleStatus.RENTED]),
                ~booked,
            )
            .order_by(Vehicle.make, Vehicle.model, Vehicle.plate_number)
        )
        vehicles = list(result.scalars().all())
        logger.debug(f"{len(vehicles)} vehicles free for {start.isoformat()} - {end.isoformat()}")
        return vehicles

    async def update_vehicle(self, db: AsyncSession, vehicle_id: UUID, data: VehicleUpdate) -> Vehicle:
        """Edit a vehicle. Existing bookings keep the prices they were booked at."""
        vehicle = await self.get_vehicle(db, vehicle_id, lock=True)
        changes = {
            name: value
            for name, value in data.model_dump(exclude_unset=True).items()
            if value is not None or name in NULLABLE_VEHICLE_FIELDS
        }
        if changes.get("plate_number"):
            changes["plate_number"] = changes["plate_number"].upper()

        rates = [
            changes.get(name, getattr(vehicle, name))
            for name in ("price_per_hour", "price_per_km", "price_per_day")
        ]
        if all(rate is None for rate in rates):
            raise InvalidInput("A vehicle needs at least one of price_per_hour, price_per_km or price_per_day")

        for name, value in changes.items():
            setattr(vehicle, name, value)

        try:
            await db.flush()
        except IntegrityError:
            raise InvalidInput(f"Plate number {vehicle.plate_number} is already registered") from None

        logger.info(f"Vehicle {vehicle.id} updated: {', '.join(sorted(changes)) or 'no changes'}")
        return vehicle

    async def delete_vehicle(self, db: AsyncSession, vehicle_id: UUID) -> None:
        """Remove a vehicle together with its finished bookings.

        Raises:
            NotFoundError: If the vehicle does not exist
            InvalidInput: While any booking on it is still open
        """
        vehicle = await self.get_vehicle(db, vehicle_id, lock=True)

        open_bookings = await db.scalar(
            select(func.count(Booking.id)).where(
                Booking.vehicle_id == vehicle.id,
                Booking.status.not_in(list(TERMINAL_STATES)),
            )
        )
        if open_bookings:
            raise InvalidInput(
                f"Vehicle {vehicle.id} has {open_bookings} open booking(s); cancel or complete them first"
            )

        booking_ids = select(Booking.id).where(Booking.vehicle_id == vehicle.id)
        await db.execute(
            delete(BookingStatusLog)
            .where(BookingStatusLog.booking_id.in_(booking_ids))
            .execution_options(synchronize_session=False)
        )
        await db.execute(delete(Booking).where(Booking.vehicle_id == vehicle.id))
        await db.execute(delete(Vehicle).where(Vehicle.id == vehicle.id))
        await db.flush()
        logger.info(f"Vehicle deleted: {vehicle_id}")

    async def get_vehicle(self, db: AsyncSession, vehicle_id: UUID, lock: bool = False) -> Vehicle:
        """Fetch a vehicle, optionally holding its row lock until commit.

        The lock serializes bookings on the same vehicle.
        """
        query = select(Vehicle).where(Vehicle.id == vehicle_id)
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)

        result = await db.execute(query)
        vehicle = result.scalar_one_or_none()
        if not vehicle:
            raise NotFoundError("Vehicle", str(vehicle_id))
        return vehicle

    async def get_rate_card(self, db: AsyncSession, vehicle_id: UUID) -> RateCard:
        vehicle = await self.get_vehicle(db, vehicle_id)
        return vehicle.rate_card

    async def set_availability(self, db: AsyncSession, vehicle_id: UUID, is_available: bool) -> Vehicle:
        """Administrative override; blocks new bookings without touching existing ones."""
        vehicle = await self.get_vehicle(db, vehicle_id, lock=True)
        vehicle.is_available = is_available
        await db.flush()
        logger.info(f"Vehicle {vehicle.id} availability set to {is_available}")
        return vehicle

    def mark_rented(self, vehicle: Vehicle) -> None:
        vehicle.status = VehicleStatus.RENTED

    def mark_returned(self, vehicle: Vehicle, odometer: Decimal | None = None) -> None:
        """Vehicle is back; it goes through maintenance before the next rental."""
        vehicle.status = VehicleStatus.MAINTENANCE
        if odometer is not None and odometer > (vehicle.current_odometer or 0):
            vehicle.current_odometer = odometer

    async def finish_maintenance(self, db: AsyncSession, vehicle_id: UUID) -> Vehicle:
        """Return a vehicle from MAINTENANCE to AVAILABLE."""
        vehicle = await self.get_vehicle(db, vehicle_id, lock=True)
        if vehicle.status != VehicleStatus.MAINTENANCE:
            raise InvalidInput(
                f"Vehicle {vehicle.id} is {vehicle.status.value}, not in maintenance"
            )
        vehicle.status = VehicleStatus.AVAILABLE
        await db.flush()
        logger.info(f"Vehicle {vehicle.id} back in service")
        return vehicle


vehicle_service = VehicleService()
