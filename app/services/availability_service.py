"""Vehicle availability checks.

Every path that places or moves a booking on a vehicle's calendar goes
through this module. Windows are half-open ``[start, end)``: a booking ending
at the exact moment another starts does not conflict.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import ColumnElement, and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidInput, SlotUnavailable
from app.domain.booking_state import BookingStatus
from app.models.booking import Booking

logger = logging.getLogger(__name__)


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """True when two half-open intervals share at least one instant."""
    return a_start < b_end and a_end > b_start


@dataclass
class AvailabilityResult:
    """Outcome of an availability check."""

    vehicle_id: UUID
    start: datetime
    end: datetime
    available: bool
    conflicts: list[Booking] = field(default_factory=list)

    @property
    def conflict_ranges(self) -> list[tuple[datetime, datetime]]:
        return [(b.start_date, b.end_date) for b in self.conflicts]


class AvailabilityService:
    """Service for vehicle calendar checks."""

    def overlap_filter(self, start: datetime, end: datetime) -> ColumnElement[bool]:
        """Bookings that hold any part of ``[start, end)``."""
        return and_(
            Booking.status != BookingStatus.CANCELLED,
            Booking.start_date < end,
            Booking.end_date > start,
        )

    async def find_conflicts(
        self,
        db: AsyncSession,
        vehicle_id: UUID,
        start: datetime,
        end: datetime,
        exclude_booking_id: UUID | None = None,
    ) -> list[Booking]:
        """Non-cancelled bookings on the vehicle overlapping ``[start, end)``.

        Args:
            db: Database session
            vehicle_id: Vehicle to check
            start: Requested start (inclusive)
            end: Requested end (exclusive)
            exclude_booking_id: Booking being edited, ignored in the check

        Returns:
            Conflicting bookings ordered by start date
        """
        query = select(Booking).where(
            Booking.vehicle_id == vehicle_id,
            self.overlap_filter(start, end),
        )
        if exclude_booking_id is not None:
            query = query.where(Booking.id != exclude_booking_id)

        result = await db.execute(query.order_by(Booking.start_date))
        return list(result.scalars().all())

    async def check_available(
        self,
        db: AsyncSession,
        vehicle_id: UUID,
        start: datetime,
        end: datetime,
        exclude_booking_id: UUID | None = None,
    ) -> AvailabilityResult:
        """Check whether the vehicle is free for the requested window."""
        if end <= start:
            raise InvalidInput("End date must be after start date")

        conflicts = await self.find_conflicts(db, vehicle_id, start, end, exclude_booking_id)
        return AvailabilityResult(
            vehicle_id=vehicle_id,
            start=start,
            end=end,
            available=not conflicts,
            conflicts=conflicts,
        )

    async def assert_available(
        self,
        db: AsyncSession,
        vehicle_id: UUID,
        start: datetime,
        end: datetime,
        exclude_booking_id: UUID | None = None,
    ) -> None:
        """Raise SlotUnavailable when the window overlaps an existing booking."""
        result = await self.check_available(db, vehicle_id, start, end, exclude_booking_id)
        if not result.available:
            logger.warning(
                f"Vehicle {vehicle_id} unavailable for {start.isoformat()} - {end.isoformat()}: "
                f"{len(result.conflicts)} conflicting booking(s)"
            )
            raise SlotUnavailable(
                vehicle_id,
                start=start,
                end=end,
                conflicts=result.conflict_ranges,
            )


availability_service = AvailabilityService()
