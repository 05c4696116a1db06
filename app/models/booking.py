"""Booking-related database models."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.domain.booking_state import BookingStatus
from app.domain.pricing import RentalType
from app.models.types import UTCDateTime, utcnow

if TYPE_CHECKING:
    from app.models.vehicle import Vehicle


class Booking(Base):
    """Reservation of one vehicle by one renter (or guest) for a time range."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_bookings_date_order"),
        CheckConstraint(
            "base_price >= 0 AND tax_amount >= 0 AND total_price >= 0",
            name="ck_bookings_non_negative_prices",
        ),
        Index("ix_bookings_vehicle_window", "vehicle_id", "start_date", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("vehicles.id"), nullable=False, index=True
    )

    # Renter - registered user, or guest contact details
    renter_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)
    guest_name: Mapped[str | None] = mapped_column(String(200))
    guest_phone: Mapped[str | None] = mapped_column(String(30))
    guest_email: Mapped[str | None] = mapped_column(String(255))
    driver_age: Mapped[int | None] = mapped_column(Integer)

    # Rental window (half-open [start_date, end_date))
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    rental_type: Mapped[RentalType] = mapped_column(
        SAEnum(RentalType, native_enum=False, length=10), default=RentalType.DAY
    )
    estimated_km: Mapped[Decimal | None] = mapped_column(Numeric(10, 1))  # KM rentals: quoted distance

    # Pricing (tax-inclusive total = base + tax)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    surcharge_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0.00")
    )  # young driver surcharge, already part of base_price
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    deposit_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0.00")
    )  # held separately, never part of total_price
    currency: Mapped[str] = mapped_column(String(3), default="EUR")
    price_override: Mapped[bool] = mapped_column(Boolean, default=False)  # admin-entered price

    # Status
    status: Mapped[BookingStatus] = mapped_column(
        SAEnum(BookingStatus, native_enum=False, length=20),
        default=BookingStatus.DRAFT,
        index=True,
    )
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime, index=True)

    # Trip (set at pickup / return)
    start_odometer: Mapped[Decimal | None] = mapped_column(Numeric(12, 1))
    end_odometer: Mapped[Decimal | None] = mapped_column(Numeric(12, 1))
    pickup_notes: Mapped[str | None] = mapped_column(Text)
    return_notes: Mapped[str | None] = mapped_column(Text)
    damage_fee: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    extra_km_fee: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    # Timestamps
    confirmed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    cancellation_reason: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    # Optimistic concurrency counter
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    vehicle: Mapped["Vehicle"] = relationship("Vehicle", back_populates="bookings")
    status_logs: Mapped[list["BookingStatusLog"]] = relationship(
        "BookingStatusLog",
        back_populates="booking",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="BookingStatusLog.created_at",
    )

    @property
    def is_guest(self) -> bool:
        return self.renter_id is None

    @property
    def duration_hours(self) -> float:
        return (self.end_date - self.start_date).total_seconds() / 3600

    @property
    def distance_km(self) -> Decimal | None:
        if self.start_odometer is None or self.end_odometer is None:
            return None
        return self.end_odometer - self.start_odometer


class BookingStatusLog(Base):
    """Append-only record of every booking status change."""

    __tablename__ = "booking_status_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_status: Mapped[str | None] = mapped_column(String(20))  # None on creation
    to_status: Mapped[str] = mapped_column(String(20), nullable=False)
    actor: Mapped[str] = mapped_column(String(100), default="system")
    note: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, index=True)

    # Relationships
    booking: Mapped["Booking"] = relationship("Booking", back_populates="status_logs")
