"""Vehicle (fleet) database models."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Numeric, String, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.domain.pricing import RateCard
from app.models.types import UTCDateTime, utcnow

if TYPE_CHECKING:
    from app.models.booking import Booking


class VehicleStatus(str, Enum):
    """Physical fleet status, driven by trips."""

    AVAILABLE = "AVAILABLE"
    RENTED = "RENTED"
    MAINTENANCE = "MAINTENANCE"


class Vehicle(Base):
    """Rentable car."""

    __tablename__ = "vehicles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    make: Mapped[str] = mapped_column(String(80), nullable=False)
    model: Mapped[str] = mapped_column(String(80), nullable=False)
    plate_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)

    # Rate card - a mode is offered only when its price is set
    price_per_hour: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    price_per_km: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    price_per_day: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    deposit_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))
    daily_km_limit: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    extra_km_charge: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))
    current_odometer: Mapped[Decimal] = mapped_column(Numeric(12, 1), default=Decimal("0"))

    # Administrative override, independent of bookings
    is_available: Mapped[bool] = mapped_column(Boolean, default=True)
    status: Mapped[VehicleStatus] = mapped_column(
        SAEnum(VehicleStatus, native_enum=False, length=20),
        default=VehicleStatus.AVAILABLE,
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    bookings: Mapped[list["Booking"]] = relationship("Booking", back_populates="vehicle")

    @property
    def rate_card(self) -> RateCard:
        return RateCard(
            price_per_hour=self.price_per_hour,
            price_per_km=self.price_per_km,
            price_per_day=self.price_per_day,
        )

    @property
    def display_name(self) -> str:
        return f"{self.make} {self.model} ({self.plate_number})"
