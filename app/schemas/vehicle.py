"""Vehicle-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.vehicle import VehicleStatus


class VehicleBase(BaseModel):
    """Base vehicle schema."""

    make: str = Field(..., min_length=1, max_length=80)
    model: str = Field(..., min_length=1, max_length=80)
    plate_number: str = Field(..., min_length=2, max_length=20)

    # Rate card - leave a price out to disable that rental mode
    price_per_hour: Decimal | None = Field(None, gt=0)
    price_per_km: Decimal | None = Field(None, gt=0)
    price_per_day: Decimal | None = Field(None, gt=0)

    deposit_amount: Decimal = Field(default=Decimal("0"), ge=0)
    daily_km_limit: Decimal | None = Field(None, gt=0)
    extra_km_charge: Decimal = Field(default=Decimal("0"), ge=0)
    current_odometer: Decimal = Field(default=Decimal("0"), ge=0)


class VehicleCreate(VehicleBase):
    """Schema for adding a vehicle to the fleet."""

    @model_validator(mode="after")
    def require_one_rate(self) -> "VehicleCreate":
        if self.price_per_hour is None and self.price_per_km is None and self.price_per_day is None:
            raise ValueError("At least one of price_per_hour, price_per_km or price_per_day is required")
        return self


class VehicleUpdate(BaseModel):
    """Schema for editing a vehicle; send a rate as null to withdraw that mode."""

    make: str | None = Field(None, min_length=1, max_length=80)
    model: str | None = Field(None, min_length=1, max_length=80)
    plate_number: str | None = Field(None, min_length=2, max_length=20)

    price_per_hour: Decimal | None = Field(None, gt=0)
    price_per_km: Decimal | None = Field(None, gt=0)
    price_per_day: Decimal | None = Field(None, gt=0)

    deposit_amount: Decimal | None = Field(None, ge=0)
    daily_km_limit: Decimal | None = Field(None, gt=0)
    extra_km_charge: Decimal | None = Field(None, ge=0)
    current_odometer: Decimal | None = Field(None, ge=0)


class VehicleAvailabilityUpdate(BaseModel):
    """Schema for the administrative availability override."""

    is_available: bool


class VehicleResponse(VehicleBase):
    """Schema for vehicle response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    is_available: bool
    status: VehicleStatus
    created_at: datetime
    updated_at: datetime
