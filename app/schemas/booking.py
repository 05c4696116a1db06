"""Booking-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.booking_state import BookingStatus
from app.domain.pricing import RentalType
from app.models.types import as_utc

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class BookingWindow(BaseModel):
    """Rental window shared by create and quote requests."""

    start_date: datetime
    end_date: datetime

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator("end_date")
    @classmethod
    def validate_end_date(cls, v: datetime, info) -> datetime:
        start_date = info.data.get("start_date")
        if start_date and v <= start_date:
            raise ValueError("end_date must be after start_date")
        return v


class BookingCreate(BookingWindow):
    """Schema for creating a booking."""

    vehicle_id: UUID
    renter_id: UUID | None = None

    # Guest bookings (no renter account)
    guest_name: str | None = Field(None, max_length=200)
    guest_phone: str | None = Field(None, max_length=30)
    guest_email: str | None = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    driver_age: int | None = Field(None, ge=16, le=120)

    rental_type: RentalType = RentalType.DAY
    estimated_km: Decimal | None = Field(None, gt=0)

    # Explicit prices (admin-entered); derived from the rate card when omitted
    base_price: Decimal | None = Field(None, ge=0)
    total_price: Decimal | None = Field(None, ge=0)

    initial_status: BookingStatus = BookingStatus.DRAFT
    pickup_notes: str | None = Field(None, max_length=1000)


class BookingUpdate(BaseModel):
    """Schema for editing a DRAFT or PENDING booking."""

    start_date: datetime | None = None
    end_date: datetime | None = None
    guest_name: str | None = Field(None, max_length=200)
    guest_phone: str | None = Field(None, max_length=30)
    guest_email: str | None = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    driver_age: int | None = Field(None, ge=16, le=120)
    estimated_km: Decimal | None = Field(None, gt=0)
    base_price: Decimal | None = Field(None, ge=0)
    total_price: Decimal | None = Field(None, ge=0)
    pickup_notes: str | None = Field(None, max_length=1000)
    expected_version: int | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class TransitionRequest(BaseModel):
    """Body for plain status transitions (verify, confirm payment, reservation)."""

    expected_version: int | None = None
    actor: str = Field(default="admin", max_length=100)


class StartTripRequest(TransitionRequest):
    """Schema for handing the vehicle over."""

    start_odometer: Decimal = Field(..., ge=0)
    pickup_notes: str | None = Field(None, max_length=1000)


class CompleteTripRequest(TransitionRequest):
    """Schema for vehicle return."""

    end_odometer: Decimal = Field(..., ge=0)
    damage_fee: Decimal = Field(default=Decimal("0"), ge=0)
    return_notes: str | None = Field(None, max_length=1000)


class BookingCancelRequest(TransitionRequest):
    """Schema for canceling a booking."""

    reason: str | None = Field(None, max_length=1000)


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    vehicle_id: UUID
    renter_id: UUID | None
    guest_name: str | None
    guest_phone: str | None
    guest_email: str | None
    driver_age: int | None

    # Dates
    start_date: datetime
    end_date: datetime
    rental_type: RentalType
    estimated_km: Decimal | None = None

    # Pricing
    base_price: Decimal
    surcharge_amount: Decimal
    tax_amount: Decimal
    total_price: Decimal
    deposit_amount: Decimal
    currency: str
    price_override: bool = False

    # Status
    status: BookingStatus
    expires_at: datetime | None
    version: int

    # Trip
    start_odometer: Decimal | None
    end_odometer: Decimal | None
    pickup_notes: str | None
    return_notes: str | None
    damage_fee: Decimal | None
    extra_km_fee: Decimal | None

    # Timestamps
    confirmed_at: datetime | None
    started_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    cancellation_reason: str | None
    created_at: datetime
    updated_at: datetime


class BookingListResponse(BaseModel):
    """Schema for paginated booking list."""

    bookings: list[BookingResponse]
    total: int
    page: int
    page_size: int


class BookingStatusLogResponse(BaseModel):
    """Schema for one status history entry."""

    model_config = ConfigDict(from_attributes=True)

    from_status: str | None
    to_status: str
    actor: str
    note: str | None
    created_at: datetime


class ConflictingBooking(BaseModel):
    """Minimal view of a booking that blocks a requested window."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    start_date: datetime
    end_date: datetime
    status: BookingStatus


class AvailabilityResponse(BaseModel):
    """Schema for an availability check."""

    vehicle_id: UUID
    start_date: datetime
    end_date: datetime
    available: bool
    conflicts: list[ConflictingBooking]


class PriceQuoteRequest(BookingWindow):
    """Schema for pricing a rental without creating a booking."""

    rental_type: RentalType = RentalType.DAY
    estimated_km: Decimal | None = Field(None, gt=0)
    driver_age: int | None = Field(None, ge=16, le=120)


class PriceQuoteResponse(BaseModel):
    """Schema for a tax-inclusive price quote."""

    vehicle_id: UUID
    rental_type: RentalType
    quantity: Decimal
    rental_cost: Decimal
    surcharge_amount: Decimal
    base_price: Decimal
    tax_percentage: Decimal
    tax_amount: Decimal
    total_price: Decimal
    deposit_amount: Decimal
    currency: str
    available: bool
