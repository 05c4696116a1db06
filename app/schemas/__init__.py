"""Pydantic schemas for API validation."""

from app.schemas.booking import (
    AvailabilityResponse,
    BookingCancelRequest,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusLogResponse,
    BookingUpdate,
    CompleteTripRequest,
    PriceQuoteRequest,
    PriceQuoteResponse,
    StartTripRequest,
    TransitionRequest,
)
from app.schemas.platform import (
    MaintenanceResult,
    ManualSettlement,
    ManualVerificationDecision,
    PlatformSettingsResponse,
    PlatformSettingsUpdate,
)
from app.schemas.vehicle import (
    VehicleAvailabilityUpdate,
    VehicleCreate,
    VehicleResponse,
)

__all__ = [
    # Booking
    "AvailabilityResponse",
    "BookingCancelRequest",
    "BookingCreate",
    "BookingListResponse",
    "BookingResponse",
    "BookingStatusLogResponse",
    "BookingUpdate",
    "CompleteTripRequest",
    "PriceQuoteRequest",
    "PriceQuoteResponse",
    "StartTripRequest",
    "TransitionRequest",
    # Platform
    "MaintenanceResult",
    "ManualSettlement",
    "ManualVerificationDecision",
    "PlatformSettingsResponse",
    "PlatformSettingsUpdate",
    # Vehicle
    "VehicleAvailabilityUpdate",
    "VehicleCreate",
    "VehicleResponse",
]
