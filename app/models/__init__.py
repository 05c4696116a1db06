"""Database models."""

from app.models.booking import Booking, BookingStatusLog
from app.models.gate import SettlementRecord, VerificationDecision
from app.models.platform import PlatformSettings
from app.models.vehicle import Vehicle, VehicleStatus

__all__ = [
    # Fleet
    "Vehicle",
    "VehicleStatus",
    # Booking
    "Booking",
    "BookingStatusLog",
    # Gates
    "SettlementRecord",
    "VerificationDecision",
    # Platform
    "PlatformSettings",
]
