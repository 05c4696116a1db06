"""Custom application exceptions."""

from datetime import datetime
from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def __str__(self) -> str:
        return str(self.detail)


class InvalidInput(AppException):
    """Malformed or out-of-range arguments."""

    code = "INVALID_INPUT"

    def __init__(self, detail: str = "Validation failed", errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class NotFoundError(AppException):
    """Resource not found exception."""

    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", identifier: str | None = None) -> None:
        self.resource = resource
        self.identifier = identifier
        detail = f"{resource} not found"
        if identifier:
            detail = f"{resource} with ID '{identifier}' not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class SlotUnavailable(AppException):
    """The vehicle is already booked (or blocked) for the requested range."""

    code = "SLOT_UNAVAILABLE"

    def __init__(
        self,
        vehicle_id: Any,
        start: datetime | None = None,
        end: datetime | None = None,
        conflicts: list[tuple[datetime, datetime]] | None = None,
        detail: str | None = None,
    ) -> None:
        self.vehicle_id = vehicle_id
        self.start = start
        self.end = end
        self.conflicts = conflicts or []
        if detail is None:
            detail = f"Vehicle {vehicle_id} is not available for the selected dates"
            if self.conflicts:
                ranges = ", ".join(f"{s.isoformat()} → {e.isoformat()}" for s, e in self.conflicts)
                detail = f"{detail} (conflicts with {ranges})"
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class RateUnavailable(AppException):
    """The vehicle does not offer the requested rental mode."""

    code = "RATE_UNAVAILABLE"

    def __init__(self, rental_type: str, vehicle_id: Any = None) -> None:
        self.rental_type = rental_type
        self.vehicle_id = vehicle_id
        detail = f"{rental_type} rental not available for this vehicle"
        if vehicle_id is not None:
            detail = f"{rental_type} rental not available for vehicle {vehicle_id}"
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class InvalidTransition(AppException):
    """A booking state machine guard failed."""

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        current: str,
        target: str,
        booking_id: Any = None,
        reason: str | None = None,
    ) -> None:
        self.current = current
        self.target = target
        self.booking_id = booking_id
        self.reason = reason
        detail = f"Invalid booking transition: {current} → {target}"
        if booking_id is not None:
            detail = f"{detail} for booking {booking_id}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ConflictingUpdate(AppException):
    """A concurrent modification won the race for this row."""

    code = "CONFLICTING_UPDATE"

    def __init__(self, booking_id: Any, expected_version: int | None = None, actual_version: int | None = None) -> None:
        self.booking_id = booking_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        detail = f"Booking {booking_id} was modified concurrently; reload and retry"
        if expected_version is not None and actual_version is not None:
            detail = f"{detail} (expected version {expected_version}, found {actual_version})"
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ExternalServiceError(AppException):
    """External service error."""

    code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, service: str, detail: str | None = None) -> None:
        message = f"External service '{service}' is unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=message)
