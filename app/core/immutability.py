"""Append-only enforcement for booking status history using SQLAlchemy events."""

import logging
from datetime import UTC, datetime

from fastapi import status
from sqlalchemy import event

from app.core.exceptions import AppException

logger = logging.getLogger(__name__)

_registered = False


class ImmutabilityViolationError(AppException):
    """Raised when attempting to modify an append-only record."""

    code = "IMMUTABLE_RECORD"

    def __init__(self, model_name: str, operation: str, record_id: str):
        self.model_name = model_name
        self.operation = operation
        self.record_id = record_id
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=(
                f"Immutability violation: Cannot {operation} {model_name} record {record_id}. "
                "Status history is append-only."
            ),
        )


def _log_immutability_violation(model_name: str, operation: str, record_id: str) -> None:
    """Log immutability violation for audit purposes."""
    logger.error(
        f"IMMUTABILITY_VIOLATION: Attempted to {operation} {model_name} "
        f"record_id={record_id} at {datetime.now(UTC).isoformat()}"
    )


def register_immutability_enforcement() -> None:
    """Register SQLAlchemy event listeners for append-only records.

    Safe to call more than once. Bulk ``delete()`` statements bypass mapper
    events; they are used only when a booking itself is deleted or purged.
    """
    global _registered
    if _registered:
        return

    from app.models.booking import BookingStatusLog

    # ============ BookingStatusLog: Append-Only ============

    @event.listens_for(BookingStatusLog, "before_update")
    def prevent_status_log_update(mapper, connection, target):
        """Prevent updates to BookingStatusLog (append-only)."""
        _log_immutability_violation("BookingStatusLog", "UPDATE", str(target.id))
        raise ImmutabilityViolationError("BookingStatusLog", "UPDATE", str(target.id))

    @event.listens_for(BookingStatusLog, "before_delete")
    def prevent_status_log_delete(mapper, connection, target):
        """Prevent deletion of BookingStatusLog (append-only)."""
        _log_immutability_violation("BookingStatusLog", "DELETE", str(target.id))
        raise ImmutabilityViolationError("BookingStatusLog", "DELETE", str(target.id))

    _registered = True
    logger.info("Immutability enforcement registered for booking status history")
