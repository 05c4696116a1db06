"""Booking state machine.

States:
- DRAFT: Created, customer has not committed yet
- PENDING: Committed, awaiting document verification
- VERIFIED: Documents approved, awaiting payment
- CONFIRMED: Payment settled, awaiting pickup
- ONGOING: Vehicle picked up
- COMPLETED: Vehicle returned, fees settled (terminal)
- CANCELLED: Cancelled by customer, admin or expiry (terminal)
"""

from enum import Enum

from app.core.exceptions import InvalidTransition


class BookingStatus(str, Enum):
    """Booking lifecycle states."""

    DRAFT = "DRAFT"
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    CONFIRMED = "CONFIRMED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.DRAFT: {BookingStatus.PENDING, BookingStatus.VERIFIED, BookingStatus.CANCELLED},
    BookingStatus.PENDING: {BookingStatus.VERIFIED, BookingStatus.CANCELLED},
    BookingStatus.VERIFIED: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.ONGOING, BookingStatus.CANCELLED},
    BookingStatus.ONGOING: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),  # Terminal
    BookingStatus.CANCELLED: set(),  # Terminal
}

INITIAL_STATES = frozenset({BookingStatus.DRAFT, BookingStatus.PENDING})
TERMINAL_STATES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})

# Statuses that hold the vehicle's calendar
BLOCKING_STATES = frozenset(set(BookingStatus) - {BookingStatus.CANCELLED})

# Statuses waiting on the customer; these expire at ``expires_at``
EXPIRABLE_STATES = frozenset({BookingStatus.PENDING, BookingStatus.VERIFIED})

# Only these may still have their dates or prices edited
EDITABLE_STATES = frozenset({BookingStatus.DRAFT, BookingStatus.PENDING})

DELETABLE_STATES = frozenset({BookingStatus.DRAFT, BookingStatus.CANCELLED})


def can_transition(current: BookingStatus | str, target: BookingStatus | str) -> bool:
    try:
        current = BookingStatus(current)
        target = BookingStatus(target)
    except ValueError:
        return False
    return target in BOOKING_TRANSITIONS[current]


def assert_booking_transition(
    current: BookingStatus | str,
    target: BookingStatus | str,
    booking_id=None,
) -> None:
    """Validate a booking state transition.

    Raises:
        InvalidTransition: If the transition is not in the table
    """
    if not can_transition(current, target):
        current_value = getattr(current, "value", current)
        target_value = getattr(target, "value", target)
        reason = None
        if current_value in {s.value for s in TERMINAL_STATES}:
            reason = f"booking is already {current_value}"
        raise InvalidTransition(current_value, target_value, booking_id=booking_id, reason=reason)
