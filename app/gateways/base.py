"""Gateway interfaces for the verification and payment subsystems.

The booking engine only reads from these collaborators; it never mutates
their state. Business logic should NOT live in adapters - only communication.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class GatewayType(str, Enum):
    """Supported gateway adapters."""

    STRIPE = "stripe"
    MANUAL = "manual"


class VerificationStatus(str, Enum):
    """Document / identity verification outcome."""

    NOT_UPLOADED = "NOT_UPLOADED"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass
class VerificationResult:
    """Result of a verification status lookup."""

    status: VerificationStatus
    reason: str | None = None

    @property
    def approved(self) -> bool:
        return self.status == VerificationStatus.APPROVED


@dataclass
class SettlementResult:
    """Result of a payment settlement lookup."""

    settled: bool
    transaction_id: str | None = None
    error_message: str | None = None
    raw_response: dict | None = None


class VerificationGateway(ABC):
    """Abstract base class for the document verification subsystem."""

    @property
    @abstractmethod
    def gateway_type(self) -> GatewayType:
        """Return the gateway type."""
        pass

    @abstractmethod
    async def get_verification_status(self, subject_id: UUID | str) -> VerificationResult:
        """Look up verification status.

        Args:
            subject_id: Renter ID, or booking ID for guest bookings

        Returns:
            VerificationResult with the current decision
        """
        pass


class PaymentGateway(ABC):
    """Abstract base class for the payment subsystem."""

    @property
    @abstractmethod
    def gateway_type(self) -> GatewayType:
        """Return the gateway type."""
        pass

    @abstractmethod
    async def get_settlement_status(self, booking_id: UUID | str) -> SettlementResult:
        """Check whether the booking's charge has settled.

        Args:
            booking_id: Booking the payment was taken for

        Returns:
            SettlementResult with settlement details
        """
        pass
