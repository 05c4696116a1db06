"""Gateway selection.

Routes verification and settlement lookups to the configured adapter and
records manual gate decisions.
No business logic here - only gateway coordination.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import NotFoundError
from app.gateways.base import PaymentGateway, VerificationGateway, VerificationStatus
from app.gateways.manual import ManualPaymentGateway, ManualVerificationGateway
from app.gateways.stripe_gateway import StripePaymentGateway
from app.models.booking import Booking
from app.models.gate import SettlementRecord, VerificationDecision

logger = logging.getLogger(__name__)


def _use_stripe() -> bool:
    """Stripe is used only when configured and mock payments are off."""
    return bool(settings.stripe_secret_key) and not settings.mock_payments


class GatewayService:
    """Hands out gate adapters and stores manual decisions."""

    def __init__(self) -> None:
        self._stripe: StripePaymentGateway | None = None

    def verification_gateway(self, db: AsyncSession) -> VerificationGateway:
        return ManualVerificationGateway(db)

    def payment_gateway(self, db: AsyncSession) -> PaymentGateway:
        if _use_stripe():
            if self._stripe is None:
                self._stripe = StripePaymentGateway()
            return self._stripe
        return ManualPaymentGateway(db)

    async def record_verification_decision(
        self,
        db: AsyncSession,
        subject_id: UUID,
        status: VerificationStatus | str,
        reason: str | None = None,
        actor: str = "admin",
    ) -> VerificationDecision:
        """Store (or replace) the verification decision for a subject."""
        decision = await db.get(VerificationDecision, subject_id)
        if decision is None:
            decision = VerificationDecision(subject_id=subject_id)
            db.add(decision)
        decision.status = VerificationStatus(status)
        decision.reason = reason
        decision.decided_by = actor
        await db.flush()

        logger.info(f"Verification {decision.status.value} recorded for {subject_id} by {actor}")
        return decision

    async def record_settlement(
        self,
        db: AsyncSession,
        booking_id: UUID,
        settled: bool = True,
        reference: str | None = None,
    ) -> SettlementRecord:
        """Store (or replace) the manual settlement of a booking."""
        if await db.get(Booking, booking_id) is None:
            raise NotFoundError("Booking", str(booking_id))

        record = await db.get(SettlementRecord, booking_id)
        if record is None:
            record = SettlementRecord(booking_id=booking_id)
            db.add(record)
        record.settled = settled
        record.reference = reference
        await db.flush()

        logger.info(f"Manual settlement {'received' if settled else 'failed'} for booking {booking_id}")
        return record


gateway_service = GatewayService()
