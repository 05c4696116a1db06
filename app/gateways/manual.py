"""Manual gateway adapters.

Decisions are recorded by an administrator (bank transfer received, documents
checked by hand) and stored in the database. The adapters only read them;
recording goes through ``GatewayService``.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.gateways.base import (
    GatewayType,
    PaymentGateway,
    SettlementResult,
    VerificationGateway,
    VerificationResult,
    VerificationStatus,
)
from app.models.gate import SettlementRecord, VerificationDecision


class ManualVerificationGateway(VerificationGateway):
    """Verification decisions entered by an administrator."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.MANUAL

    async def get_verification_status(self, subject_id: UUID | str) -> VerificationResult:
        """Return the recorded decision, NOT_UPLOADED when nothing was recorded."""
        decision = await self.db.get(VerificationDecision, UUID(str(subject_id)))
        if decision is None:
            return VerificationResult(status=VerificationStatus.NOT_UPLOADED)
        return VerificationResult(status=decision.status, reason=decision.reason)


class ManualPaymentGateway(PaymentGateway):
    """Settlement confirmed manually (bank transfer, cash at desk, mock checkout)."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.MANUAL

    async def get_settlement_status(self, booking_id: UUID | str) -> SettlementResult:
        """Return the recorded settlement, unsettled when nothing was recorded."""
        record = await self.db.get(SettlementRecord, UUID(str(booking_id)))
        if record is None:
            return SettlementResult(
                settled=False,
                error_message="Manual verification required by admin",
            )
        return SettlementResult(
            settled=record.settled,
            transaction_id=record.reference or f"manual_{record.booking_id}",
            raw_response={"type": "manual", "status": "settled" if record.settled else "failed"},
        )
