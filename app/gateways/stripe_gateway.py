"""Stripe payment gateway adapter."""

import logging
from uuid import UUID

from app.config import settings
from app.core.exceptions import ExternalServiceError
from app.gateways.base import GatewayType, PaymentGateway, SettlementResult

logger = logging.getLogger(__name__)


class StripePaymentGateway(PaymentGateway):
    """Settlement lookup against Stripe.

    Checkout sessions are created with ``payment_intent_data.metadata.bookingId``;
    a booking is settled once a PaymentIntent carrying that metadata succeeded.
    """

    def __init__(self, secret_key: str | None = None):
        self.secret_key = secret_key or settings.stripe_secret_key

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.STRIPE

    async def get_settlement_status(self, booking_id: UUID | str) -> SettlementResult:
        """Search succeeded PaymentIntents tagged with the booking ID."""
        if not self.secret_key:
            raise ExternalServiceError("stripe", "Stripe not configured")

        try:
            import stripe

            stripe.api_key = self.secret_key

            result = stripe.PaymentIntent.search(
                query=f"metadata['bookingId']:'{booking_id}' AND status:'succeeded'",
                limit=1,
            )
        except Exception as e:
            logger.error(f"Stripe settlement lookup failed for booking {booking_id}: {e}")
            raise ExternalServiceError("stripe", str(e))

        if not result.data:
            return SettlementResult(settled=False, error_message="No succeeded payment found")

        intent = result.data[0]
        return SettlementResult(
            settled=True,
            transaction_id=intent.id,
            raw_response={"id": intent.id, "status": intent.status, "amount": intent.amount},
        )
