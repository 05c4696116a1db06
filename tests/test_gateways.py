"""Gateway adapter tests."""

import uuid
from types import SimpleNamespace

import pytest
import stripe

from app.core.exceptions import ExternalServiceError, NotFoundError
from app.gateways.base import GatewayType, VerificationStatus
from app.gateways.manual import ManualPaymentGateway, ManualVerificationGateway
from app.gateways.stripe_gateway import StripePaymentGateway
from app.services import gateway_service as gateway_module
from app.services.gateway_service import GatewayService, gateway_service
from tests.conftest import day
from tests.helpers import make_booking


class TestManualVerificationGateway:
    async def test_unknown_subject_has_not_uploaded(self, db):
        gateway = ManualVerificationGateway(db)
        result = await gateway.get_verification_status(uuid.uuid4())

        assert result.status == VerificationStatus.NOT_UPLOADED
        assert not result.approved

    async def test_recorded_decision(self, db):
        renter_id = uuid.uuid4()
        await gateway_service.record_verification_decision(db, renter_id, "APPROVED")

        result = await ManualVerificationGateway(db).get_verification_status(str(renter_id))
        assert result.approved

    async def test_latest_decision_wins(self, db):
        renter_id = uuid.uuid4()
        await gateway_service.record_verification_decision(db, renter_id, VerificationStatus.APPROVED)
        await gateway_service.record_verification_decision(
            db, renter_id, VerificationStatus.REJECTED, "expired licence"
        )

        result = await ManualVerificationGateway(db).get_verification_status(renter_id)
        assert result.status == VerificationStatus.REJECTED
        assert result.reason == "expired licence"

    async def test_decision_is_visible_to_other_sessions(self, session_factory):
        renter_id = uuid.uuid4()
        async with session_factory() as session:
            await gateway_service.record_verification_decision(
                session, renter_id, VerificationStatus.APPROVED, actor="back-office"
            )
            await session.commit()

        # A different worker process sees the same decision
        async with session_factory() as session:
            result = await ManualVerificationGateway(session).get_verification_status(renter_id)
        assert result.approved


class TestManualPaymentGateway:
    async def test_unsettled_by_default(self, db):
        gateway = ManualPaymentGateway(db)
        result = await gateway.get_settlement_status(uuid.uuid4())

        assert not result.settled
        assert result.error_message

    async def test_recorded_settlement(self, db, vehicle):
        booking = await make_booking(db, vehicle, day(1), day(3))
        await gateway_service.record_settlement(db, booking.id)

        gateway = ManualPaymentGateway(db)
        result = await gateway.get_settlement_status(booking.id)
        assert result.settled
        assert result.transaction_id == f"manual_{booking.id}"
        assert gateway.gateway_type == GatewayType.MANUAL

    async def test_settlement_reference_and_reversal(self, db, vehicle):
        booking = await make_booking(db, vehicle, day(1), day(3))
        await gateway_service.record_settlement(db, booking.id, reference="TRF-42")

        result = await ManualPaymentGateway(db).get_settlement_status(booking.id)
        assert result.transaction_id == "TRF-42"

        await gateway_service.record_settlement(db, booking.id, settled=False)
        result = await ManualPaymentGateway(db).get_settlement_status(booking.id)
        assert not result.settled

    async def test_settlement_for_unknown_booking(self, db):
        with pytest.raises(NotFoundError):
            await gateway_service.record_settlement(db, uuid.uuid4())

    async def test_settlement_is_visible_to_other_sessions(self, session_factory, vehicle):
        async with session_factory() as session:
            booking = await make_booking(session, vehicle, day(1), day(3))
            await gateway_service.record_settlement(session, booking.id, reference="desk-7")
            await session.commit()

        async with session_factory() as session:
            result = await ManualPaymentGateway(session).get_settlement_status(booking.id)
        assert result.settled
        assert result.transaction_id == "desk-7"


class TestStripePaymentGateway:
    async def test_requires_configuration(self, monkeypatch):
        monkeypatch.setattr(gateway_module.settings, "stripe_secret_key", None)

        with pytest.raises(ExternalServiceError):
            await StripePaymentGateway().get_settlement_status(uuid.uuid4())

    async def test_succeeded_intent_settles(self, monkeypatch):
        booking_id = uuid.uuid4()
        queries = []

        def fake_search(query, limit):
            queries.append(query)
            return SimpleNamespace(data=[SimpleNamespace(id="pi_123", status="succeeded", amount=24000)])

        monkeypatch.setattr(stripe.PaymentIntent, "search", fake_search)
        result = await StripePaymentGateway(secret_key="sk_test_x").get_settlement_status(booking_id)

        assert result.settled
        assert result.transaction_id == "pi_123"
        assert str(booking_id) in queries[0]

    async def test_no_intent_is_unsettled(self, monkeypatch):
        monkeypatch.setattr(stripe.PaymentIntent, "search", lambda query, limit: SimpleNamespace(data=[]))
        result = await StripePaymentGateway(secret_key="sk_test_x").get_settlement_status(uuid.uuid4())

        assert not result.settled

    async def test_api_failure_is_external_error(self, monkeypatch):
        def failing_search(query, limit):
            raise RuntimeError("network down")

        monkeypatch.setattr(stripe.PaymentIntent, "search", failing_search)
        with pytest.raises(ExternalServiceError):
            await StripePaymentGateway(secret_key="sk_test_x").get_settlement_status(uuid.uuid4())


class TestGatewaySelection:
    async def test_mock_payments_use_manual_gateway(self, monkeypatch, db):
        monkeypatch.setattr(gateway_module.settings, "stripe_secret_key", "sk_test_x")
        monkeypatch.setattr(gateway_module.settings, "mock_payments", True)

        gateway = GatewayService().payment_gateway(db)
        assert isinstance(gateway, ManualPaymentGateway)
        assert gateway.db is db

    async def test_configured_stripe_is_used(self, monkeypatch, db):
        monkeypatch.setattr(gateway_module.settings, "stripe_secret_key", "sk_test_x")
        monkeypatch.setattr(gateway_module.settings, "mock_payments", False)

        service = GatewayService()
        gateway = service.payment_gateway(db)
        assert gateway.gateway_type == GatewayType.STRIPE
        assert service.payment_gateway(db) is gateway

    async def test_verification_is_manual(self, db):
        gateway = GatewayService().verification_gateway(db)
        assert isinstance(gateway, ManualVerificationGateway)
