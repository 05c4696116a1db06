"""API dependencies shared by the routers."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.gateways.base import PaymentGateway, VerificationGateway
from app.services.gateway_service import gateway_service

__all__ = [
    "get_db",
    "get_payment_gateway",
    "get_verification_gateway",
]


def get_verification_gateway(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> VerificationGateway:
    """Verification gate used for DRAFT/PENDING → VERIFIED."""
    return gateway_service.verification_gateway(db)


def get_payment_gateway(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PaymentGateway:
    """Payment gate used for VERIFIED → CONFIRMED."""
    return gateway_service.payment_gateway(db)


VerificationGatewayDep = Annotated[VerificationGateway, Depends(get_verification_gateway)]
PaymentGatewayDep = Annotated[PaymentGateway, Depends(get_payment_gateway)]
