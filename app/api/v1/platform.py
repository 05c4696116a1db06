"""Platform administration endpoints: settings, manual gates and maintenance jobs."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.models.platform import PlatformSettings
from app.schemas.platform import (
    MaintenanceResult,
    ManualSettlement,
    ManualVerificationDecision,
    PlatformSettingsResponse,
    PlatformSettingsUpdate,
)
from app.services.booking_service import booking_service
from app.services.gateway_service import gateway_service
from app.services.platform_service import platform_service

router = APIRouter()


@router.get("/settings", response_model=PlatformSettingsResponse)
async def get_platform_settings(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PlatformSettings:
    """Get platform settings."""
    return await platform_service.get_platform_settings(db)


@router.patch("/settings", response_model=PlatformSettingsResponse)
async def update_platform_settings(
    data: PlatformSettingsUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PlatformSettings:
    """Update platform settings (tax rate, currency, young-driver policy)."""
    return await platform_service.update_platform_settings(db, data)


@router.post("/verifications", response_model=ManualVerificationDecision)
async def record_verification(
    decision: ManualVerificationDecision,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ManualVerificationDecision:
    """Record a document verification decision made by hand."""
    await gateway_service.record_verification_decision(
        db, decision.subject_id, decision.status, decision.reason
    )
    return decision


@router.post("/settlements", response_model=ManualSettlement)
async def record_settlement(
    settlement: ManualSettlement,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ManualSettlement:
    """Record a payment received outside the card gateway."""
    await gateway_service.record_settlement(
        db, settlement.booking_id, settlement.settled, settlement.reference
    )
    return settlement


@router.post("/expire", response_model=MaintenanceResult)
async def expire_bookings(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MaintenanceResult:
    """Cancel bookings whose confirmation window has passed."""
    affected = await booking_service.expire_stale_bookings(db)
    return MaintenanceResult(affected=affected)


@router.post("/cleanup", response_model=MaintenanceResult)
async def purge_completed_bookings(
    db: Annotated[AsyncSession, Depends(get_db)],
    days_old: int | None = Query(None, ge=1),
) -> MaintenanceResult:
    """Delete old completed bookings."""
    affected = await booking_service.purge_completed_bookings(db, days_old=days_old)
    return MaintenanceResult(affected=affected)
