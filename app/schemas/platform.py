"""Platform settings Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.gateways.base import VerificationStatus


class PlatformSettingsUpdate(BaseModel):
    """Schema for admin updates; omitted fields are left unchanged."""

    company_name: str | None = Field(None, min_length=1, max_length=120)
    currency: str | None = Field(None, pattern="^[A-Z]{3}$")
    tax_percentage: Decimal | None = None
    young_driver_min_age: int | None = None
    young_driver_fee: Decimal | None = None
    support_email: str | None = Field(None, max_length=255)


class PlatformSettingsResponse(BaseModel):
    """Schema for platform settings response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_name: str
    currency: str
    tax_percentage: Decimal
    young_driver_min_age: int
    young_driver_fee: Decimal
    support_email: str | None
    updated_at: datetime


class MaintenanceResult(BaseModel):
    """Schema for maintenance job results."""

    affected: int


class ManualVerificationDecision(BaseModel):
    """Admin-recorded document verification decision."""

    subject_id: UUID
    status: VerificationStatus
    reason: str | None = Field(None, max_length=500)


class ManualSettlement(BaseModel):
    """Admin-recorded payment settlement (bank transfer, desk payment)."""

    booking_id: UUID
    settled: bool = True
    reference: str | None = Field(None, max_length=100)
