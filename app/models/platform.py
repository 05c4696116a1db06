"""Platform-wide settings model."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.domain.pricing import PricingConfig
from app.models.types import UTCDateTime, utcnow

# The settings table holds exactly one row, under this key
PLATFORM_SETTINGS_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")


class PlatformSettings(Base):
    """Singleton configuration row, edited by administrators."""

    __tablename__ = "platform_settings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=lambda: PLATFORM_SETTINGS_ID)
    company_name: Mapped[str] = mapped_column(String(120), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    tax_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)  # TVA
    young_driver_min_age: Mapped[int] = mapped_column(Integer, nullable=False)
    young_driver_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    support_email: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    def to_pricing_config(self) -> PricingConfig:
        return PricingConfig(
            tax_percentage=Decimal(self.tax_percentage),
            currency=self.currency,
            young_driver_min_age=self.young_driver_min_age,
            young_driver_fee=Decimal(self.young_driver_fee),
        )
