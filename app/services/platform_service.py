"""Platform settings service.

Single-row configuration (company, currency, tax, young-driver policy). The
row lives under a fixed key and is created from the configured defaults on
first read if the migration did not seed it.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import InvalidInput
from app.domain.pricing import PricingConfig
from app.models.platform import PLATFORM_SETTINGS_ID, PlatformSettings
from app.schemas.platform import PlatformSettingsUpdate

logger = logging.getLogger(__name__)


def validate_tax_percentage(value: Decimal) -> None:
    """Guard: tax must be a percentage between 0 and 100."""
    if value < 0 or value > 100:
        raise InvalidInput(f"Tax percentage must be between 0 and 100, got {value}")


class PlatformService:
    """Service for platform-wide settings."""

    async def get_platform_settings(self, db: AsyncSession) -> PlatformSettings:
        """Return the settings row, seeding it from defaults if missing."""
        platform = await db.get(PlatformSettings, PLATFORM_SETTINGS_ID)
        if platform is not None:
            return platform

        platform = PlatformSettings(
            id=PLATFORM_SETTINGS_ID,
            company_name=settings.default_company_name,
            currency=settings.default_currency,
            tax_percentage=settings.default_tax_percentage,
            young_driver_min_age=settings.default_young_driver_min_age,
            young_driver_fee=settings.default_young_driver_fee,
            support_email=settings.default_support_email,
        )
        # A concurrent seed fails on the primary key instead of adding a second row
        db.add(platform)
        await db.flush()

        logger.info(
            f"Initialized platform settings (tax {platform.tax_percentage}%, "
            f"currency {platform.currency})"
        )
        return platform

    async def update_platform_settings(
        self,
        db: AsyncSession,
        data: PlatformSettingsUpdate,
    ) -> PlatformSettings:
        """Apply an admin update to the settings row.

        Args:
            db: Database session
            data: Fields to change; unset fields are kept

        Returns:
            Updated PlatformSettings
        """
        platform = await self.get_platform_settings(db)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "tax_percentage" in changes:
            validate_tax_percentage(changes["tax_percentage"])
        if "young_driver_fee" in changes and changes["young_driver_fee"] < 0:
            raise InvalidInput("Young driver fee cannot be negative")
        if "young_driver_min_age" in changes and not 16 <= changes["young_driver_min_age"] <= 99:
            raise InvalidInput("Young driver minimum age must be between 16 and 99")

        for key, value in changes.items():
            setattr(platform, key, value)

        await db.flush()
        logger.info(f"Platform settings updated: {', '.join(sorted(changes)) or 'no changes'}")
        return platform

    async def get_tax_percentage(self, db: AsyncSession) -> Decimal:
        platform = await self.get_platform_settings(db)
        return Decimal(platform.tax_percentage)

    async def pricing_config(self, db: AsyncSession) -> PricingConfig:
        """Snapshot of the current settings for one pricing calculation."""
        platform = await self.get_platform_settings(db)
        return platform.to_pricing_config()


platform_service = PlatformService()
