"""Platform settings tests."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.core.exceptions import InvalidInput
from app.models.platform import PLATFORM_SETTINGS_ID, PlatformSettings
from app.schemas.platform import PlatformSettingsUpdate
from app.services.platform_service import platform_service


async def settings_rows(db) -> int:
    return await db.scalar(select(func.count()).select_from(PlatformSettings))


class TestPlatformSettings:
    async def test_seeded_once_under_fixed_key(self, session_factory):
        async with session_factory() as session:
            first = await platform_service.get_platform_settings(session)
            await session.commit()

        async with session_factory() as session:
            second = await platform_service.get_platform_settings(session)
            assert await settings_rows(session) == 1

        assert first.id == second.id == PLATFORM_SETTINGS_ID
        assert second.tax_percentage == Decimal("20.00")

    async def test_updates_land_on_the_single_row(self, db, platform):
        await platform_service.update_platform_settings(
            db, PlatformSettingsUpdate(tax_percentage=Decimal("5.5"), currency="USD")
        )
        await db.commit()

        config = await platform_service.pricing_config(db)
        assert config.tax_percentage == Decimal("5.5")
        assert config.currency == "USD"
        assert await settings_rows(db) == 1

    async def test_tax_out_of_range(self, db, platform):
        with pytest.raises(InvalidInput):
            await platform_service.update_platform_settings(
                db, PlatformSettingsUpdate(tax_percentage=Decimal("101"))
            )
