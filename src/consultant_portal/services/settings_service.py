"""System settings (singleton row) service."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from consultant_portal.billing.line_builder import InvoiceLineBuilder
from consultant_portal.errors import ValidationError
from consultant_portal.models import SystemSettings, utcnow


class SettingsService:
    """Reads and updates the single system settings row."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_or_init(self) -> SystemSettings:
        """Load the settings row, creating the default row if absent."""
        result = await self.session.execute(
            select(SystemSettings).order_by(SystemSettings.id).limit(1)
        )
        settings = result.scalar_one_or_none()
        if settings is None:
            settings = SystemSettings(default_client_bonus=Decimal("0"))
            self.session.add(settings)
            await self.session.flush()
        return settings

    async def get_settings(self) -> SystemSettings:
        settings = await self.get_or_init()
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return settings

    async def update_settings(self, default_client_bonus: Decimal) -> SystemSettings:
        if default_client_bonus < 0:
            raise ValidationError("default_client_bonus must not be negative")

        settings = await self.get_or_init()
        settings.default_client_bonus = InvoiceLineBuilder.round_to_cents(default_client_bonus)
        settings.updated_at = utcnow()
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return settings
