"""Consultant equipment service."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from consultant_portal.errors import NotFoundError, ValidationError
from consultant_portal.models import Consultant, ConsultantEquipment, utcnow

EQUIPMENT_FIELDS = (
    "device_name",
    "model",
    "serial_number",
    "purchase_date",
    "return_required",
    "notes",
)


class EquipmentService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_consultant(self, consultant_id: int) -> list[ConsultantEquipment]:
        if await self.session.get(Consultant, consultant_id) is None:
            raise NotFoundError("Consultant not found")
        result = await self.session.execute(
            select(ConsultantEquipment)
            .where(ConsultantEquipment.consultant_id == consultant_id)
            .order_by(ConsultantEquipment.id)
        )
        return list(result.scalars().all())

    async def get_pending_returns(self, consultant_id: int) -> list[ConsultantEquipment]:
        result = await self.session.execute(
            select(ConsultantEquipment).where(
                ConsultantEquipment.consultant_id == consultant_id,
                ConsultantEquipment.return_required.is_(True),
                ConsultantEquipment.returned_date.is_(None),
            )
        )
        return list(result.scalars().all())

    async def create(self, consultant_id: int, **fields: Any) -> ConsultantEquipment:
        if await self.session.get(Consultant, consultant_id) is None:
            raise NotFoundError("Consultant not found")
        equipment = ConsultantEquipment(
            consultant_id=consultant_id,
            **{k: v for k, v in fields.items() if k in EQUIPMENT_FIELDS and v is not None},
        )
        self.session.add(equipment)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return equipment

    async def mark_returned(
        self,
        equipment_id: int,
        returned_date: datetime | None = None,
    ) -> ConsultantEquipment:
        equipment = await self.session.get(ConsultantEquipment, equipment_id)
        if equipment is None:
            raise NotFoundError("Equipment not found")
        if equipment.returned_date is not None:
            raise ValidationError("Equipment already returned")

        equipment.returned_date = returned_date or utcnow()
        equipment.updated_at = utcnow()
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return equipment
