"""Consultant CRUD service."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from consultant_portal.errors import NotFoundError, ValidationError
from consultant_portal.models import Consultant, utcnow

logger = logging.getLogger(__name__)

CONSULTANT_FIELDS = (
    "name",
    "email",
    "hourly_rate",
    "start_date",
    "role",
    "service_description",
    "client_invoice_service_name",
    "client_invoice_unit_price",
    "client_invoice_service_description",
    "yearly_bonus",
    "bonus_month",
)


class ConsultantService:
    """Service for consultants and their billing fields.

    Termination fields are owned by TerminationService.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self, active_only: bool = False) -> list[Consultant]:
        query = select(Consultant).order_by(Consultant.name)
        if active_only:
            query = query.where(Consultant.termination_date.is_(None))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_active(self) -> list[Consultant]:
        result = await self.session.execute(
            select(Consultant)
            .where(Consultant.termination_date.is_(None))
            .order_by(Consultant.id)
        )
        return list(result.scalars().all())

    async def get_by_id(self, consultant_id: int) -> Consultant:
        consultant = await self.session.get(Consultant, consultant_id)
        if consultant is None:
            raise NotFoundError("Consultant not found")
        return consultant

    async def _ensure_unique_name(self, name: str, exclude_id: int | None = None) -> None:
        query = select(Consultant.id).where(Consultant.name == name)
        if exclude_id is not None:
            query = query.where(Consultant.id != exclude_id)
        if await self.session.scalar(query) is not None:
            raise ValidationError(f'Consultant named "{name}" already exists')

    async def create(self, **fields: Any) -> Consultant:
        await self._ensure_unique_name(fields["name"])
        consultant = Consultant(**{k: v for k, v in fields.items() if k in CONSULTANT_FIELDS and v is not None})
        self.session.add(consultant)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        logger.info("Created consultant %s (%s)", consultant.id, consultant.name)
        return consultant

    async def update(self, consultant_id: int, changes: dict[str, Any]) -> Consultant:
        consultant = await self.get_by_id(consultant_id)
        if changes.get("name") and changes["name"] != consultant.name:
            await self._ensure_unique_name(changes["name"], exclude_id=consultant_id)

        for field_name in CONSULTANT_FIELDS:
            if field_name in changes:
                setattr(consultant, field_name, changes[field_name])
        consultant.updated_at = utcnow()
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return consultant
