"""Cycle line item service - per-consultant payroll data within a cycle."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from consultant_portal.errors import NotFoundError, ValidationError
from consultant_portal.models import Consultant, CycleLineItem, PayrollCycle, utcnow

logger = logging.getLogger(__name__)

LINE_DATE_FIELDS = (
    "advance_date",
    "bonus_date",
    "informed_date",
    "bonus_paydate",
)

LINE_AMOUNT_FIELDS = (
    "adjustment_value",
    "bonus_advance",
)


class CycleLineItemService:
    """Service for cycle line items.

    Operations:
    - get_by_id / get_by_cycle
    - update: payroll data entry (hours override, adjustments, advance, bonus dates)
    - create_for_consultant: add a consultant to an existing cycle
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, line_id: int) -> CycleLineItem:
        result = await self.session.execute(
            select(CycleLineItem)
            .where(CycleLineItem.id == line_id)
            .options(selectinload(CycleLineItem.consultant), selectinload(CycleLineItem.cycle))
            .execution_options(populate_existing=True)
        )
        line = result.scalar_one_or_none()
        if line is None:
            raise NotFoundError("Line item not found")
        return line

    async def get_by_cycle(self, cycle_id: int) -> list[CycleLineItem]:
        """Lines of a cycle ordered by consultant name."""
        result = await self.session.execute(
            select(CycleLineItem)
            .join(CycleLineItem.consultant)
            .where(CycleLineItem.cycle_id == cycle_id)
            .options(selectinload(CycleLineItem.consultant), selectinload(CycleLineItem.cycle))
            .order_by(Consultant.name)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def update(self, line_id: int, changes: dict[str, Any]) -> CycleLineItem:
        line = await self.get_by_id(line_id)

        try:
            for field_name in LINE_DATE_FIELDS:
                if field_name in changes:
                    setattr(line, field_name, changes[field_name])

            for field_name in LINE_AMOUNT_FIELDS:
                if field_name in changes:
                    value = changes[field_name]
                    if value is not None and not Decimal(value).is_finite():
                        raise ValidationError(f"{field_name} must be a finite number")
                    setattr(line, field_name, value)

            if "work_hours" in changes:
                hours = changes["work_hours"]
                if hours is not None and hours < 0:
                    raise ValidationError("work_hours must not be negative")
                line.work_hours = hours

            for field_name in ("invoice_sent", "comments"):
                if field_name in changes:
                    setattr(line, field_name, changes[field_name])

            line.updated_at = utcnow()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return await self.get_by_id(line_id)

    async def create_for_consultant(
        self,
        cycle_id: int,
        consultant_id: int,
        rate_per_hour: Decimal | None = None,
    ) -> CycleLineItem:
        """Add a consultant to a cycle, snapshotting their hourly rate by default."""
        cycle = await self.session.get(PayrollCycle, cycle_id)
        if cycle is None:
            raise NotFoundError("Payroll cycle not found")
        if cycle.is_archived:
            raise ValidationError("Cannot add line items to an archived cycle")

        consultant = await self.session.get(Consultant, consultant_id)
        if consultant is None:
            raise NotFoundError("Consultant not found")

        existing = await self.session.scalar(
            select(CycleLineItem.id).where(
                CycleLineItem.cycle_id == cycle_id,
                CycleLineItem.consultant_id == consultant_id,
            )
        )
        if existing is not None:
            raise ValidationError(f"{consultant.name} already has a line item in this cycle")

        line = CycleLineItem(
            cycle_id=cycle_id,
            consultant_id=consultant_id,
            rate_per_hour=rate_per_hour if rate_per_hour is not None else consultant.hourly_rate,
        )
        self.session.add(line)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Added consultant %s to payroll cycle %s", consultant_id, cycle_id)
        return await self.get_by_id(line.id)
