"""Consultant termination workflow service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from consultant_portal.errors import NotFoundError, ValidationError
from consultant_portal.models import TERMINATION_REASONS, Consultant, ConsultantEquipment, utcnow
from consultant_portal.services.equipment_service import EquipmentService

logger = logging.getLogger(__name__)

EQUIPMENT_RETURN_DAYS = 5


@dataclass
class TerminationStatus:
    """Where a consultant stands in the termination workflow."""

    consultant_id: int
    termination_date: datetime | None
    termination_reason: str | None
    equipment_return_deadline: datetime | None
    contract_signed_date: datetime | None
    pending_equipment: list[ConsultantEquipment]

    @property
    def is_initiated(self) -> bool:
        return self.termination_date is not None

    @property
    def is_complete(self) -> bool:
        return (
            self.is_initiated
            and self.contract_signed_date is not None
            and not self.pending_equipment
        )


class TerminationService:
    """Service for the termination lifecycle.

    Steps:
    - initiate_termination: set date, reason and equipment return deadline
    - sign_contract: record the signed termination contract (once)
    - get_status: report pending equipment and completion
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.equipment_service = EquipmentService(session)

    async def _get_consultant(self, consultant_id: int) -> Consultant:
        consultant = await self.session.get(Consultant, consultant_id)
        if consultant is None:
            raise NotFoundError("Consultant not found")
        return consultant

    async def initiate_termination(
        self,
        consultant_id: int,
        termination_date: datetime,
        termination_reason: str,
        final_payment_amount: Decimal | None = None,
        equipment_return_deadline: datetime | None = None,
    ) -> Consultant:
        consultant = await self._get_consultant(consultant_id)
        if consultant.termination_date is not None:
            raise ValidationError("Consultant is already terminated")
        if termination_reason not in TERMINATION_REASONS:
            raise ValidationError(
                f"Invalid termination reason '{termination_reason}'. "
                f"Allowed: {', '.join(TERMINATION_REASONS)}"
            )

        if equipment_return_deadline is None:
            equipment_return_deadline = termination_date + timedelta(days=EQUIPMENT_RETURN_DAYS)

        consultant.termination_date = termination_date
        consultant.termination_reason = termination_reason
        consultant.final_payment_amount = final_payment_amount
        consultant.equipment_return_deadline = equipment_return_deadline
        consultant.updated_at = utcnow()
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Initiated termination for consultant %s (%s), effective %s",
            consultant.id,
            termination_reason,
            termination_date.date(),
        )
        return consultant

    async def sign_contract(
        self,
        consultant_id: int,
        contract_signed_date: datetime | None = None,
    ) -> Consultant:
        consultant = await self._get_consultant(consultant_id)
        if consultant.termination_date is None:
            raise ValidationError("Consultant termination must be initiated first")
        if consultant.contract_signed_date is not None:
            raise ValidationError("Contract already signed")

        consultant.contract_signed_date = contract_signed_date or utcnow()
        consultant.updated_at = utcnow()
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return consultant

    async def get_status(self, consultant_id: int) -> TerminationStatus:
        consultant = await self._get_consultant(consultant_id)
        pending = await self.equipment_service.get_pending_returns(consultant_id)
        return TerminationStatus(
            consultant_id=consultant.id,
            termination_date=consultant.termination_date,
            termination_reason=consultant.termination_reason,
            equipment_return_deadline=consultant.equipment_return_deadline,
            contract_signed_date=consultant.contract_signed_date,
            pending_equipment=pending,
        )
