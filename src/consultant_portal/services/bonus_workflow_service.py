"""Bonus workflow service - recipient selection and announcement email."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from consultant_portal.config import Settings, get_settings
from consultant_portal.errors import NotFoundError, ValidationError
from consultant_portal.models import BonusWorkflow, CycleLineItem, PayrollCycle, utcnow

logger = logging.getLogger(__name__)

WORKFLOW_FIELDS = (
    "bonus_announcement_date",
    "email_generated",
    "email_content",
    "paid_with_payroll",
    "bonus_payment_date",
    "notes",
)
FLAG_FIELDS = ("email_generated", "paid_with_payroll")

ZERO = Decimal("0")


@dataclass
class BonusEmail:
    """Generated announcement for the bonus recipient."""

    email_content: str
    consultants_count: int
    total_bonus: Decimal


def format_announcement_date(value: datetime) -> str:
    return f"{value:%B} {value.day}, {value.year}"


class BonusWorkflowService:
    """Service for the per-cycle bonus workflow.

    A cycle's bonus pool (``client_bonus``) goes to one recipient. Changing
    the recipient clears the bonus dates on every other line of the cycle so
    only one consultant ever carries them.
    """

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()

    def _workflow_query(self):
        return (
            select(BonusWorkflow)
            .options(selectinload(BonusWorkflow.cycle), selectinload(BonusWorkflow.recipient))
            .execution_options(populate_existing=True)
        )

    async def get_by_cycle_id(self, cycle_id: int) -> BonusWorkflow | None:
        result = await self.session.execute(
            self._workflow_query().where(BonusWorkflow.cycle_id == cycle_id)
        )
        return result.scalar_one_or_none()

    async def _require(self, cycle_id: int) -> BonusWorkflow:
        workflow = await self.get_by_cycle_id(cycle_id)
        if workflow is None:
            raise NotFoundError("Bonus workflow not found for this cycle")
        return workflow

    async def create_for_cycle(self, cycle_id: int) -> BonusWorkflow:
        if await self.session.get(PayrollCycle, cycle_id) is None:
            raise NotFoundError("Payroll cycle not found")
        if await self.get_by_cycle_id(cycle_id) is not None:
            raise ValidationError("Bonus workflow already exists for this cycle")

        self.session.add(BonusWorkflow(cycle_id=cycle_id))
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Created bonus workflow for cycle %s", cycle_id)
        return await self._require(cycle_id)

    async def _clear_bonus_dates_except(self, cycle_id: int, recipient_id: int | None) -> None:
        query = update(CycleLineItem).where(CycleLineItem.cycle_id == cycle_id)
        if recipient_id is not None:
            query = query.where(CycleLineItem.consultant_id != recipient_id)
        await self.session.execute(
            query.values(
                bonus_date=None,
                informed_date=None,
                bonus_paydate=None,
                updated_at=utcnow(),
            )
        )

    async def update(self, cycle_id: int, changes: dict[str, Any]) -> BonusWorkflow:
        workflow = await self._require(cycle_id)

        try:
            if "bonus_recipient_consultant_id" in changes:
                recipient_id = changes["bonus_recipient_consultant_id"]
                if recipient_id is not None:
                    on_cycle = await self.session.scalar(
                        select(CycleLineItem.id).where(
                            CycleLineItem.cycle_id == cycle_id,
                            CycleLineItem.consultant_id == recipient_id,
                        )
                    )
                    if on_cycle is None:
                        raise ValidationError("Bonus recipient must be a consultant in this cycle")

                previous_id = workflow.bonus_recipient_consultant_id
                if previous_id is not None and recipient_id != previous_id:
                    await self._clear_bonus_dates_except(cycle_id, recipient_id)
                    logger.info(
                        "Bonus recipient for cycle %s changed from %s to %s",
                        cycle_id,
                        previous_id,
                        recipient_id,
                    )
                workflow.bonus_recipient_consultant_id = recipient_id

            for field_name in WORKFLOW_FIELDS:
                if field_name not in changes:
                    continue
                if field_name in FLAG_FIELDS and changes[field_name] is None:
                    continue
                setattr(workflow, field_name, changes[field_name])

            workflow.updated_at = utcnow()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return await self._require(cycle_id)

    async def generate_email_content(self, cycle_id: int) -> BonusEmail:
        """Compose the bonus announcement for the selected recipient.

        The recipient's ``bonus_advance`` on this cycle is deducted from the
        pool. Nothing is written.
        """
        workflow = await self._require(cycle_id)
        if workflow.bonus_recipient_consultant_id is None:
            raise ValidationError(
                "Please select which consultant will receive the bonus before generating the email."
            )
        recipient = workflow.recipient
        if recipient is None:
            raise NotFoundError("Bonus recipient consultant not found")

        cycle = workflow.cycle
        pool = cycle.client_bonus or ZERO
        if pool <= 0:
            raise ValidationError(
                "No bonus amount configured for this cycle. Please set the client bonus amount."
            )

        advance = await self.session.scalar(
            select(CycleLineItem.bonus_advance).where(
                CycleLineItem.cycle_id == cycle_id,
                CycleLineItem.consultant_id == recipient.id,
            )
        ) or ZERO
        net_bonus = pool - advance
        announced_on = format_announcement_date(workflow.bonus_announcement_date or utcnow())

        paragraphs = [
            f"Dear {recipient.name},",
            f"We are pleased to announce your bonus for {cycle.month_label}.",
        ]
        if advance > 0:
            paragraphs.append(f"Your bonus amount is ${pool:.2f} from the client.")
            paragraphs.append(
                f"However, you have already received an advance of ${advance:.2f}, "
                f"so the net bonus payment will be ${net_bonus:.2f}."
            )
        else:
            paragraphs.append(f"You will receive a bonus of ${pool:.2f} from the client.")
        paragraphs.append(f"This bonus will be processed on {announced_on}.")
        paragraphs.append("Thank you for your continued dedication and hard work.")
        paragraphs.append(f"Best regards,\n{self.settings.company_name}")

        return BonusEmail(
            email_content="\n\n".join(paragraphs),
            consultants_count=1,
            total_bonus=max(net_bonus, ZERO),
        )
