"""Payroll cycle service - creation, edits, summaries and payment calculation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from consultant_portal.billing import InvoiceLineBuilder
from consultant_portal.errors import NotFoundError, ValidationError
from consultant_portal.models import BonusWorkflow, ClientInvoice, CycleLineItem, PayrollCycle, utcnow
from consultant_portal.services.consultant_service import ConsultantService
from consultant_portal.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

CYCLE_DATE_FIELDS = (
    "calculated_payment_date",
    "payment_arrival_date",
    "send_receipt_date",
    "send_invoice_date",
    "client_invoice_payment_date",
    "client_payment_scheduled_date",
    "invoice_approval_date",
    "hours_limit_changed_on",
    "consultants_paid_date",
    "time_doctor_marked_paid_date",
)

CYCLE_AMOUNT_FIELDS = (
    "client_bonus",
    "invoice_bonus",
    "pagamento_pix",
    "pagamento_inter",
    "equipments_usd",
)

ZERO = Decimal("0")


@dataclass
class ConsultantPaymentDetail:
    """Payout breakdown for one consultant in a cycle."""

    consultant_id: int
    consultant_name: str
    rate_per_hour: Decimal
    work_hours: int
    base_amount: Decimal
    adjustment_value: Decimal
    bonus_advance: Decimal
    subtotal: Decimal


@dataclass
class CycleSummary:
    cycle: PayrollCycle
    total_hourly_value: Decimal
    usd_total: Decimal
    line_count: int
    anomalies: list[str] = field(default_factory=list)


@dataclass
class PaymentCalculation:
    """Result of calculating the payments for a cycle."""

    cycle_id: int
    month_label: str
    calculated_at: datetime
    consultant_payments: list[ConsultantPaymentDetail]
    total_consultant_payments: Decimal
    client_bonus: Decimal
    equipments_usd: Decimal
    total_transfer: Decimal
    total_hourly_value: Decimal
    global_work_hours: int
    usd_total: Decimal
    anomalies: list[str] = field(default_factory=list)


class CycleService:
    """Service for payroll cycles.

    Operations:
    - create: new cycle with one line item per active consultant
    - update: partial edit of workflow dates and footer values
    - get_summary / calculate_payment: read-only payout math
    - archive / delete
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self) -> list[PayrollCycle]:
        """List non-archived cycles, newest month label first."""
        result = await self.session.execute(
            select(PayrollCycle)
            .where(PayrollCycle.archived_at.is_(None))
            .order_by(PayrollCycle.month_label.desc())
        )
        return list(result.scalars().all())

    async def get_by_id(self, cycle_id: int, include_archived: bool = True) -> PayrollCycle:
        """Load a cycle with its lines and their consultants."""
        result = await self.session.execute(
            select(PayrollCycle)
            .where(PayrollCycle.id == cycle_id)
            .options(selectinload(PayrollCycle.lines).selectinload(CycleLineItem.consultant))
            .execution_options(populate_existing=True)
        )
        cycle = result.scalar_one_or_none()
        if cycle is None or (not include_archived and cycle.is_archived):
            raise NotFoundError("Payroll cycle not found")
        return cycle

    async def _ensure_label_available(self, month_label: str) -> None:
        # Archived cycles release their month label for reuse
        conflict = await self.session.scalar(
            select(func.count())
            .select_from(PayrollCycle)
            .where(
                PayrollCycle.month_label == month_label,
                PayrollCycle.archived_at.is_(None),
            )
        )
        if conflict:
            raise ValidationError(
                f'Cycle with month label "{month_label}" already exists. '
                "Please use a different month label or archive the existing cycle first."
            )

    async def create(
        self,
        month_label: str,
        global_work_hours: int | None = None,
        client_bonus: Decimal | None = None,
        invoice_bonus: Decimal | None = None,
    ) -> PayrollCycle:
        """Create a cycle and snapshot every active consultant into it."""
        await self._ensure_label_available(month_label)

        active = await ConsultantService(self.session).get_active()
        if not active:
            raise ValidationError("No active consultants found. Cannot create empty cycle.")

        if client_bonus is None:
            settings = await SettingsService(self.session).get_or_init()
            client_bonus = settings.default_client_bonus

        cycle = PayrollCycle(
            month_label=month_label,
            global_work_hours=global_work_hours,
            client_bonus=client_bonus,
            invoice_bonus=invoice_bonus,
        )
        cycle.lines = [
            CycleLineItem(
                consultant_id=consultant.id,
                rate_per_hour=consultant.hourly_rate,
                bonus_advance=consultant.yearly_bonus,
            )
            for consultant in active
        ]
        self.session.add(cycle)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Created payroll cycle %s (%s) with %d line items",
            cycle.id,
            month_label,
            len(active),
        )
        return await self.get_by_id(cycle.id)

    async def update(self, cycle_id: int, changes: dict[str, Any]) -> PayrollCycle:
        cycle = await self.get_by_id(cycle_id)

        try:
            new_label = changes.get("month_label")
            if new_label and new_label != cycle.month_label:
                await self._ensure_label_available(new_label)
                cycle.month_label = new_label

            for field_name in CYCLE_DATE_FIELDS:
                if field_name in changes:
                    setattr(cycle, field_name, changes[field_name])

            for field_name in CYCLE_AMOUNT_FIELDS:
                if field_name in changes:
                    value = changes[field_name]
                    if value is not None and not Decimal(value).is_finite():
                        raise ValidationError(f"{field_name} must be a finite number")
                    setattr(cycle, field_name, value)

            if "global_work_hours" in changes:
                hours = changes["global_work_hours"]
                if hours is not None and hours < 0:
                    raise ValidationError("global_work_hours must not be negative")
                cycle.global_work_hours = hours

            cycle.updated_at = utcnow()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return await self.get_by_id(cycle_id)

    @staticmethod
    def calculate_line_item_subtotal(line: CycleLineItem, global_work_hours: int) -> Decimal:
        """work hours × rate + adjustment − advance; line hours override the cycle's."""
        work_hours = line.work_hours or global_work_hours
        rate_amount = work_hours * line.rate_per_hour
        return InvoiceLineBuilder.round_to_cents(
            rate_amount + (line.adjustment_value or ZERO) - (line.bonus_advance or ZERO)
        )

    @staticmethod
    def _detect_anomalies(cycle: PayrollCycle) -> list[str]:
        anomalies: list[str] = []
        for line in cycle.lines:
            name = line.consultant.name
            if line.rate_per_hour == 0:
                anomalies.append(f"{name} has zero hourly rate")
            if line.bonus_advance and not line.advance_date:
                anomalies.append(f"{name} has bonus advance without advance date")
            if line.bonus_advance and not line.bonus_paydate:
                anomalies.append(f"{name} has bonus advance without paydate")
        if not cycle.global_work_hours:
            anomalies.append("Global work hours not set")
        return anomalies

    async def get_summary(self, cycle_id: int) -> CycleSummary:
        cycle = await self.get_by_id(cycle_id)

        total_hourly_value = sum((line.rate_per_hour for line in cycle.lines), ZERO)
        base_amount = total_hourly_value * (cycle.global_work_hours or 0)
        payment_subtractions = (cycle.pagamento_pix or ZERO) + (cycle.pagamento_inter or ZERO)
        additions = (cycle.client_bonus or ZERO) + (cycle.equipments_usd or ZERO)

        return CycleSummary(
            cycle=cycle,
            total_hourly_value=total_hourly_value,
            usd_total=InvoiceLineBuilder.round_to_cents(base_amount - payment_subtractions + additions),
            line_count=len(cycle.lines),
            anomalies=self._detect_anomalies(cycle),
        )

    async def calculate_payment(self, cycle_id: int) -> PaymentCalculation:
        """Calculate consultant payouts and stamp ``calculated_payment_date``."""
        summary = await self.get_summary(cycle_id)
        cycle = summary.cycle
        global_work_hours = cycle.global_work_hours or 0
        if global_work_hours == 0:
            raise ValidationError("Global work hours must be set before calculating payments")

        payments: list[ConsultantPaymentDetail] = []
        for line in cycle.lines:
            work_hours = line.work_hours or global_work_hours
            base_amount = InvoiceLineBuilder.round_to_cents(work_hours * line.rate_per_hour)
            adjustment = line.adjustment_value or ZERO
            advance = line.bonus_advance or ZERO
            payments.append(
                ConsultantPaymentDetail(
                    consultant_id=line.consultant_id,
                    consultant_name=line.consultant.name,
                    rate_per_hour=line.rate_per_hour,
                    work_hours=work_hours,
                    base_amount=base_amount,
                    adjustment_value=adjustment,
                    bonus_advance=advance,
                    subtotal=base_amount + adjustment - advance,
                )
            )

        total_payments = sum((p.subtotal for p in payments), ZERO)
        client_bonus = cycle.client_bonus or ZERO
        equipments_usd = cycle.equipments_usd or ZERO
        calculated_at = utcnow()

        try:
            cycle.calculated_payment_date = calculated_at
            cycle.updated_at = calculated_at
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return PaymentCalculation(
            cycle_id=cycle.id,
            month_label=cycle.month_label,
            calculated_at=calculated_at,
            consultant_payments=payments,
            total_consultant_payments=total_payments,
            client_bonus=client_bonus,
            equipments_usd=equipments_usd,
            total_transfer=total_payments + client_bonus + equipments_usd,
            total_hourly_value=summary.total_hourly_value,
            global_work_hours=global_work_hours,
            usd_total=summary.usd_total,
            anomalies=summary.anomalies,
        )

    async def archive(self, cycle_id: int) -> PayrollCycle:
        cycle = await self.get_by_id(cycle_id)
        if cycle.is_archived:
            raise ValidationError("Cycle is already archived")

        try:
            cycle.archived_at = utcnow()
            cycle.updated_at = cycle.archived_at
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return await self.get_by_id(cycle_id)

    async def delete(self, cycle_id: int) -> dict[str, bool]:
        """Hard delete a cycle with its line items and bonus workflow.

        Refused while a client invoice still bills the cycle.
        """
        await self.get_by_id(cycle_id)

        invoice_count = await self.session.scalar(
            select(func.count()).select_from(ClientInvoice).where(ClientInvoice.cycle_id == cycle_id)
        )
        if invoice_count:
            raise ValidationError("Cannot delete cycle: a client invoice still references it")

        try:
            await self.session.execute(delete(BonusWorkflow).where(BonusWorkflow.cycle_id == cycle_id))
            await self.session.execute(delete(CycleLineItem).where(CycleLineItem.cycle_id == cycle_id))
            await self.session.execute(delete(PayrollCycle).where(PayrollCycle.id == cycle_id))
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Deleted payroll cycle %s", cycle_id)
        return {"success": True}
