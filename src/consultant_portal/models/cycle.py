"""Payroll cycle and cycle line item models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from consultant_portal.models.base import RATE, Base, TimestampMixin

if TYPE_CHECKING:
    from consultant_portal.models.consultant import Consultant
    from consultant_portal.models.invoicing import ClientInvoice


class PayrollCycle(Base, TimestampMixin):
    """A monthly payroll run."""

    __tablename__ = "payroll_cycles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    month_label: Mapped[str] = mapped_column(String, nullable=False)

    # Workflow dates
    calculated_payment_date: Mapped[datetime | None] = mapped_column(nullable=True)
    payment_arrival_date: Mapped[datetime | None] = mapped_column(nullable=True)
    send_receipt_date: Mapped[datetime | None] = mapped_column(nullable=True)
    send_invoice_date: Mapped[datetime | None] = mapped_column(nullable=True)
    client_invoice_payment_date: Mapped[datetime | None] = mapped_column(nullable=True)
    client_payment_scheduled_date: Mapped[datetime | None] = mapped_column(nullable=True)
    invoice_approval_date: Mapped[datetime | None] = mapped_column(nullable=True)
    hours_limit_changed_on: Mapped[datetime | None] = mapped_column(nullable=True)
    consultants_paid_date: Mapped[datetime | None] = mapped_column(nullable=True)
    time_doctor_marked_paid_date: Mapped[datetime | None] = mapped_column(nullable=True)

    # Footer values
    global_work_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)
    client_bonus: Mapped[Decimal | None] = mapped_column(nullable=True)
    invoice_bonus: Mapped[Decimal | None] = mapped_column(nullable=True)
    pagamento_pix: Mapped[Decimal | None] = mapped_column(nullable=True)
    pagamento_inter: Mapped[Decimal | None] = mapped_column(nullable=True)
    equipments_usd: Mapped[Decimal | None] = mapped_column(nullable=True)

    archived_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Relationships
    lines: Mapped[list[CycleLineItem]] = relationship(
        back_populates="cycle",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CycleLineItem.id",
    )
    client_invoices: Mapped[list[ClientInvoice]] = relationship(back_populates="cycle")

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None


class CycleLineItem(Base, TimestampMixin):
    """One consultant's pay record within a cycle."""

    __tablename__ = "cycle_line_items"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    cycle_id: Mapped[int] = mapped_column(
        ForeignKey("payroll_cycles.id", ondelete="CASCADE"),
        nullable=False,
    )
    consultant_id: Mapped[int] = mapped_column(
        ForeignKey("consultants.id"),
        nullable=False,
    )
    rate_per_hour: Mapped[Decimal] = mapped_column(RATE, nullable=False)  # snapshot
    work_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)  # overrides cycle
    adjustment_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    bonus_advance: Mapped[Decimal | None] = mapped_column(nullable=True)
    advance_date: Mapped[datetime | None] = mapped_column(nullable=True)
    bonus_date: Mapped[datetime | None] = mapped_column(nullable=True)
    bonus_paydate: Mapped[datetime | None] = mapped_column(nullable=True)
    informed_date: Mapped[datetime | None] = mapped_column(nullable=True)
    invoice_sent: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("cycle_id", "consultant_id", name="cycle_line_items_cycle_consultant_unique"),
    )

    # Relationships
    cycle: Mapped[PayrollCycle] = relationship(back_populates="lines")
    consultant: Mapped[Consultant] = relationship(back_populates="line_items")
