"""Consultant and equipment models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from consultant_portal.models.base import RATE, Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from consultant_portal.models.cycle import CycleLineItem


TERMINATION_REASONS = ("FIRED", "LAID_OFF", "QUIT", "MUTUAL_AGREEMENT")


class Consultant(Base, TimestampMixin):
    """A person under contract.

    ``hourly_rate`` drives payouts. The ``client_invoice_*`` fields drive
    client billing only and are never used to pay the consultant.
    """

    __tablename__ = "consultants"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    hourly_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    start_date: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    # Billing
    role: Mapped[str | None] = mapped_column(String, nullable=True)
    service_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_invoice_service_name: Mapped[str | None] = mapped_column(String, nullable=True)
    client_invoice_unit_price: Mapped[Decimal | None] = mapped_column(RATE, nullable=True)
    client_invoice_service_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Bonus
    yearly_bonus: Mapped[Decimal | None] = mapped_column(nullable=True)
    bonus_month: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Termination
    termination_date: Mapped[datetime | None] = mapped_column(nullable=True)
    termination_reason: Mapped[str | None] = mapped_column(String, nullable=True)
    final_payment_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    equipment_return_deadline: Mapped[datetime | None] = mapped_column(nullable=True)
    contract_signed_date: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(
            "termination_reason IS NULL OR termination_reason IN "
            "('FIRED', 'LAID_OFF', 'QUIT', 'MUTUAL_AGREEMENT')",
            name="consultants_termination_reason_check",
        ),
        CheckConstraint(
            "bonus_month IS NULL OR (bonus_month BETWEEN 1 AND 12)",
            name="consultants_bonus_month_check",
        ),
    )

    # Relationships
    line_items: Mapped[list[CycleLineItem]] = relationship(back_populates="consultant")
    equipment: Mapped[list[ConsultantEquipment]] = relationship(
        back_populates="consultant",
        order_by="ConsultantEquipment.id",
    )

    @property
    def is_active(self) -> bool:
        return self.termination_date is None


class ConsultantEquipment(Base, TimestampMixin):
    """Company device held by a consultant."""

    __tablename__ = "consultant_equipment"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    consultant_id: Mapped[int] = mapped_column(
        ForeignKey("consultants.id", ondelete="CASCADE"),
        nullable=False,
    )
    device_name: Mapped[str] = mapped_column(String, nullable=False)
    model: Mapped[str | None] = mapped_column(String, nullable=True)
    serial_number: Mapped[str | None] = mapped_column(String, nullable=True)
    purchase_date: Mapped[datetime | None] = mapped_column(nullable=True)
    return_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    returned_date: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    consultant: Mapped[Consultant] = relationship(back_populates="equipment")

    @property
    def is_pending_return(self) -> bool:
        return self.return_required and self.returned_date is None
