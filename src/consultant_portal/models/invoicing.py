"""Client invoice, invoice line item, and invoice number sequence models."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from consultant_portal.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from consultant_portal.models.client import Client
    from consultant_portal.models.cycle import PayrollCycle

logger = logging.getLogger(__name__)


def parse_consultant_ids(raw: str | None, line_item_id: int | None = None) -> list[int] | None:
    """Decode the JSON consultant id list stored on an invoice line item.

    Malformed values read as ``None`` so a corrupt row never breaks an invoice read.
    """
    if not raw:
        return None
    try:
        value: Any = json.loads(raw)
    except ValueError:
        logger.warning("Failed to parse consultant_ids for line item %s: %r", line_item_id, raw)
        return None
    if not isinstance(value, list) or not all(
        isinstance(item, int) and not isinstance(item, bool) for item in value
    ):
        logger.warning(
            "consultant_ids for line item %s is not a list of integers: %r", line_item_id, raw
        )
        return None
    return value


def dump_consultant_ids(ids: list[int] | None) -> str | None:
    if ids is None:
        return None
    return json.dumps(list(ids))


class ClientInvoice(Base, TimestampMixin):
    """A bill to the client for one payroll cycle.

    ``subtotal``, ``total`` and ``amount_due`` are caches of the line items;
    services recompute them from ``invoice_line_items`` on every change.
    """

    __tablename__ = "client_invoices"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    invoice_number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    cycle_id: Mapped[int] = mapped_column(ForeignKey("payroll_cycles.id"), nullable=False)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False)
    invoice_date: Mapped[datetime] = mapped_column(nullable=False)
    due_date: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT")
    subtotal: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    tax: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    amount_due: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_terms: Mapped[str | None] = mapped_column(String, nullable=True)
    sent_date: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_date: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_date: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('DRAFT', 'SENT', 'APPROVED', 'OVERDUE', 'PAID', 'CANCELLED')",
            name="client_invoices_status_check",
        ),
    )

    # Relationships
    client: Mapped[Client] = relationship()
    cycle: Mapped[PayrollCycle] = relationship(back_populates="client_invoices")
    line_items: Mapped[list[InvoiceLineItem]] = relationship(
        back_populates="invoice",
        order_by="[InvoiceLineItem.sort_order, InvoiceLineItem.id]",
    )


class InvoiceLineItem(Base, TimestampMixin):
    """One billed service line, possibly grouping several consultants."""

    __tablename__ = "invoice_line_items"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(ForeignKey("client_invoices.id"), nullable=False)
    service_name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    rate: Mapped[Decimal] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    consultant_ids: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON list
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    invoice: Mapped[ClientInvoice] = relationship(back_populates="line_items")

    @property
    def consultant_id_list(self) -> list[int] | None:
        return parse_consultant_ids(self.consultant_ids, self.id)


class InvoiceNumberSequence(Base):
    """Singleton row holding the next invoice number to issue."""

    __tablename__ = "invoice_number_sequence"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    next_number: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)
