"""Invoice line item service.

Every mutation recomputes the owning invoice's cached totals in the same
transaction, so ``subtotal == sum(line amounts)`` holds after direct edits.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from consultant_portal.billing.line_builder import InvoiceLineBuilder
from consultant_portal.errors import NotFoundError
from consultant_portal.models import ClientInvoice, InvoiceLineItem, dump_consultant_ids, utcnow

logger = logging.getLogger(__name__)

LINE_ITEM_FIELDS = (
    "service_name",
    "description",
    "quantity",
    "rate",
    "amount",
    "sort_order",
)


class InvoiceLineItemService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_invoice_id(self, invoice_id: int) -> list[InvoiceLineItem]:
        result = await self.session.execute(
            select(InvoiceLineItem)
            .where(InvoiceLineItem.invoice_id == invoice_id)
            .order_by(InvoiceLineItem.sort_order, InvoiceLineItem.id)
        )
        return list(result.scalars().all())

    async def get_by_id(self, item_id: int) -> InvoiceLineItem:
        item = await self.session.get(InvoiceLineItem, item_id)
        if item is None:
            raise NotFoundError("Invoice line item not found")
        return item

    async def recalculate_invoice_totals(self, invoice: ClientInvoice) -> ClientInvoice:
        """Recompute subtotal/total/amount_due from the stored line items.

        Does not commit. Pending line item changes are flushed first so the
        sum sees them.
        """
        await self.session.flush()
        amounts = (
            await self.session.execute(
                select(InvoiceLineItem.amount).where(InvoiceLineItem.invoice_id == invoice.id)
            )
        ).scalars().all()

        totals = InvoiceLineBuilder.compute_totals(amounts, invoice.tax)
        invoice.subtotal = totals.subtotal
        invoice.tax = totals.tax
        invoice.total = totals.total
        invoice.amount_due = totals.amount_due
        invoice.updated_at = utcnow()
        return invoice

    async def _get_invoice(self, invoice_id: int) -> ClientInvoice:
        invoice = await self.session.get(ClientInvoice, invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return invoice

    async def create(
        self,
        invoice_id: int,
        service_name: str,
        description: str,
        rate: Decimal,
        quantity: int = 1,
        amount: Decimal | None = None,
        consultant_ids: list[int] | None = None,
        sort_order: int = 0,
    ) -> InvoiceLineItem:
        invoice = await self._get_invoice(invoice_id)
        if amount is None:
            amount = quantity * rate

        item = InvoiceLineItem(
            invoice_id=invoice.id,
            service_name=service_name,
            description=description,
            quantity=quantity,
            rate=InvoiceLineBuilder.round_to_cents(rate),
            amount=InvoiceLineBuilder.round_to_cents(amount),
            consultant_ids=dump_consultant_ids(consultant_ids),
            sort_order=sort_order,
        )
        self.session.add(item)
        try:
            await self.recalculate_invoice_totals(invoice)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return item

    async def update(self, item_id: int, changes: dict[str, Any]) -> InvoiceLineItem:
        item = await self.get_by_id(item_id)
        for field_name in LINE_ITEM_FIELDS:
            if field_name in changes and changes[field_name] is not None:
                value = changes[field_name]
                if field_name in ("rate", "amount"):
                    value = InvoiceLineBuilder.round_to_cents(value)
                setattr(item, field_name, value)
        if "consultant_ids" in changes:
            item.consultant_ids = dump_consultant_ids(changes["consultant_ids"])
        item.updated_at = utcnow()

        invoice = await self._get_invoice(item.invoice_id)
        try:
            await self.recalculate_invoice_totals(invoice)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return item

    async def delete(self, item_id: int) -> dict[str, bool]:
        item = await self.get_by_id(item_id)
        invoice = await self._get_invoice(item.invoice_id)
        try:
            await self.session.delete(item)
            await self.recalculate_invoice_totals(invoice)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return {"success": True}

    async def recalculate_amount(self, item_id: int) -> InvoiceLineItem:
        """Reset ``amount`` to ``quantity × rate``."""
        item = await self.get_by_id(item_id)
        item.amount = InvoiceLineBuilder.round_to_cents(item.quantity * item.rate)
        item.updated_at = utcnow()

        invoice = await self._get_invoice(item.invoice_id)
        try:
            await self.recalculate_invoice_totals(invoice)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return item
