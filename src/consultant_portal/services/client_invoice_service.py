"""Client invoice service - generation from cycles, bonus sync, and lifecycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from consultant_portal.billing import (
    CONSULTANT_BONUS_DESCRIPTION,
    CONSULTANT_BONUS_SERVICE_NAME,
    InvoiceLineBuilder,
    MissingUnitPrice,
)
from consultant_portal.config import Settings, get_settings
from consultant_portal.errors import (
    InvoiceCreationError,
    MailerError,
    NotFoundError,
    ValidationError,
)
from consultant_portal.models import (
    Client,
    ClientInvoice,
    CycleLineItem,
    InvoiceLineItem,
    PayrollCycle,
    dump_consultant_ids,
    utcnow,
)
from consultant_portal.services.client_service import ClientService
from consultant_portal.services.invoice_line_item_service import InvoiceLineItemService
from consultant_portal.services.invoice_status import (
    ClientInvoiceStatus,
    InvoiceStatusRules,
)
from consultant_portal.services.pdf_service import render_invoice_pdf
from consultant_portal.services.sequence_service import InvoiceNumberSequenceRepository

if TYPE_CHECKING:
    from consultant_portal.services.mailer import InvoiceMailer

logger = logging.getLogger(__name__)

INVOICE_UPDATE_FIELDS = (
    "invoice_date",
    "due_date",
    "notes",
    "payment_terms",
    "sent_date",
    "approved_date",
    "paid_date",
)

def missing_unit_price_message(missing: list[MissingUnitPrice]) -> str:
    names = ", ".join(m.label() for m in missing)
    return (
        f"Missing client invoice unit price for {len(missing)} consultant(s): {names}. "
        "Set the consultant's client_invoice_unit_price (and optionally service "
        "name/description) before creating a client invoice from cycle."
    )


@dataclass
class CycleInvoiceEligibility:
    """Whether a client invoice can be generated for a cycle right now."""

    cycle_id: int
    can_create: bool
    existing_invoice_id: int | None = None
    next_invoice_number: int | None = None
    missing_unit_price: list[MissingUnitPrice] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)


class ClientInvoiceService:
    """Service for client invoices.

    Operations:
    - create_from_cycle: group the cycle's consultants into billed lines,
      allocate an invoice number and persist everything in one transaction
    - sync_invoice_bonus_from_cycle: upsert the bonus line and recompute totals
    - update / update_status: edits, with totals always recomputed from line items
    - delete: hard delete of the invoice and its line items

    Cached totals are always derived from the persisted line items plus
    the stored tax; callers cannot set them directly.
    """

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.sequence = InvoiceNumberSequenceRepository(
            session, seed=self.settings.invoice_number_seed
        )
        self.line_items = InvoiceLineItemService(session)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _invoice_query(self):
        return (
            select(ClientInvoice)
            .options(
                selectinload(ClientInvoice.client),
                selectinload(ClientInvoice.cycle),
                selectinload(ClientInvoice.line_items),
            )
            .execution_options(populate_existing=True)
        )

    async def get_all(
        self,
        cycle_id: int | None = None,
        status: str | None = None,
    ) -> list[ClientInvoice]:
        """List invoices, newest first, optionally filtered."""
        query = self._invoice_query()
        if cycle_id is not None:
            query = query.where(ClientInvoice.cycle_id == cycle_id)
        if status is not None:
            query = query.where(ClientInvoice.status == InvoiceStatusRules.parse(status).value)
        query = query.order_by(ClientInvoice.created_at.desc(), ClientInvoice.id.desc())

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_by_id(self, invoice_id: int) -> ClientInvoice:
        """Load an invoice with client, cycle and ordered line items."""
        result = await self.session.execute(
            self._invoice_query().where(ClientInvoice.id == invoice_id)
        )
        invoice = result.scalar_one_or_none()
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return invoice

    async def get_by_cycle_id(self, cycle_id: int) -> ClientInvoice | None:
        result = await self.session.execute(
            self._invoice_query()
            .where(ClientInvoice.cycle_id == cycle_id)
            .order_by(ClientInvoice.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Invoice numbers
    # ------------------------------------------------------------------

    async def get_next_invoice_number(self) -> int:
        """Allocate an invoice number in its own committed transaction.

        Used only where atomicity with the invoice insert is not required;
        a number allocated here is burned even if the caller fails later.
        """
        try:
            invoice_number = await self.sequence.allocate()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return invoice_number

    # ------------------------------------------------------------------
    # Generation from cycle
    # ------------------------------------------------------------------

    async def _load_cycle_for_billing(self, cycle_id: int) -> PayrollCycle | None:
        result = await self.session.execute(
            select(PayrollCycle)
            .where(PayrollCycle.id == cycle_id)
            .options(selectinload(PayrollCycle.lines).selectinload(CycleLineItem.consultant))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def invoice_bonus_for(self, cycle: PayrollCycle) -> Decimal:
        """The cycle's invoice bonus, or the historical default when unset."""
        if cycle.invoice_bonus is not None:
            return cycle.invoice_bonus
        return self.settings.default_invoice_bonus

    async def check_cycle_eligibility(self, cycle_id: int) -> CycleInvoiceEligibility:
        """Run every create_from_cycle precondition without writing."""
        eligibility = CycleInvoiceEligibility(cycle_id=cycle_id, can_create=False)

        existing = await self.get_by_cycle_id(cycle_id)
        if existing is not None:
            eligibility.existing_invoice_id = existing.id
            eligibility.reasons.append("Invoice already exists for this cycle")

        cycle = await self._load_cycle_for_billing(cycle_id)
        if cycle is None:
            eligibility.reasons.append("Cycle not found")
        else:
            grouping = InvoiceLineBuilder.group_consultants([line.consultant for line in cycle.lines])
            if not grouping.is_complete:
                eligibility.missing_unit_price = grouping.missing_unit_price
                eligibility.reasons.append(missing_unit_price_message(grouping.missing_unit_price))

        if await ClientService(self.session).get_default() is None:
            eligibility.reasons.append("No client found. Please create a client first.")

        eligibility.can_create = not eligibility.reasons
        if eligibility.can_create:
            eligibility.next_invoice_number = await self.sequence.peek()
        return eligibility

    async def create_from_cycle(self, cycle_id: int) -> ClientInvoice:
        """Generate the client invoice for a payroll cycle.

        Raises:
            ValidationError: invoice already exists, or consultants lack a unit price
            NotFoundError: cycle or client missing
            InvoiceCreationError: the invoice row could not be inserted
        """
        if await self.get_by_cycle_id(cycle_id) is not None:
            raise ValidationError("Invoice already exists for this cycle")

        cycle = await self._load_cycle_for_billing(cycle_id)
        if cycle is None:
            raise NotFoundError("Cycle not found")

        client = await ClientService(self.session).get_default()
        if client is None:
            raise NotFoundError("No client found. Please create a client first.")

        grouping = InvoiceLineBuilder.group_consultants([line.consultant for line in cycle.lines])
        if not grouping.is_complete:
            raise ValidationError(missing_unit_price_message(grouping.missing_unit_price))

        drafts = InvoiceLineBuilder.build_invoice_lines(grouping.groups, self.invoice_bonus_for(cycle))
        totals = InvoiceLineBuilder.compute_totals(d.amount for d in drafts)

        invoice_date = cycle.created_at or utcnow()
        due_date = invoice_date + timedelta(days=self.settings.invoice_due_days)

        try:
            invoice_number = await self.sequence.allocate()
            invoice = ClientInvoice(
                invoice_number=invoice_number,
                cycle_id=cycle.id,
                client_id=client.id,
                invoice_date=invoice_date,
                due_date=due_date,
                status=ClientInvoiceStatus.DRAFT.value,
                subtotal=totals.subtotal,
                tax=totals.tax,
                total=totals.total,
                amount_due=totals.amount_due,
                payment_terms=client.payment_terms,
            )
            self.session.add(invoice)
            try:
                await self.session.flush()
            except SQLAlchemyError as exc:
                raise InvoiceCreationError(str(getattr(exc, "orig", exc)), invoice_number, cycle.id) from exc

            self.session.add_all(
                [
                    InvoiceLineItem(
                        invoice_id=invoice.id,
                        service_name=draft.service_name,
                        description=draft.description,
                        quantity=draft.quantity,
                        rate=draft.rate,
                        amount=draft.amount,
                        consultant_ids=dump_consultant_ids(draft.consultant_ids),
                        sort_order=draft.sort_order,
                    )
                    for draft in drafts
                ]
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Created client invoice #%s for cycle %s: %d line items, total %s",
            invoice_number,
            cycle.id,
            len(drafts),
            totals.total,
        )
        return await self.get_by_id(invoice.id)

    # ------------------------------------------------------------------
    # Manual create / update
    # ------------------------------------------------------------------

    async def create(
        self,
        cycle_id: int,
        client_id: int,
        invoice_date: datetime,
        due_date: datetime,
        notes: str | None = None,
        payment_terms: str | None = None,
    ) -> ClientInvoice:
        """Create an empty DRAFT invoice; lines are added separately."""
        if await self.session.get(PayrollCycle, cycle_id) is None:
            raise NotFoundError("Cycle not found")
        if await self.session.get(Client, client_id) is None:
            raise NotFoundError("Client not found")
        if await self.get_by_cycle_id(cycle_id) is not None:
            raise ValidationError("Invoice already exists for this cycle")

        invoice_number = await self.get_next_invoice_number()
        invoice = ClientInvoice(
            invoice_number=invoice_number,
            cycle_id=cycle_id,
            client_id=client_id,
            invoice_date=invoice_date,
            due_date=due_date,
            status=ClientInvoiceStatus.DRAFT.value,
            subtotal=Decimal("0"),
            tax=Decimal("0"),
            total=Decimal("0"),
            amount_due=Decimal("0"),
            notes=notes,
            payment_terms=payment_terms,
        )
        self.session.add(invoice)
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise InvoiceCreationError(str(getattr(exc, "orig", exc)), invoice_number, cycle_id) from exc

        logger.info("Created manual client invoice #%s for cycle %s", invoice_number, cycle_id)
        return await self.get_by_id(invoice.id)

    async def update(self, invoice_id: int, changes: dict[str, Any]) -> ClientInvoice:
        """Partially update an invoice.

        subtotal, total and amount_due are recomputed from the stored line
        items and the (possibly updated) tax.
        """
        invoice = await self.get_by_id(invoice_id)

        for field_name in INVOICE_UPDATE_FIELDS:
            if field_name in changes:
                setattr(invoice, field_name, changes[field_name])
        if changes.get("status") is not None:
            invoice.status = InvoiceStatusRules.parse(changes["status"]).value
        if changes.get("tax") is not None:
            invoice.tax = InvoiceLineBuilder.round_to_cents(changes["tax"])

        try:
            await self.line_items.recalculate_invoice_totals(invoice)
            invoice.updated_at = utcnow()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return await self.get_by_id(invoice_id)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    async def update_status(
        self,
        invoice_id: int,
        status: str | ClientInvoiceStatus,
        mailer: InvoiceMailer | None = None,
    ) -> ClientInvoice:
        """Set the invoice status, stamping the first SENT/APPROVED/PAID date.

        When a mailer is given and the new status is SENT, the invoice is
        delivered first; the status is only written if delivery succeeds.
        """
        to_status = InvoiceStatusRules.parse(status)
        invoice = await self.get_by_id(invoice_id)
        from_status = invoice.status

        if mailer is not None and InvoiceStatusRules.requires_delivery(to_status):
            pdf = render_invoice_pdf(invoice, self.settings.company_name)
            try:
                await mailer.send_invoice(invoice, pdf)
            except Exception as exc:
                logger.exception("Delivery of invoice #%s failed", invoice.invoice_number)
                raise MailerError(
                    f"Failed to send invoice #{invoice.invoice_number}; status not changed"
                ) from exc

        now = utcnow()
        try:
            for field_name, stamp in InvoiceStatusRules.date_stamps(invoice, to_status, now).items():
                setattr(invoice, field_name, stamp)
            invoice.status = to_status.value
            invoice.updated_at = now
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Invoice #%s status %s -> %s",
            invoice.invoice_number,
            from_status,
            to_status.value,
        )
        return await self.get_by_id(invoice_id)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete(self, invoice_id: int) -> dict[str, bool]:
        """Hard delete the invoice and its line items.

        Nothing is kept for audit; callers needing history must capture the
        invoice before deleting it.
        """
        invoice = await self.get_by_id(invoice_id)
        invoice_number = invoice.invoice_number

        try:
            await self.session.execute(
                delete(InvoiceLineItem).where(InvoiceLineItem.invoice_id == invoice_id)
            )
            await self.session.execute(delete(ClientInvoice).where(ClientInvoice.id == invoice_id))
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.error("Error deleting client invoice %s: %s", invoice_id, exc.orig)
            if "foreign key" in str(exc.orig).lower():
                raise ValidationError(
                    "Cannot delete invoice: it is still referenced by other records"
                ) from exc
            raise ValidationError("Cannot delete invoice due to database constraint") from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Deleted client invoice #%s (id=%s)", invoice_number, invoice_id)
        return {"success": True}

    # ------------------------------------------------------------------
    # Bonus sync
    # ------------------------------------------------------------------

    async def sync_invoice_bonus_from_cycle(self, invoice_id: int) -> ClientInvoice:
        """Make the "Consultant Bonus" line match the cycle's invoice bonus.

        Updates the existing bonus line in place, or appends one after the
        last line, then recomputes the cached totals from every stored line.
        """
        invoice = await self.get_by_id(invoice_id)
        if invoice.cycle is None:
            raise ValidationError("Invoice has no associated cycle")

        target_bonus = InvoiceLineBuilder.round_to_cents(self.invoice_bonus_for(invoice.cycle))
        existing = next(
            (item for item in invoice.line_items if item.service_name == CONSULTANT_BONUS_SERVICE_NAME),
            None,
        )

        try:
            if existing is not None:
                existing.description = CONSULTANT_BONUS_DESCRIPTION
                existing.quantity = 1
                existing.rate = target_bonus
                existing.amount = target_bonus
                existing.consultant_ids = dump_consultant_ids([])
                existing.updated_at = utcnow()
            else:
                max_sort_order = max((item.sort_order or 0 for item in invoice.line_items), default=0)
                self.session.add(
                    InvoiceLineItem(
                        invoice_id=invoice.id,
                        service_name=CONSULTANT_BONUS_SERVICE_NAME,
                        description=CONSULTANT_BONUS_DESCRIPTION,
                        quantity=1,
                        rate=target_bonus,
                        amount=target_bonus,
                        consultant_ids=dump_consultant_ids([]),
                        sort_order=max_sort_order + 1,
                    )
                )
            await self.line_items.recalculate_invoice_totals(invoice)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Synced bonus line on invoice #%s to %s (total %s)",
            invoice.invoice_number,
            target_bonus,
            invoice.total,
        )
        return await self.get_by_id(invoice_id)
