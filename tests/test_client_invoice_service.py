"""Tests for client invoice generation and lifecycle."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select, text, update

from consultant_portal.billing import CONSULTANT_BONUS_SERVICE_NAME
from consultant_portal.errors import (
    InvoiceCreationError,
    MailerError,
    NotFoundError,
    ValidationError,
)
from consultant_portal.models import ClientInvoice, InvoiceLineItem
from consultant_portal.services.client_invoice_service import ClientInvoiceService
from consultant_portal.services.cycle_service import CycleService
from consultant_portal.services.invoice_line_item_service import InvoiceLineItemService
from consultant_portal.services.mailer import RecordingInvoiceMailer
from consultant_portal.services.sequence_service import InvoiceNumberSequenceRepository

pytestmark = pytest.mark.asyncio


async def count_invoices(session) -> int:
    return await session.scalar(select(func.count()).select_from(ClientInvoice))


async def count_line_items(session) -> int:
    return await session.scalar(select(func.count()).select_from(InvoiceLineItem))


@pytest.fixture
def service(session, test_settings) -> ClientInvoiceService:
    return ClientInvoiceService(session, settings=test_settings)


@pytest.fixture
async def invoice(service, test_client, test_cycle) -> ClientInvoice:
    return await service.create_from_cycle(test_cycle.id)


class TestCreateFromCycle:
    """Test invoice generation from a payroll cycle."""

    async def test_groups_consultants_into_lines(self, invoice, test_consultants):
        alice, bob, carol = (test_consultants[k] for k in ("alice", "bob", "carol"))

        assert invoice.invoice_number == 198
        assert invoice.status == "DRAFT"
        assert [item.quantity for item in invoice.line_items] == [2, 1, 1]

        dev_line, qa_line, bonus_line = invoice.line_items
        assert dev_line.service_name == "Software Development"
        assert dev_line.description == "Full-stack development services (Alice, Bob)."
        assert dev_line.amount == Decimal("10821.54")
        assert dev_line.consultant_id_list == [alice.id, bob.id]

        assert qa_line.description == "QA automation services (Carol)."
        assert qa_line.amount == Decimal("5410.77")
        assert qa_line.consultant_id_list == [carol.id]

        assert bonus_line.service_name == CONSULTANT_BONUS_SERVICE_NAME
        assert bonus_line.amount == Decimal("751.96")
        assert bonus_line.consultant_id_list == []

    async def test_totals_match_line_items(self, invoice):
        assert invoice.subtotal == Decimal("16984.27")
        assert invoice.tax == Decimal("0.00")
        assert invoice.total == Decimal("16984.27")
        assert invoice.amount_due == invoice.total
        assert invoice.subtotal == sum(item.amount for item in invoice.line_items)

    async def test_dates_and_terms(self, invoice, test_cycle):
        assert invoice.invoice_date == test_cycle.created_at
        assert invoice.due_date == test_cycle.created_at + timedelta(days=30)
        assert invoice.payment_terms == "Net 30"
        assert invoice.client.name == "Acme Corp"

    async def test_sub_cent_unit_price_rounds_on_amount(
        self, session, service, test_client, test_consultants, test_cycle
    ):
        for consultant in test_consultants.values():
            consultant.client_invoice_unit_price = Decimal("0.125")
            consultant.client_invoice_service_description = "Full-stack development services"
        await session.commit()
        cycle_id = test_cycle.id
        session.expire_all()

        invoice = await service.create_from_cycle(cycle_id)

        dev_line = invoice.line_items[0]
        assert dev_line.quantity == 3
        assert dev_line.rate == Decimal("0.13")
        assert dev_line.amount == Decimal("0.38")
        assert invoice.subtotal == Decimal("752.34")

    async def test_uses_cycle_invoice_bonus(self, session, service, test_client, test_cycle):
        await CycleService(session).update(test_cycle.id, {"invoice_bonus": Decimal("900.00")})

        invoice = await service.create_from_cycle(test_cycle.id)

        assert invoice.line_items[-1].amount == Decimal("900.00")
        assert invoice.total == Decimal("17132.31")

    async def test_duplicate_is_rejected(self, session, service, invoice, test_cycle):
        with pytest.raises(ValidationError, match="already exists"):
            await service.create_from_cycle(test_cycle.id)

        assert await count_invoices(session) == 1
        unchanged = await service.get_by_id(invoice.id)
        assert unchanged.invoice_number == 198
        assert len(unchanged.line_items) == 3

    async def test_missing_unit_price_lists_every_consultant(
        self, session, service, test_client, test_consultants, test_cycle
    ):
        test_consultants["alice"].client_invoice_unit_price = None
        test_consultants["carol"].client_invoice_unit_price = None
        await session.commit()

        with pytest.raises(ValidationError) as exc_info:
            await service.create_from_cycle(test_cycle.id)

        message = exc_info.value.message
        assert f"Alice (id={test_consultants['alice'].id})" in message
        assert f"Carol (id={test_consultants['carol'].id})" in message
        assert "Bob" not in message
        assert await count_invoices(session) == 0
        assert await count_line_items(session) == 0

    async def test_missing_cycle(self, service, test_client):
        with pytest.raises(NotFoundError):
            await service.create_from_cycle(9999)

    async def test_missing_client(self, session, service, test_cycle):
        with pytest.raises(NotFoundError, match="No client found"):
            await service.create_from_cycle(test_cycle.id)
        assert await count_invoices(session) == 0

    async def test_sequential_numbers(self, session, service, test_client, test_cycle):
        second_cycle = await CycleService(session).create(month_label="2024-04", global_work_hours=160)

        first = await service.create_from_cycle(test_cycle.id)
        second = await service.create_from_cycle(second_cycle.id)

        assert (first.invoice_number, second.invoice_number) == (198, 199)

    async def test_insert_failure_rolls_back_number(
        self, session, service, test_client, test_cycle
    ):
        other_cycle = await CycleService(session).create(month_label="2024-04")
        session.add(
            ClientInvoice(
                invoice_number=198,
                cycle_id=other_cycle.id,
                client_id=test_client.id,
                invoice_date=datetime(2024, 4, 1),
                due_date=datetime(2024, 5, 1),
            )
        )
        await session.commit()
        cycle_id = test_cycle.id

        with pytest.raises(InvoiceCreationError) as exc_info:
            await service.create_from_cycle(cycle_id)

        assert "Invoice number: 198" in exc_info.value.message
        assert f"Cycle ID: {cycle_id}" in exc_info.value.message
        assert await service.get_by_cycle_id(cycle_id) is None
        assert await InvoiceNumberSequenceRepository(session, seed=198).peek() == 198


class TestEligibility:
    """Test the from-cycle precondition check."""

    async def test_eligible_cycle(self, service, test_client, test_cycle):
        eligibility = await service.check_cycle_eligibility(test_cycle.id)

        assert eligibility.can_create is True
        assert eligibility.reasons == []
        assert eligibility.next_invoice_number == 198

    async def test_existing_invoice_blocks(self, service, invoice, test_cycle):
        eligibility = await service.check_cycle_eligibility(test_cycle.id)

        assert eligibility.can_create is False
        assert eligibility.existing_invoice_id == invoice.id
        assert eligibility.next_invoice_number is None

    async def test_reports_missing_prices_without_writing(
        self, session, service, test_client, test_consultants, test_cycle
    ):
        test_consultants["bob"].client_invoice_unit_price = None
        await session.commit()

        eligibility = await service.check_cycle_eligibility(test_cycle.id)

        assert eligibility.can_create is False
        assert [m.name for m in eligibility.missing_unit_price] == ["Bob"]
        assert await count_invoices(session) == 0


class TestBonusSync:
    """Test syncing the bonus line from the cycle."""

    async def test_updates_existing_bonus_line(self, session, service, invoice, test_cycle):
        await CycleService(session).update(test_cycle.id, {"invoice_bonus": Decimal("1000.00")})

        synced = await service.sync_invoice_bonus_from_cycle(invoice.id)

        bonus_lines = [i for i in synced.line_items if i.service_name == CONSULTANT_BONUS_SERVICE_NAME]
        assert len(bonus_lines) == 1
        assert bonus_lines[0].amount == Decimal("1000.00")
        assert synced.subtotal == Decimal("17232.31")
        assert synced.total == synced.amount_due == Decimal("17232.31")

    async def test_sync_is_idempotent(self, session, service, invoice):
        await service.sync_invoice_bonus_from_cycle(invoice.id)
        synced = await service.sync_invoice_bonus_from_cycle(invoice.id)

        assert len(synced.line_items) == 3
        assert synced.total == Decimal("16984.27")

    async def test_inserts_missing_bonus_line_last(self, session, service, invoice):
        bonus_line = invoice.line_items[-1]
        await InvoiceLineItemService(session).delete(bonus_line.id)

        after_delete = await service.get_by_id(invoice.id)
        assert after_delete.total == Decimal("16232.31")

        synced = await service.sync_invoice_bonus_from_cycle(invoice.id)

        assert synced.line_items[-1].service_name == CONSULTANT_BONUS_SERVICE_NAME
        assert synced.line_items[-1].sort_order == 2
        assert synced.total == Decimal("16984.27")

    async def test_missing_invoice(self, service):
        with pytest.raises(NotFoundError):
            await service.sync_invoice_bonus_from_cycle(9999)


class TestStatus:
    """Test status changes and delivery."""

    async def test_sent_delivers_and_stamps_once(self, service, invoice):
        mailer = RecordingInvoiceMailer()

        sent = await service.update_status(invoice.id, "SENT", mailer=mailer)
        assert sent.status == "SENT"
        assert sent.sent_date is not None
        assert mailer.sent == [198]

        first_stamp = sent.sent_date
        await service.update_status(invoice.id, "APPROVED")
        again = await service.update_status(invoice.id, "SENT", mailer=mailer)
        assert again.sent_date == first_stamp
        assert again.approved_date is not None

    async def test_mailer_failure_keeps_status(self, service, invoice):
        mailer = RecordingInvoiceMailer(fail_with=ConnectionError("smtp down"))

        with pytest.raises(MailerError):
            await service.update_status(invoice.id, "SENT", mailer=mailer)

        unchanged = await service.get_by_id(invoice.id)
        assert unchanged.status == "DRAFT"
        assert unchanged.sent_date is None

    async def test_any_status_may_be_set(self, service, invoice):
        paid = await service.update_status(invoice.id, "PAID")
        assert paid.paid_date is not None

        reopened = await service.update_status(invoice.id, "DRAFT")
        assert reopened.status == "DRAFT"
        assert reopened.paid_date == paid.paid_date

    async def test_invalid_status(self, service, invoice):
        with pytest.raises(ValidationError):
            await service.update_status(invoice.id, "LOST")

    async def test_failed_commit_rolls_back_status(self, session, service, invoice, monkeypatch):
        invoice_id = invoice.id

        async def failing_commit():
            raise RuntimeError("disk I/O error")

        monkeypatch.setattr(session, "commit", failing_commit)
        with pytest.raises(RuntimeError):
            await service.update_status(invoice_id, "PAID")

        assert not session.dirty
        monkeypatch.undo()
        reloaded = await service.get_by_id(invoice_id)
        assert reloaded.status == "DRAFT"
        assert reloaded.paid_date is None


class TestUpdate:
    """Test partial updates and totals reconciliation."""

    async def test_tax_flows_into_totals(self, service, invoice):
        updated = await service.update(invoice.id, {"tax": Decimal("100.00")})

        assert updated.subtotal == Decimal("16984.27")
        assert updated.tax == Decimal("100.00")
        assert updated.total == updated.amount_due == Decimal("17084.27")

    async def test_caller_totals_are_ignored(self, service, invoice):
        updated = await service.update(
            invoice.id,
            {"total": Decimal("1.00"), "amount_due": Decimal("2.00"), "notes": "manual"},
        )

        assert updated.notes == "manual"
        assert updated.subtotal == Decimal("16984.27")
        assert updated.total == updated.subtotal + updated.tax
        assert updated.amount_due == updated.total

    async def test_line_item_edit_recomputes_totals(self, session, service, invoice):
        qa_line = invoice.line_items[1]
        await InvoiceLineItemService(session).update(qa_line.id, {"amount": Decimal("5000.00")})

        reloaded = await service.get_by_id(invoice.id)
        assert reloaded.subtotal == Decimal("16573.50")


class TestReads:
    """Test listing and lookups."""

    async def test_get_all_filters(self, service, invoice, test_cycle):
        assert [i.id for i in await service.get_all()] == [invoice.id]
        assert [i.id for i in await service.get_all(cycle_id=test_cycle.id)] == [invoice.id]
        assert await service.get_all(status="PAID") == []

    async def test_malformed_consultant_ids_read_as_none(self, session, service, invoice):
        first_line = invoice.line_items[0]
        await session.execute(
            update(InvoiceLineItem)
            .where(InvoiceLineItem.id == first_line.id)
            .values(consultant_ids="not json")
        )
        await session.commit()

        reloaded = await service.get_by_id(invoice.id)
        assert reloaded.line_items[0].consultant_id_list is None

    async def test_non_integer_consultant_ids_read_as_none(self, session, service, invoice):
        first_line = invoice.line_items[0]
        await session.execute(
            update(InvoiceLineItem)
            .where(InvoiceLineItem.id == first_line.id)
            .values(consultant_ids='["alice", true]')
        )
        await session.commit()

        reloaded = await service.get_by_id(invoice.id)
        assert reloaded.line_items[0].consultant_id_list is None
        assert reloaded.line_items[1].consultant_id_list is not None

    async def test_manual_create(self, service, test_client, test_cycle):
        created = await service.create(
            cycle_id=test_cycle.id,
            client_id=test_client.id,
            invoice_date=datetime(2024, 4, 1),
            due_date=datetime(2024, 5, 1),
            notes="Manual",
        )

        assert created.invoice_number == 198
        assert created.total == Decimal("0.00")
        assert created.line_items == []

        with pytest.raises(ValidationError):
            await service.create_from_cycle(test_cycle.id)


class TestDelete:
    """Test hard delete."""

    async def test_delete_removes_invoice_and_lines(self, session, service, invoice):
        assert await service.delete(invoice.id) == {"success": True}

        with pytest.raises(NotFoundError):
            await service.get_by_id(invoice.id)
        assert await count_line_items(session) == 0

    async def test_delete_missing(self, service):
        with pytest.raises(NotFoundError):
            await service.delete(9999)

    async def test_cycle_can_be_reinvoiced_after_delete(self, service, invoice, test_cycle):
        await service.delete(invoice.id)

        regenerated = await service.create_from_cycle(test_cycle.id)
        assert regenerated.invoice_number == 199

    async def test_delete_still_referenced_is_rejected(self, session, service, invoice):
        invoice_id = invoice.id
        await session.execute(
            text(
                "CREATE TABLE invoice_receipts ("
                "id INTEGER PRIMARY KEY, "
                "invoice_id INTEGER NOT NULL REFERENCES client_invoices(id))"
            )
        )
        await session.execute(
            text("INSERT INTO invoice_receipts (invoice_id) VALUES (:invoice_id)"),
            {"invoice_id": invoice_id},
        )
        await session.commit()

        with pytest.raises(ValidationError, match="still referenced by other records"):
            await service.delete(invoice_id)

        kept = await service.get_by_id(invoice_id)
        assert len(kept.line_items) == 3
