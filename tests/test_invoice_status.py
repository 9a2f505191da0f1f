"""Tests for client invoice status rules."""

from datetime import datetime
from types import SimpleNamespace

import pytest

from consultant_portal.errors import ValidationError
from consultant_portal.services.invoice_status import (
    ClientInvoiceStatus,
    InvoiceStatusRules,
)

NOW = datetime(2024, 4, 1, 12, 0, 0)


def unstamped_invoice(**overrides):
    fields = {"sent_date": None, "approved_date": None, "paid_date": None}
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestInvoiceStatusRules:
    """Test status parsing and date stamping."""

    def test_parse_accepts_every_status(self):
        for status in ClientInvoiceStatus:
            assert InvoiceStatusRules.parse(status.value) is status
            assert InvoiceStatusRules.parse(status) is status

    def test_parse_rejects_unknown_status(self):
        with pytest.raises(ValidationError) as exc_info:
            InvoiceStatusRules.parse("ARCHIVED")

        assert "ARCHIVED" in exc_info.value.message
        assert exc_info.value.status_code == 400

    def test_first_transition_stamps_date(self):
        stamps = InvoiceStatusRules.date_stamps(unstamped_invoice(), ClientInvoiceStatus.SENT, NOW)
        assert stamps == {"sent_date": NOW}

        stamps = InvoiceStatusRules.date_stamps(unstamped_invoice(), ClientInvoiceStatus.PAID, NOW)
        assert stamps == {"paid_date": NOW}

    def test_existing_date_is_never_restamped(self):
        earlier = datetime(2024, 3, 1)
        invoice = unstamped_invoice(approved_date=earlier)

        assert InvoiceStatusRules.date_stamps(invoice, ClientInvoiceStatus.APPROVED, NOW) == {}

    def test_statuses_without_date_field(self):
        for status in (ClientInvoiceStatus.DRAFT, ClientInvoiceStatus.OVERDUE, ClientInvoiceStatus.CANCELLED):
            assert InvoiceStatusRules.date_stamps(unstamped_invoice(), status, NOW) == {}

    def test_only_sent_requires_delivery(self):
        assert InvoiceStatusRules.requires_delivery(ClientInvoiceStatus.SENT) is True
        assert InvoiceStatusRules.requires_delivery(ClientInvoiceStatus.PAID) is False
