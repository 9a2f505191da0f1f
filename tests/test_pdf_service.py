"""Tests for invoice PDF rendering."""

import re
from decimal import Decimal

from consultant_portal.services.client_invoice_service import ClientInvoiceService
from consultant_portal.services.pdf_service import dollars, render_invoice_pdf


def page_count(pdf: bytes) -> int:
    return max(int(n) for n in re.findall(rb"/Count (\d+)", pdf))


class TestInvoicePdf:
    """Test PDF output."""

    async def test_renders_pdf_document(self, session, test_settings, test_client, test_cycle):
        invoice = await ClientInvoiceService(session, settings=test_settings).create_from_cycle(test_cycle.id)

        pdf = render_invoice_pdf(invoice, company_name="Test Staffing LLC")

        assert pdf.startswith(b"%PDF")
        assert page_count(pdf) == 1

    async def test_long_invoices_break_pages(self, session, test_settings, test_client, test_cycle):
        invoice = await ClientInvoiceService(session, settings=test_settings).create_from_cycle(test_cycle.id)
        invoice.line_items[0].description = "Very long description " * 200

        pdf = render_invoice_pdf(invoice, company_name="Test Staffing LLC")

        assert page_count(pdf) >= 2

    def test_dollars(self):
        assert dollars(None) == "$0.00"
        assert dollars(Decimal("16984.27")) == "$16,984.27"
