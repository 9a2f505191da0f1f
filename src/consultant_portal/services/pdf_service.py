"""Client invoice PDF rendering with reportlab."""

from __future__ import annotations

import io
from decimal import Decimal
from typing import TYPE_CHECKING

from reportlab.lib.pagesizes import LETTER
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas

from consultant_portal.config import get_settings

if TYPE_CHECKING:
    from consultant_portal.models import ClientInvoice


def dollars(amount: Decimal | None) -> str:
    return f"${(amount or Decimal('0')):,.2f}"


def _wrap(text: str, max_chars: int) -> list[str]:
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}".strip()
        if len(candidate) > max_chars and current:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines or [""]


def render_invoice_pdf(invoice: ClientInvoice, company_name: str | None = None) -> bytes:
    """Draw a persisted invoice (client, cycle and line items loaded) to PDF bytes."""
    company_name = company_name or get_settings().company_name
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=LETTER)
    width, height = LETTER

    c.setTitle(f"Invoice {invoice.invoice_number}")
    c.setFont("Helvetica-Bold", 24)
    title_width = c.stringWidth("INVOICE", "Helvetica-Bold", 24)
    c.drawString((width - title_width) / 2, height - 1 * inch, "INVOICE")

    c.setFont("Helvetica-Bold", 16)
    c.drawString(1 * inch, height - 1.5 * inch, company_name)

    # Bill to
    client = invoice.client
    c.setFont("Helvetica-Bold", 12)
    c.drawString(5.0 * inch, height - 1.5 * inch, "Bill To:")
    c.setFont("Helvetica", 10)
    y = height - 1.7 * inch
    bill_to = [
        client.legal_name or client.name,
        client.address,
        ", ".join(p for p in (client.city, client.state, client.zip) if p),
        client.country,
        client.contact_email,
    ]
    for line in bill_to:
        if line:
            c.drawString(5.0 * inch, y, line)
            y -= 0.15 * inch

    y -= 0.2 * inch
    details = [
        f"Invoice Number: {invoice.invoice_number}",
        f"Invoice Date: {invoice.invoice_date:%m/%d/%Y}",
        f"Due Date: {invoice.due_date:%m/%d/%Y}",
    ]
    if invoice.cycle is not None:
        details.append(f"Period: {invoice.cycle.month_label}")
    if invoice.payment_terms:
        details.append(f"Terms: {invoice.payment_terms}")
    for line in details:
        c.drawString(5.0 * inch, y, line)
        y -= 0.15 * inch

    y -= 0.4 * inch

    def draw_header(y_pos: float) -> float:
        c.setFont("Helvetica-Bold", 11)
        c.drawString(1 * inch, y_pos, "Service")
        c.drawRightString(5.2 * inch, y_pos, "Qty")
        c.drawRightString(6.3 * inch, y_pos, "Price")
        c.drawRightString(7.5 * inch, y_pos, "Amount")
        y_pos -= 0.1 * inch
        c.line(1 * inch, y_pos, 7.5 * inch, y_pos)
        return y_pos - 0.2 * inch

    y = draw_header(y)
    for item in invoice.line_items:
        description = _wrap(item.description, 70)
        needed = (len(description) + 1) * 0.15 * inch + 0.1 * inch
        if y - needed < 1.5 * inch:
            c.showPage()
            y = draw_header(height - 1 * inch)

        c.setFont("Helvetica-Bold", 10)
        c.drawString(1 * inch, y, item.service_name)
        c.setFont("Helvetica", 10)
        c.drawRightString(5.2 * inch, y, str(item.quantity))
        c.drawRightString(6.3 * inch, y, dollars(item.rate))
        c.drawRightString(7.5 * inch, y, dollars(item.amount))
        y -= 0.15 * inch
        c.setFont("Helvetica", 8)
        for line in description:
            c.drawString(1.1 * inch, y, line)
            y -= 0.15 * inch
        y -= 0.1 * inch

    if y < 2 * inch:
        c.showPage()
        y = height - 1 * inch

    c.line(4.5 * inch, y, 7.5 * inch, y)
    y -= 0.2 * inch
    totals = [
        ("Subtotal", invoice.subtotal),
        ("Tax", invoice.tax),
        ("Total", invoice.total),
        ("Amount Due", invoice.amount_due),
    ]
    for label, amount in totals:
        c.setFont("Helvetica-Bold" if label == "Amount Due" else "Helvetica", 10)
        c.drawString(4.6 * inch, y, label)
        c.drawRightString(7.5 * inch, y, dollars(amount))
        y -= 0.2 * inch

    if invoice.notes:
        y -= 0.2 * inch
        c.setFont("Helvetica", 9)
        for line in _wrap(invoice.notes, 100):
            c.drawString(1 * inch, y, line)
            y -= 0.14 * inch

    c.showPage()
    c.save()
    return buffer.getvalue()
