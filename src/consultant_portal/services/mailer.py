"""Invoice delivery collaborators.

The status workflow only needs ``send_invoice``; real SMTP or API
delivery plugs in behind the InvoiceMailer protocol.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from consultant_portal.models import ClientInvoice

logger = logging.getLogger(__name__)


class InvoiceMailer(Protocol):
    """Protocol for invoice delivery adapters."""

    async def send_invoice(self, invoice: ClientInvoice, pdf: bytes) -> None:
        """Deliver the invoice to the client. Raise on failure."""
        ...


class LoggingInvoiceMailer:
    """Default mailer: records the delivery in the application log."""

    async def send_invoice(self, invoice: ClientInvoice, pdf: bytes) -> None:
        recipient = invoice.client.contact_email if invoice.client else None
        logger.info(
            "Invoice #%s (%d bytes) delivered to %s",
            invoice.invoice_number,
            len(pdf),
            recipient or "<no contact email>",
        )


@dataclass
class RecordingInvoiceMailer:
    """Keeps sent invoice numbers in memory; optionally fails every send."""

    fail_with: Exception | None = None
    sent: list[int] = field(default_factory=list)

    async def send_invoice(self, invoice: ClientInvoice, pdf: bytes) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(invoice.invoice_number)
