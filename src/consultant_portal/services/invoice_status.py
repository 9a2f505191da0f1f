"""Client invoice status values and date-stamping rules."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from consultant_portal.errors import ValidationError

if TYPE_CHECKING:
    from consultant_portal.models import ClientInvoice


class ClientInvoiceStatus(str, Enum):
    """Client invoice status values."""

    DRAFT = "DRAFT"
    SENT = "SENT"
    APPROVED = "APPROVED"
    OVERDUE = "OVERDUE"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class InvoiceStatusRules:
    """Status rules for client invoices.

    Usual flow: DRAFT → SENT → APPROVED → PAID, with OVERDUE and CANCELLED
    reachable from anywhere. Transitions are not restricted; any status may
    be set. The first time an invoice reaches SENT, APPROVED or PAID the
    matching date field is stamped. It is never re-stamped afterwards.
    """

    DATE_FIELDS: dict[ClientInvoiceStatus, str] = {
        ClientInvoiceStatus.SENT: "sent_date",
        ClientInvoiceStatus.APPROVED: "approved_date",
        ClientInvoiceStatus.PAID: "paid_date",
    }

    @classmethod
    def parse(cls, status: str | ClientInvoiceStatus) -> ClientInvoiceStatus:
        """Parse a status value, raising ValidationError for unknown values."""
        try:
            return ClientInvoiceStatus(status)
        except ValueError:
            allowed = ", ".join(s.value for s in ClientInvoiceStatus)
            raise ValidationError(f"Invalid invoice status '{status}'. Allowed: {allowed}")

    @classmethod
    def date_stamps(
        cls,
        invoice: ClientInvoice,
        to_status: ClientInvoiceStatus,
        now: datetime,
    ) -> dict[str, datetime]:
        """Return the date fields to set when moving ``invoice`` to ``to_status``."""
        field_name = cls.DATE_FIELDS.get(to_status)
        if field_name is None or getattr(invoice, field_name) is not None:
            return {}
        return {field_name: now}

    @classmethod
    def requires_delivery(cls, to_status: ClientInvoiceStatus) -> bool:
        """Whether the invoice must be delivered before this status is written."""
        return to_status == ClientInvoiceStatus.SENT
