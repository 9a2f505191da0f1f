"""Type definitions for client invoice generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol


class BillableConsultant(Protocol):
    """The consultant fields read when billing a client."""

    id: int
    name: str
    role: str | None
    service_description: str | None
    client_invoice_service_name: str | None
    client_invoice_unit_price: Decimal | None
    client_invoice_service_description: str | None


@dataclass(frozen=True)
class MissingUnitPrice:
    """A consultant that cannot be billed because no unit price is set."""

    id: int
    name: str

    def label(self) -> str:
        return f"{self.name} (id={self.id})"


@dataclass
class BillingGroup:
    """Consultants billed together under one invoice line."""

    service_name: str
    unit_price: Decimal
    base_description: str
    consultant_ids: list[int] = field(default_factory=list)
    consultant_names: list[str] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, Decimal, str]:
        return (self.service_name, self.unit_price, self.base_description)

    @property
    def quantity(self) -> int:
        return len(self.consultant_ids)


@dataclass
class BillingGrouping:
    """Result of grouping a cycle's consultants."""

    groups: list[BillingGroup]
    missing_unit_price: list[MissingUnitPrice]

    @property
    def is_complete(self) -> bool:
        return not self.missing_unit_price


@dataclass
class InvoiceLineDraft:
    """An invoice line item before persistence."""

    service_name: str
    description: str
    quantity: int
    rate: Decimal
    amount: Decimal
    consultant_ids: list[int] = field(default_factory=list)
    sort_order: int = 0


@dataclass(frozen=True)
class InvoiceTotals:
    """Cached monetary fields of a client invoice."""

    subtotal: Decimal
    tax: Decimal
    total: Decimal
    amount_due: Decimal
