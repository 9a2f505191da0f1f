"""Invoice line builder: grouping, fallback chains, and cents rounding.

Everything here is pure and database-free so the billing math can be
exercised directly.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, TypeVar

from consultant_portal.billing.types import (
    BillableConsultant,
    BillingGroup,
    BillingGrouping,
    InvoiceLineDraft,
    InvoiceTotals,
    MissingUnitPrice,
)

T = TypeVar("T")

UNCATEGORIZED_SERVICE = "Uncategorized"
CONSULTANT_BONUS_SERVICE_NAME = "Consultant Bonus"
CONSULTANT_BONUS_DESCRIPTION = "Client contribution to consultants' annual performance bonus."

# Accessors are evaluated in order; the first non-empty value wins.
SERVICE_NAME_CHAIN: tuple[Callable[[BillableConsultant], str | None], ...] = (
    lambda c: c.client_invoice_service_name,
    lambda c: c.role,
)
DESCRIPTION_CHAIN: tuple[Callable[[BillableConsultant], str | None], ...] = (
    lambda c: c.client_invoice_service_description,
    lambda c: c.service_description,
)


def first_present(
    accessors: Iterable[Callable[[T], str | None]],
    obj: T,
    default: str,
) -> str:
    """Return the first non-empty value produced by ``accessors``."""
    for accessor in accessors:
        value = accessor(obj)
        if value:
            return value
    return default


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, floats and strings to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class InvoiceLineBuilder:
    """Builds client invoice lines from a cycle's consultants.

    Rounding:
    - Round half up to cents at every aggregation step
    - Per-line amount first, then the subtotal of the rounded amounts
    """

    OUTPUT_PRECISION = Decimal("0.01")

    @staticmethod
    def round_to_cents(amount: Decimal | float | int) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return to_decimal(amount).quantize(InvoiceLineBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def resolve_service_name(consultant: BillableConsultant) -> str:
        return first_present(SERVICE_NAME_CHAIN, consultant, UNCATEGORIZED_SERVICE)

    @staticmethod
    def resolve_base_description(consultant: BillableConsultant, service_name: str) -> str:
        return first_present(DESCRIPTION_CHAIN, consultant, service_name)

    @staticmethod
    def group_consultants(consultants: Sequence[BillableConsultant]) -> BillingGrouping:
        """Group consultants by (service name, unit price, base description).

        Consultants without a unit price are collected, not skipped silently,
        so callers can report every one of them at once. Groups come back
        sorted by their key; consultants inside a group keep input order.
        """
        groups: dict[tuple[str, Decimal, str], BillingGroup] = {}
        missing: list[MissingUnitPrice] = []

        for consultant in consultants:
            service_name = InvoiceLineBuilder.resolve_service_name(consultant)
            if consultant.client_invoice_unit_price is None:
                missing.append(MissingUnitPrice(id=consultant.id, name=consultant.name))
                continue

            unit_price = to_decimal(consultant.client_invoice_unit_price)
            base_description = InvoiceLineBuilder.resolve_base_description(consultant, service_name)

            key = (service_name, unit_price, base_description)
            group = groups.get(key)
            if group is None:
                group = BillingGroup(
                    service_name=service_name,
                    unit_price=unit_price,
                    base_description=base_description,
                )
                groups[key] = group
            group.consultant_ids.append(consultant.id)
            group.consultant_names.append(consultant.name)

        ordered = sorted(groups.values(), key=lambda g: g.key)
        return BillingGrouping(groups=ordered, missing_unit_price=missing)

    @staticmethod
    def create_group_line(group: BillingGroup, sort_order: int) -> InvoiceLineDraft:
        """Create one invoice line for a billing group."""
        quantity = group.quantity
        names = ", ".join(group.consultant_names)
        return InvoiceLineDraft(
            service_name=group.service_name,
            description=f"{group.base_description} ({names}).",
            quantity=quantity,
            rate=InvoiceLineBuilder.round_to_cents(group.unit_price),
            amount=InvoiceLineBuilder.round_to_cents(quantity * group.unit_price),
            consultant_ids=list(group.consultant_ids),
            sort_order=sort_order,
        )

    @staticmethod
    def create_bonus_line(amount: Decimal, sort_order: int) -> InvoiceLineDraft:
        """Create the fixed "Consultant Bonus" line."""
        bonus = InvoiceLineBuilder.round_to_cents(amount)
        return InvoiceLineDraft(
            service_name=CONSULTANT_BONUS_SERVICE_NAME,
            description=CONSULTANT_BONUS_DESCRIPTION,
            quantity=1,
            rate=bonus,
            amount=bonus,
            consultant_ids=[],
            sort_order=sort_order,
        )

    @staticmethod
    def build_invoice_lines(groups: Sequence[BillingGroup], bonus: Decimal) -> list[InvoiceLineDraft]:
        """Create grouped service lines followed by the bonus line."""
        lines = [
            InvoiceLineBuilder.create_group_line(group, sort_order)
            for sort_order, group in enumerate(groups)
        ]
        lines.append(InvoiceLineBuilder.create_bonus_line(bonus, len(lines)))
        return lines

    @staticmethod
    def compute_totals(amounts: Iterable[Decimal | None], tax: Decimal | None = None) -> InvoiceTotals:
        """Compute invoice totals from line amounts.

        No partial payments are modeled, so amount due always equals total.
        """
        subtotal = InvoiceLineBuilder.round_to_cents(
            sum((to_decimal(a) for a in amounts if a is not None), Decimal("0"))
        )
        tax_amount = InvoiceLineBuilder.round_to_cents(tax or Decimal("0"))
        total = InvoiceLineBuilder.round_to_cents(subtotal + tax_amount)
        return InvoiceTotals(subtotal=subtotal, tax=tax_amount, total=total, amount_due=total)
