"""Client invoice math: consultant grouping, bonus line, totals."""

from consultant_portal.billing.line_builder import (
    CONSULTANT_BONUS_DESCRIPTION,
    CONSULTANT_BONUS_SERVICE_NAME,
    UNCATEGORIZED_SERVICE,
    InvoiceLineBuilder,
)
from consultant_portal.billing.types import (
    BillingGroup,
    BillingGrouping,
    InvoiceLineDraft,
    InvoiceTotals,
    MissingUnitPrice,
)

__all__ = [
    "CONSULTANT_BONUS_DESCRIPTION",
    "CONSULTANT_BONUS_SERVICE_NAME",
    "UNCATEGORIZED_SERVICE",
    "InvoiceLineBuilder",
    "BillingGroup",
    "BillingGrouping",
    "InvoiceLineDraft",
    "InvoiceTotals",
    "MissingUnitPrice",
]
