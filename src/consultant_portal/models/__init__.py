"""SQLAlchemy ORM models for the consultant portal."""

from consultant_portal.models.base import Base, TimestampMixin, utcnow
from consultant_portal.models.bonus import BonusWorkflow
from consultant_portal.models.client import Client
from consultant_portal.models.consultant import (
    TERMINATION_REASONS,
    Consultant,
    ConsultantEquipment,
)
from consultant_portal.models.cycle import CycleLineItem, PayrollCycle
from consultant_portal.models.invoicing import (
    ClientInvoice,
    InvoiceLineItem,
    InvoiceNumberSequence,
    dump_consultant_ids,
    parse_consultant_ids,
)
from consultant_portal.models.settings import SystemSettings

__all__ = [
    "Base",
    "TimestampMixin",
    "utcnow",
    "BonusWorkflow",
    "Client",
    "TERMINATION_REASONS",
    "Consultant",
    "ConsultantEquipment",
    "CycleLineItem",
    "PayrollCycle",
    "ClientInvoice",
    "InvoiceLineItem",
    "InvoiceNumberSequence",
    "dump_consultant_ids",
    "parse_consultant_ids",
    "SystemSettings",
]
