"""Consultant portal services."""

from consultant_portal.services.bonus_workflow_service import BonusEmail, BonusWorkflowService
from consultant_portal.services.client_invoice_service import (
    ClientInvoiceService,
    CycleInvoiceEligibility,
)
from consultant_portal.services.client_service import ClientService
from consultant_portal.services.consultant_service import ConsultantService
from consultant_portal.services.cycle_line_item_service import CycleLineItemService
from consultant_portal.services.cycle_service import (
    ConsultantPaymentDetail,
    CycleService,
    CycleSummary,
    PaymentCalculation,
)
from consultant_portal.services.equipment_service import EquipmentService
from consultant_portal.services.invoice_line_item_service import InvoiceLineItemService
from consultant_portal.services.invoice_status import ClientInvoiceStatus, InvoiceStatusRules
from consultant_portal.services.mailer import (
    InvoiceMailer,
    LoggingInvoiceMailer,
    RecordingInvoiceMailer,
)
from consultant_portal.services.pdf_service import render_invoice_pdf
from consultant_portal.services.sequence_service import InvoiceNumberSequenceRepository
from consultant_portal.services.settings_service import SettingsService
from consultant_portal.services.termination_service import TerminationService, TerminationStatus

__all__ = [
    "BonusEmail",
    "BonusWorkflowService",
    "ClientInvoiceService",
    "CycleInvoiceEligibility",
    "ClientService",
    "ConsultantService",
    "CycleLineItemService",
    "ConsultantPaymentDetail",
    "CycleService",
    "CycleSummary",
    "PaymentCalculation",
    "EquipmentService",
    "InvoiceLineItemService",
    "ClientInvoiceStatus",
    "InvoiceStatusRules",
    "InvoiceMailer",
    "LoggingInvoiceMailer",
    "RecordingInvoiceMailer",
    "render_invoice_pdf",
    "InvoiceNumberSequenceRepository",
    "SettingsService",
    "TerminationService",
    "TerminationStatus",
]
