"""Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ============================================================================
# Common
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None


class SuccessResponse(BaseModel):
    success: bool


# ============================================================================
# Client schemas
# ============================================================================


class ClientBase(BaseModel):
    name: str = Field(min_length=1)
    legal_name: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    country: str | None = None
    tax_id: str | None = None
    payment_terms: str | None = None
    payment_notes: str | None = None


class ClientCreate(ClientBase):
    """Schema for creating a client."""


class ClientUpdate(BaseModel):
    """Schema for a partial client update."""

    name: str | None = Field(default=None, min_length=1)
    legal_name: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    country: str | None = None
    tax_id: str | None = None
    payment_terms: str | None = None
    payment_notes: str | None = None


class ClientResponse(ClientBase):
    """Schema for client response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Consultant schemas
# ============================================================================


class ConsultantCreate(BaseModel):
    """Schema for creating a consultant."""

    name: str = Field(min_length=1)
    email: str | None = None
    hourly_rate: Decimal = Field(ge=0)
    start_date: datetime | None = None
    role: str | None = None
    service_description: str | None = None
    client_invoice_service_name: str | None = None
    client_invoice_unit_price: Decimal | None = Field(default=None, ge=0)
    client_invoice_service_description: str | None = None
    yearly_bonus: Decimal | None = None
    bonus_month: int | None = Field(default=None, ge=1, le=12)


class ConsultantUpdate(BaseModel):
    """Schema for a partial consultant update."""

    name: str | None = Field(default=None, min_length=1)
    email: str | None = None
    hourly_rate: Decimal | None = Field(default=None, ge=0)
    start_date: datetime | None = None
    role: str | None = None
    service_description: str | None = None
    client_invoice_service_name: str | None = None
    client_invoice_unit_price: Decimal | None = Field(default=None, ge=0)
    client_invoice_service_description: str | None = None
    yearly_bonus: Decimal | None = None
    bonus_month: int | None = Field(default=None, ge=1, le=12)


class ConsultantResponse(BaseModel):
    """Schema for consultant response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str | None = None
    hourly_rate: Decimal
    start_date: datetime
    role: str | None = None
    service_description: str | None = None
    client_invoice_service_name: str | None = None
    client_invoice_unit_price: Decimal | None = None
    client_invoice_service_description: str | None = None
    yearly_bonus: Decimal | None = None
    bonus_month: int | None = None
    termination_date: datetime | None = None
    termination_reason: str | None = None
    final_payment_amount: Decimal | None = None
    equipment_return_deadline: datetime | None = None
    contract_signed_date: datetime | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class TerminationRequest(BaseModel):
    """Schema for initiating a consultant termination."""

    termination_date: datetime
    termination_reason: Literal["FIRED", "LAID_OFF", "QUIT", "MUTUAL_AGREEMENT"]
    final_payment_amount: Decimal | None = None
    equipment_return_deadline: datetime | None = None


class SignContractRequest(BaseModel):
    contract_signed_date: datetime | None = None


class EquipmentCreate(BaseModel):
    """Schema for registering equipment held by a consultant."""

    device_name: str = Field(min_length=1)
    model: str | None = None
    serial_number: str | None = None
    purchase_date: datetime | None = None
    return_required: bool = True
    notes: str | None = None


class EquipmentReturnRequest(BaseModel):
    returned_date: datetime | None = None


class EquipmentResponse(BaseModel):
    """Schema for equipment response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    consultant_id: int
    device_name: str
    model: str | None = None
    serial_number: str | None = None
    purchase_date: datetime | None = None
    return_required: bool
    returned_date: datetime | None = None
    notes: str | None = None
    is_pending_return: bool


class TerminationStatusResponse(BaseModel):
    """Schema for a consultant's termination progress."""

    model_config = ConfigDict(from_attributes=True)

    consultant_id: int
    termination_date: datetime | None = None
    termination_reason: str | None = None
    equipment_return_deadline: datetime | None = None
    contract_signed_date: datetime | None = None
    pending_equipment: list[EquipmentResponse]
    is_initiated: bool
    is_complete: bool


# ============================================================================
# Payroll cycle schemas
# ============================================================================


class CycleCreate(BaseModel):
    """Schema for creating a payroll cycle."""

    month_label: str = Field(min_length=1)
    global_work_hours: int | None = Field(default=None, ge=0)
    client_bonus: Decimal | None = None
    invoice_bonus: Decimal | None = None


class CycleUpdate(BaseModel):
    """Schema for a partial payroll cycle update."""

    month_label: str | None = Field(default=None, min_length=1)
    calculated_payment_date: datetime | None = None
    payment_arrival_date: datetime | None = None
    send_receipt_date: datetime | None = None
    send_invoice_date: datetime | None = None
    client_invoice_payment_date: datetime | None = None
    client_payment_scheduled_date: datetime | None = None
    invoice_approval_date: datetime | None = None
    hours_limit_changed_on: datetime | None = None
    consultants_paid_date: datetime | None = None
    time_doctor_marked_paid_date: datetime | None = None
    global_work_hours: int | None = None
    client_bonus: Decimal | None = None
    invoice_bonus: Decimal | None = None
    pagamento_pix: Decimal | None = None
    pagamento_inter: Decimal | None = None
    equipments_usd: Decimal | None = None


class CycleLineResponse(BaseModel):
    """Schema for one consultant's line within a cycle."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    cycle_id: int
    consultant_id: int
    rate_per_hour: Decimal
    work_hours: int | None = None
    adjustment_value: Decimal | None = None
    bonus_advance: Decimal | None = None
    advance_date: datetime | None = None
    bonus_date: datetime | None = None
    bonus_paydate: datetime | None = None
    informed_date: datetime | None = None
    invoice_sent: bool | None = None
    comments: str | None = None
    consultant_name: str | None = None
    subtotal: Decimal | None = None


class CycleLineUpdate(BaseModel):
    """Schema for entering payroll data on a cycle line."""

    work_hours: int | None = Field(default=None, ge=0)
    adjustment_value: Decimal | None = None
    bonus_advance: Decimal | None = None
    advance_date: datetime | None = None
    bonus_date: datetime | None = None
    informed_date: datetime | None = None
    bonus_paydate: datetime | None = None
    invoice_sent: bool | None = None
    comments: str | None = None


class CycleLineCreate(BaseModel):
    """Schema for adding a consultant to an existing cycle."""

    consultant_id: int
    rate_per_hour: Decimal | None = Field(default=None, ge=0)


class CycleResponse(BaseModel):
    """Schema for payroll cycle response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    month_label: str
    calculated_payment_date: datetime | None = None
    payment_arrival_date: datetime | None = None
    send_receipt_date: datetime | None = None
    send_invoice_date: datetime | None = None
    client_invoice_payment_date: datetime | None = None
    client_payment_scheduled_date: datetime | None = None
    invoice_approval_date: datetime | None = None
    hours_limit_changed_on: datetime | None = None
    consultants_paid_date: datetime | None = None
    time_doctor_marked_paid_date: datetime | None = None
    global_work_hours: int | None = None
    client_bonus: Decimal | None = None
    invoice_bonus: Decimal | None = None
    pagamento_pix: Decimal | None = None
    pagamento_inter: Decimal | None = None
    equipments_usd: Decimal | None = None
    archived_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class CycleDetailResponse(CycleResponse):
    """Schema for a payroll cycle with its lines."""

    lines: list[CycleLineResponse] = []


class CycleSummaryResponse(BaseModel):
    cycle_id: int
    month_label: str
    total_hourly_value: Decimal
    usd_total: Decimal
    line_count: int
    anomalies: list[str]


class ConsultantPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    consultant_id: int
    consultant_name: str
    rate_per_hour: Decimal
    work_hours: int
    base_amount: Decimal
    adjustment_value: Decimal
    bonus_advance: Decimal
    subtotal: Decimal


class PaymentCalculationResponse(BaseModel):
    """Schema for the payment calculation of a cycle."""

    model_config = ConfigDict(from_attributes=True)

    cycle_id: int
    month_label: str
    calculated_at: datetime
    consultant_payments: list[ConsultantPaymentResponse]
    total_consultant_payments: Decimal
    client_bonus: Decimal
    equipments_usd: Decimal
    total_transfer: Decimal
    total_hourly_value: Decimal
    global_work_hours: int
    usd_total: Decimal
    anomalies: list[str]


# ============================================================================
# Client invoice schemas
# ============================================================================


InvoiceStatusValue = Literal["DRAFT", "SENT", "APPROVED", "OVERDUE", "PAID", "CANCELLED"]


class InvoiceLineItemResponse(BaseModel):
    """Schema for invoice line item response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_id: int
    service_name: str
    description: str
    quantity: int
    rate: Decimal
    amount: Decimal
    consultant_ids: list[int] | None = Field(
        default=None,
        validation_alias=AliasChoices("consultant_id_list", "consultant_ids"),
    )
    sort_order: int
    created_at: datetime
    updated_at: datetime


class InvoiceLineItemCreate(BaseModel):
    """Schema for adding a line to an invoice."""

    invoice_id: int
    service_name: str = Field(min_length=1)
    description: str
    rate: Decimal
    quantity: int = Field(default=1, ge=0)
    amount: Decimal | None = None
    consultant_ids: list[int] | None = None
    sort_order: int = 0


class InvoiceLineItemUpdate(BaseModel):
    service_name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    rate: Decimal | None = None
    quantity: int | None = Field(default=None, ge=0)
    amount: Decimal | None = None
    consultant_ids: list[int] | None = None
    sort_order: int | None = None


class ClientInvoiceCreate(BaseModel):
    """Schema for creating an empty invoice by hand."""

    cycle_id: int
    client_id: int
    invoice_date: datetime
    due_date: datetime
    notes: str | None = None
    payment_terms: str | None = None


class ClientInvoiceUpdate(BaseModel):
    """Schema for a partial invoice update."""

    invoice_date: datetime | None = None
    due_date: datetime | None = None
    status: InvoiceStatusValue | None = None
    tax: Decimal | None = None
    notes: str | None = None
    payment_terms: str | None = None
    sent_date: datetime | None = None
    approved_date: datetime | None = None
    paid_date: datetime | None = None


class ClientInvoiceStatusUpdate(BaseModel):
    status: InvoiceStatusValue


class ClientInvoiceResponse(BaseModel):
    """Schema for client invoice response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_number: int
    cycle_id: int
    client_id: int
    invoice_date: datetime
    due_date: datetime
    status: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    amount_due: Decimal
    notes: str | None = None
    payment_terms: str | None = None
    sent_date: datetime | None = None
    approved_date: datetime | None = None
    paid_date: datetime | None = None
    created_at: datetime
    updated_at: datetime
    client: ClientResponse | None = None
    line_items: list[InvoiceLineItemResponse] = []


class MissingUnitPriceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class CycleInvoiceEligibilityResponse(BaseModel):
    """Schema for the from-cycle precondition check."""

    model_config = ConfigDict(from_attributes=True)

    cycle_id: int
    can_create: bool
    existing_invoice_id: int | None = None
    next_invoice_number: int | None = None
    missing_unit_price: list[MissingUnitPriceResponse]
    reasons: list[str]


# ============================================================================
# Settings schemas
# ============================================================================


class SettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    default_client_bonus: Decimal
    updated_at: datetime


class SettingsUpdate(BaseModel):
    default_client_bonus: Decimal = Field(ge=0)


# ============================================================================
# Bonus workflow schemas
# ============================================================================


class BonusWorkflowUpdate(BaseModel):
    """Schema for a partial bonus workflow update."""

    bonus_recipient_consultant_id: int | None = None
    bonus_announcement_date: datetime | None = None
    email_generated: bool | None = None
    email_content: str | None = None
    paid_with_payroll: bool | None = None
    bonus_payment_date: datetime | None = None
    notes: str | None = None


class BonusWorkflowResponse(BaseModel):
    """Schema for bonus workflow response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    cycle_id: int
    bonus_recipient_consultant_id: int | None = None
    bonus_announcement_date: datetime | None = None
    email_generated: bool
    email_content: str | None = None
    paid_with_payroll: bool
    bonus_payment_date: datetime | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class BonusEmailResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    email_content: str
    consultants_count: int
    total_bonus: Decimal
