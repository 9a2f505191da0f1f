"""Client invoice API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Query, Response, status

from consultant_portal.api.dependencies import DbSession, Mailer
from consultant_portal.api.schemas import (
    ClientInvoiceCreate,
    ClientInvoiceResponse,
    ClientInvoiceStatusUpdate,
    ClientInvoiceUpdate,
    CycleInvoiceEligibilityResponse,
    ErrorResponse,
    SuccessResponse,
)
from consultant_portal.config import get_settings
from consultant_portal.services.client_invoice_service import ClientInvoiceService
from consultant_portal.services.pdf_service import render_invoice_pdf

router = APIRouter(prefix="/client-invoices", tags=["client-invoices"])


# ============================================================================
# Reads
# ============================================================================


@router.get("", response_model=list[ClientInvoiceResponse])
async def list_client_invoices(
    db: DbSession,
    cycle_id: int | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[ClientInvoiceResponse]:
    """List client invoices, newest first."""
    invoices = await ClientInvoiceService(db).get_all(cycle_id=cycle_id, status=status_filter)
    return [ClientInvoiceResponse.model_validate(invoice) for invoice in invoices]


@router.get(
    "/cycle/{cycle_id}",
    response_model=ClientInvoiceResponse | None,
)
async def get_client_invoice_by_cycle(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
) -> ClientInvoiceResponse | None:
    """Get the invoice billing a cycle, or null when none exists yet."""
    invoice = await ClientInvoiceService(db).get_by_cycle_id(cycle_id)
    if invoice is None:
        return None
    return ClientInvoiceResponse.model_validate(invoice)


@router.get(
    "/from-cycle/{cycle_id}/check",
    response_model=CycleInvoiceEligibilityResponse,
)
async def check_cycle_invoice_eligibility(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
) -> CycleInvoiceEligibilityResponse:
    """Report whether an invoice can be generated for a cycle, without writing."""
    eligibility = await ClientInvoiceService(db).check_cycle_eligibility(cycle_id)
    return CycleInvoiceEligibilityResponse.model_validate(eligibility)


@router.get(
    "/{invoice_id}",
    response_model=ClientInvoiceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_client_invoice(
    db: DbSession,
    invoice_id: Annotated[int, Path()],
) -> ClientInvoiceResponse:
    invoice = await ClientInvoiceService(db).get_by_id(invoice_id)
    return ClientInvoiceResponse.model_validate(invoice)


@router.get(
    "/{invoice_id}/pdf",
    responses={200: {"content": {"application/pdf": {}}}, 404: {"model": ErrorResponse}},
    response_class=Response,
)
async def download_client_invoice_pdf(
    db: DbSession,
    invoice_id: Annotated[int, Path()],
) -> Response:
    """Render the invoice as a PDF document."""
    invoice = await ClientInvoiceService(db).get_by_id(invoice_id)
    pdf = render_invoice_pdf(invoice, get_settings().company_name)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="invoice-{invoice.invoice_number}.pdf"'},
    )


# ============================================================================
# Writes
# ============================================================================


@router.post(
    "",
    response_model=ClientInvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_client_invoice(
    db: DbSession,
    payload: ClientInvoiceCreate,
) -> ClientInvoiceResponse:
    """Create an empty draft invoice."""
    invoice = await ClientInvoiceService(db).create(**payload.model_dump())
    return ClientInvoiceResponse.model_validate(invoice)


@router.post(
    "/from-cycle/{cycle_id}",
    response_model=ClientInvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_client_invoice_from_cycle(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
) -> ClientInvoiceResponse:
    """Generate the client invoice for a payroll cycle."""
    invoice = await ClientInvoiceService(db).create_from_cycle(cycle_id)
    return ClientInvoiceResponse.model_validate(invoice)


@router.put(
    "/{invoice_id}",
    response_model=ClientInvoiceResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_client_invoice(
    db: DbSession,
    invoice_id: Annotated[int, Path()],
    payload: ClientInvoiceUpdate,
) -> ClientInvoiceResponse:
    invoice = await ClientInvoiceService(db).update(invoice_id, payload.model_dump(exclude_unset=True))
    return ClientInvoiceResponse.model_validate(invoice)


@router.put(
    "/{invoice_id}/status",
    response_model=ClientInvoiceResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def update_client_invoice_status(
    db: DbSession,
    mailer: Mailer,
    invoice_id: Annotated[int, Path()],
    payload: ClientInvoiceStatusUpdate,
) -> ClientInvoiceResponse:
    """Change invoice status. Moving to SENT delivers the invoice first."""
    invoice = await ClientInvoiceService(db).update_status(invoice_id, payload.status, mailer=mailer)
    return ClientInvoiceResponse.model_validate(invoice)


@router.post(
    "/{invoice_id}/sync-bonus",
    response_model=ClientInvoiceResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def sync_client_invoice_bonus(
    db: DbSession,
    invoice_id: Annotated[int, Path()],
) -> ClientInvoiceResponse:
    """Bring the bonus line in line with the cycle's invoice bonus."""
    invoice = await ClientInvoiceService(db).sync_invoice_bonus_from_cycle(invoice_id)
    return ClientInvoiceResponse.model_validate(invoice)


@router.delete(
    "/{invoice_id}",
    response_model=SuccessResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_client_invoice(
    db: DbSession,
    invoice_id: Annotated[int, Path()],
) -> SuccessResponse:
    result = await ClientInvoiceService(db).delete(invoice_id)
    return SuccessResponse(**result)
