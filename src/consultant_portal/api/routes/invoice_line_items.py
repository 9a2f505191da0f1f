"""Invoice line item API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from consultant_portal.api.dependencies import DbSession
from consultant_portal.api.schemas import (
    ErrorResponse,
    InvoiceLineItemCreate,
    InvoiceLineItemResponse,
    InvoiceLineItemUpdate,
    SuccessResponse,
)
from consultant_portal.services.invoice_line_item_service import InvoiceLineItemService

router = APIRouter(prefix="/invoice-line-items", tags=["invoice-line-items"])


@router.get("/invoice/{invoice_id}", response_model=list[InvoiceLineItemResponse])
async def list_invoice_line_items(
    db: DbSession,
    invoice_id: Annotated[int, Path()],
) -> list[InvoiceLineItemResponse]:
    items = await InvoiceLineItemService(db).get_by_invoice_id(invoice_id)
    return [InvoiceLineItemResponse.model_validate(item) for item in items]


@router.get(
    "/{item_id}",
    response_model=InvoiceLineItemResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_invoice_line_item(
    db: DbSession,
    item_id: Annotated[int, Path()],
) -> InvoiceLineItemResponse:
    item = await InvoiceLineItemService(db).get_by_id(item_id)
    return InvoiceLineItemResponse.model_validate(item)


@router.post(
    "",
    response_model=InvoiceLineItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
)
async def create_invoice_line_item(
    db: DbSession,
    payload: InvoiceLineItemCreate,
) -> InvoiceLineItemResponse:
    """Add a line to an invoice and recompute its totals."""
    item = await InvoiceLineItemService(db).create(**payload.model_dump())
    return InvoiceLineItemResponse.model_validate(item)


@router.put(
    "/{item_id}",
    response_model=InvoiceLineItemResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_invoice_line_item(
    db: DbSession,
    item_id: Annotated[int, Path()],
    payload: InvoiceLineItemUpdate,
) -> InvoiceLineItemResponse:
    item = await InvoiceLineItemService(db).update(item_id, payload.model_dump(exclude_unset=True))
    return InvoiceLineItemResponse.model_validate(item)


@router.post(
    "/{item_id}/recalculate",
    response_model=InvoiceLineItemResponse,
    responses={404: {"model": ErrorResponse}},
)
async def recalculate_invoice_line_item(
    db: DbSession,
    item_id: Annotated[int, Path()],
) -> InvoiceLineItemResponse:
    """Reset the line amount to quantity x rate."""
    item = await InvoiceLineItemService(db).recalculate_amount(item_id)
    return InvoiceLineItemResponse.model_validate(item)


@router.delete(
    "/{item_id}",
    response_model=SuccessResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_invoice_line_item(
    db: DbSession,
    item_id: Annotated[int, Path()],
) -> SuccessResponse:
    result = await InvoiceLineItemService(db).delete(item_id)
    return SuccessResponse(**result)
