"""Payroll cycle API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from consultant_portal.api.dependencies import DbSession
from consultant_portal.api.schemas import (
    CycleCreate,
    CycleDetailResponse,
    CycleLineResponse,
    CycleResponse,
    CycleSummaryResponse,
    CycleUpdate,
    ErrorResponse,
    PaymentCalculationResponse,
    SuccessResponse,
)
from consultant_portal.models import CycleLineItem, PayrollCycle
from consultant_portal.services.cycle_service import CycleService

router = APIRouter(prefix="/cycles", tags=["cycles"])


def build_cycle_line(line: CycleLineItem, global_work_hours: int | None) -> CycleLineResponse:
    """Serialize a line with its consultant name and subtotal."""
    resp = CycleLineResponse.model_validate(line)
    resp.consultant_name = line.consultant.name
    resp.subtotal = CycleService.calculate_line_item_subtotal(line, global_work_hours or 0)
    return resp


def build_cycle_detail(cycle: PayrollCycle) -> CycleDetailResponse:
    """Serialize a cycle with per-line names and subtotals."""
    resp = CycleDetailResponse.model_validate(cycle)
    resp.lines = [build_cycle_line(line, cycle.global_work_hours) for line in cycle.lines]
    return resp


@router.get("", response_model=list[CycleResponse])
async def list_cycles(db: DbSession) -> list[CycleResponse]:
    """List non-archived cycles, newest month first."""
    cycles = await CycleService(db).get_all()
    return [CycleResponse.model_validate(cycle) for cycle in cycles]


@router.get(
    "/{cycle_id}",
    response_model=CycleDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_cycle(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
) -> CycleDetailResponse:
    cycle = await CycleService(db).get_by_id(cycle_id)
    return build_cycle_detail(cycle)


@router.post(
    "",
    response_model=CycleDetailResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_cycle(db: DbSession, payload: CycleCreate) -> CycleDetailResponse:
    """Create a cycle with one line per active consultant."""
    cycle = await CycleService(db).create(**payload.model_dump())
    return build_cycle_detail(cycle)


@router.put(
    "/{cycle_id}",
    response_model=CycleDetailResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_cycle(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
    payload: CycleUpdate,
) -> CycleDetailResponse:
    cycle = await CycleService(db).update(cycle_id, payload.model_dump(exclude_unset=True))
    return build_cycle_detail(cycle)


@router.get(
    "/{cycle_id}/summary",
    response_model=CycleSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_cycle_summary(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
) -> CycleSummaryResponse:
    summary = await CycleService(db).get_summary(cycle_id)
    return CycleSummaryResponse(
        cycle_id=summary.cycle.id,
        month_label=summary.cycle.month_label,
        total_hourly_value=summary.total_hourly_value,
        usd_total=summary.usd_total,
        line_count=summary.line_count,
        anomalies=summary.anomalies,
    )


@router.post(
    "/{cycle_id}/calculate-payment",
    response_model=PaymentCalculationResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def calculate_cycle_payment(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
) -> PaymentCalculationResponse:
    """Calculate consultant payouts and the total transfer for a cycle."""
    calculation = await CycleService(db).calculate_payment(cycle_id)
    return PaymentCalculationResponse.model_validate(calculation)


@router.post(
    "/{cycle_id}/archive",
    response_model=CycleResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def archive_cycle(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
) -> CycleResponse:
    cycle = await CycleService(db).archive(cycle_id)
    return CycleResponse.model_validate(cycle)


@router.delete(
    "/{cycle_id}",
    response_model=SuccessResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_cycle(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
) -> SuccessResponse:
    result = await CycleService(db).delete(cycle_id)
    return SuccessResponse(**result)
