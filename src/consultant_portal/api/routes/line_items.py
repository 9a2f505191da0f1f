"""Cycle line item API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from consultant_portal.api.dependencies import DbSession
from consultant_portal.api.routes.cycles import build_cycle_line
from consultant_portal.api.schemas import (
    CycleLineCreate,
    CycleLineResponse,
    CycleLineUpdate,
    ErrorResponse,
)
from consultant_portal.services.cycle_line_item_service import CycleLineItemService

router = APIRouter(prefix="/line-items", tags=["line-items"])


@router.get(
    "/cycle/{cycle_id}",
    response_model=list[CycleLineResponse],
)
async def list_cycle_line_items(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
) -> list[CycleLineResponse]:
    """List a cycle's lines ordered by consultant name."""
    lines = await CycleLineItemService(db).get_by_cycle(cycle_id)
    return [build_cycle_line(line, line.cycle.global_work_hours) for line in lines]


@router.post(
    "/cycle/{cycle_id}",
    response_model=CycleLineResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def add_consultant_to_cycle(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
    payload: CycleLineCreate,
) -> CycleLineResponse:
    line = await CycleLineItemService(db).create_for_consultant(
        cycle_id,
        payload.consultant_id,
        rate_per_hour=payload.rate_per_hour,
    )
    return build_cycle_line(line, line.cycle.global_work_hours)


@router.get(
    "/{line_id}",
    response_model=CycleLineResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_line_item(
    db: DbSession,
    line_id: Annotated[int, Path()],
) -> CycleLineResponse:
    line = await CycleLineItemService(db).get_by_id(line_id)
    return build_cycle_line(line, line.cycle.global_work_hours)


@router.put(
    "/{line_id}",
    response_model=CycleLineResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_line_item(
    db: DbSession,
    line_id: Annotated[int, Path()],
    payload: CycleLineUpdate,
) -> CycleLineResponse:
    """Enter payroll data for one consultant in a cycle."""
    line = await CycleLineItemService(db).update(line_id, payload.model_dump(exclude_unset=True))
    return build_cycle_line(line, line.cycle.global_work_hours)
