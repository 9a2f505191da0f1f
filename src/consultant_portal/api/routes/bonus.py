"""Bonus workflow API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from consultant_portal.api.dependencies import DbSession
from consultant_portal.api.schemas import (
    BonusEmailResponse,
    BonusWorkflowResponse,
    BonusWorkflowUpdate,
    ErrorResponse,
)
from consultant_portal.services.bonus_workflow_service import BonusWorkflowService

router = APIRouter(prefix="/cycles", tags=["bonus"])


@router.get(
    "/{cycle_id}/bonus",
    response_model=BonusWorkflowResponse | None,
)
async def get_bonus_workflow(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
) -> BonusWorkflowResponse | None:
    """Get the cycle's bonus workflow, or null if none was started."""
    workflow = await BonusWorkflowService(db).get_by_cycle_id(cycle_id)
    if workflow is None:
        return None
    return BonusWorkflowResponse.model_validate(workflow)


@router.post(
    "/{cycle_id}/bonus",
    response_model=BonusWorkflowResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_bonus_workflow(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
) -> BonusWorkflowResponse:
    workflow = await BonusWorkflowService(db).create_for_cycle(cycle_id)
    return BonusWorkflowResponse.model_validate(workflow)


@router.patch(
    "/{cycle_id}/bonus",
    response_model=BonusWorkflowResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_bonus_workflow(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
    payload: BonusWorkflowUpdate,
) -> BonusWorkflowResponse:
    """Update the workflow. Changing the recipient clears other consultants' bonus dates."""
    workflow = await BonusWorkflowService(db).update(cycle_id, payload.model_dump(exclude_unset=True))
    return BonusWorkflowResponse.model_validate(workflow)


@router.post(
    "/{cycle_id}/bonus/generate-email",
    response_model=BonusEmailResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def generate_bonus_email(
    db: DbSession,
    cycle_id: Annotated[int, Path()],
) -> BonusEmailResponse:
    email = await BonusWorkflowService(db).generate_email_content(cycle_id)
    return BonusEmailResponse.model_validate(email)
