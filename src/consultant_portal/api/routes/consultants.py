"""Consultant, termination and equipment API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from consultant_portal.api.dependencies import DbSession
from consultant_portal.api.schemas import (
    ConsultantCreate,
    ConsultantResponse,
    ConsultantUpdate,
    EquipmentCreate,
    EquipmentResponse,
    EquipmentReturnRequest,
    ErrorResponse,
    SignContractRequest,
    TerminationRequest,
    TerminationStatusResponse,
)
from consultant_portal.services.consultant_service import ConsultantService
from consultant_portal.services.equipment_service import EquipmentService
from consultant_portal.services.termination_service import TerminationService

router = APIRouter(prefix="/consultants", tags=["consultants"])
equipment_router = APIRouter(prefix="/equipment", tags=["consultants"])


# ============================================================================
# Consultant CRUD
# ============================================================================


@router.get("", response_model=list[ConsultantResponse])
async def list_consultants(
    db: DbSession,
    active_only: bool = False,
) -> list[ConsultantResponse]:
    consultants = await ConsultantService(db).get_all(active_only=active_only)
    return [ConsultantResponse.model_validate(c) for c in consultants]


@router.get(
    "/{consultant_id}",
    response_model=ConsultantResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_consultant(
    db: DbSession,
    consultant_id: Annotated[int, Path()],
) -> ConsultantResponse:
    consultant = await ConsultantService(db).get_by_id(consultant_id)
    return ConsultantResponse.model_validate(consultant)


@router.post(
    "",
    response_model=ConsultantResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_consultant(db: DbSession, payload: ConsultantCreate) -> ConsultantResponse:
    consultant = await ConsultantService(db).create(**payload.model_dump())
    return ConsultantResponse.model_validate(consultant)


@router.put(
    "/{consultant_id}",
    response_model=ConsultantResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_consultant(
    db: DbSession,
    consultant_id: Annotated[int, Path()],
    payload: ConsultantUpdate,
) -> ConsultantResponse:
    consultant = await ConsultantService(db).update(
        consultant_id, payload.model_dump(exclude_unset=True)
    )
    return ConsultantResponse.model_validate(consultant)


# ============================================================================
# Termination
# ============================================================================


@router.post(
    "/{consultant_id}/termination",
    response_model=ConsultantResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def initiate_termination(
    db: DbSession,
    consultant_id: Annotated[int, Path()],
    payload: TerminationRequest,
) -> ConsultantResponse:
    """Start the termination workflow for a consultant."""
    consultant = await TerminationService(db).initiate_termination(consultant_id, **payload.model_dump())
    return ConsultantResponse.model_validate(consultant)


@router.post(
    "/{consultant_id}/termination/sign-contract",
    response_model=ConsultantResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def sign_termination_contract(
    db: DbSession,
    consultant_id: Annotated[int, Path()],
    payload: SignContractRequest,
) -> ConsultantResponse:
    consultant = await TerminationService(db).sign_contract(
        consultant_id, payload.contract_signed_date
    )
    return ConsultantResponse.model_validate(consultant)


@router.get(
    "/{consultant_id}/termination",
    response_model=TerminationStatusResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_termination_status(
    db: DbSession,
    consultant_id: Annotated[int, Path()],
) -> TerminationStatusResponse:
    termination = await TerminationService(db).get_status(consultant_id)
    return TerminationStatusResponse.model_validate(termination)


# ============================================================================
# Equipment
# ============================================================================


@router.get(
    "/{consultant_id}/equipment",
    response_model=list[EquipmentResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_consultant_equipment(
    db: DbSession,
    consultant_id: Annotated[int, Path()],
) -> list[EquipmentResponse]:
    equipment = await EquipmentService(db).get_by_consultant(consultant_id)
    return [EquipmentResponse.model_validate(e) for e in equipment]


@router.post(
    "/{consultant_id}/equipment",
    response_model=EquipmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
)
async def create_consultant_equipment(
    db: DbSession,
    consultant_id: Annotated[int, Path()],
    payload: EquipmentCreate,
) -> EquipmentResponse:
    equipment = await EquipmentService(db).create(consultant_id, **payload.model_dump())
    return EquipmentResponse.model_validate(equipment)


@equipment_router.post(
    "/{equipment_id}/return",
    response_model=EquipmentResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def mark_equipment_returned(
    db: DbSession,
    equipment_id: Annotated[int, Path()],
    payload: EquipmentReturnRequest,
) -> EquipmentResponse:
    equipment = await EquipmentService(db).mark_returned(equipment_id, payload.returned_date)
    return EquipmentResponse.model_validate(equipment)
