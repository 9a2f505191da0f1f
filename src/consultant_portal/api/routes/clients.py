"""Client API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from consultant_portal.api.dependencies import DbSession
from consultant_portal.api.schemas import (
    ClientCreate,
    ClientResponse,
    ClientUpdate,
    ErrorResponse,
    SuccessResponse,
)
from consultant_portal.services.client_service import ClientService

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("", response_model=list[ClientResponse])
async def list_clients(db: DbSession) -> list[ClientResponse]:
    clients = await ClientService(db).get_all()
    return [ClientResponse.model_validate(c) for c in clients]


@router.get(
    "/{client_id}",
    response_model=ClientResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_client(
    db: DbSession,
    client_id: Annotated[int, Path()],
) -> ClientResponse:
    client = await ClientService(db).get_by_id(client_id)
    return ClientResponse.model_validate(client)


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(db: DbSession, payload: ClientCreate) -> ClientResponse:
    client = await ClientService(db).create(**payload.model_dump())
    return ClientResponse.model_validate(client)


@router.put(
    "/{client_id}",
    response_model=ClientResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_client(
    db: DbSession,
    client_id: Annotated[int, Path()],
    payload: ClientUpdate,
) -> ClientResponse:
    client = await ClientService(db).update(client_id, payload.model_dump(exclude_unset=True))
    return ClientResponse.model_validate(client)


@router.delete(
    "/{client_id}",
    response_model=SuccessResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_client(
    db: DbSession,
    client_id: Annotated[int, Path()],
) -> SuccessResponse:
    """Delete a client that no invoice references."""
    result = await ClientService(db).delete(client_id)
    return SuccessResponse(**result)
