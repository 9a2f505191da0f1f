"""System settings API endpoints."""

from fastapi import APIRouter

from consultant_portal.api.dependencies import DbSession
from consultant_portal.api.schemas import ErrorResponse, SettingsResponse, SettingsUpdate
from consultant_portal.services.settings_service import SettingsService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=SettingsResponse)
async def get_system_settings(db: DbSession) -> SettingsResponse:
    settings = await SettingsService(db).get_settings()
    return SettingsResponse.model_validate(settings)


@router.put(
    "",
    response_model=SettingsResponse,
    responses={400: {"model": ErrorResponse}},
)
async def update_system_settings(db: DbSession, payload: SettingsUpdate) -> SettingsResponse:
    """Update the default bonus pool used for new cycles."""
    settings = await SettingsService(db).update_settings(payload.default_client_bonus)
    return SettingsResponse.model_validate(settings)
