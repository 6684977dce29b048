"""
System settings API routes.
"""
from fastapi import APIRouter, Depends, Path
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.database import get_session
from realty_crm.services.setting_service import SettingService
from realty_crm.schemas.setting import SettingUpdate, SettingsResponse
from realty_crm.api.deps import get_current_user, get_current_role
from realty_crm.models.user import User

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("/", response_model=SettingsResponse)
async def get_settings(
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Company, notification and integration settings."""
    settings = await SettingService(session).get_all(role)
    return SettingsResponse(settings=settings)


@router.put("/{key}", response_model=SettingsResponse)
async def update_setting(
    data: SettingUpdate,
    key: str = Path(...),
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Save one settings section."""
    setting_service = SettingService(session)
    await setting_service.update(current_user.id, role, key, data.setting_value)
    return SettingsResponse(settings=await setting_service.get_all(role))
