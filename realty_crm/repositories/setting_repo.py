"""
System settings repository.
"""
from typing import Any, Dict

from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.models.setting import SystemSetting
from realty_crm.repositories.base import BaseRepository


class SystemSettingRepository(BaseRepository[SystemSetting]):
    """Repository for SystemSetting operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(SystemSetting, session)

    async def as_dict(self) -> Dict[str, Dict[str, Any]]:
        settings = await self.list(order_by="setting_key", order_desc=False)
        return {setting.setting_key: setting.setting_value for setting in settings}

    async def upsert(self, key: str, value: Dict[str, Any]) -> SystemSetting:
        setting = await self.get_by_field("setting_key", key)
        if setting:
            return await self.update(setting.id, {"setting_value": value})
        return await self.create({"setting_key": key, "setting_value": value})
