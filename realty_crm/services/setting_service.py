"""
System settings service.
"""
import uuid
import logging
from typing import Any, Dict, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.core.exceptions import raise_forbidden, raise_not_found
from realty_crm.core.permissions import Capabilities, can_perform
from realty_crm.models.setting import SETTING_KEYS, SystemSetting
from realty_crm.repositories.setting_repo import SystemSettingRepository

logger = logging.getLogger(__name__)


class SettingService:
    """Service for the company, notification and integration settings."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.setting_repo = SystemSettingRepository(session)

    def _check_manage(self, role: Optional[str]) -> None:
        if not can_perform(role, Capabilities.MANAGE_SETTINGS):
            raise_forbidden("Only admins and digital marketers can manage settings")

    async def get_all(self, role: Optional[str]) -> Dict[str, Dict[str, Any]]:
        """Every known key, empty when never saved."""
        self._check_manage(role)
        stored = await self.setting_repo.as_dict()
        return {key: stored.get(key) or {} for key in SETTING_KEYS}

    async def update(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        key: str,
        value: Dict[str, Any]
    ) -> SystemSetting:
        self._check_manage(role)
        if key not in SETTING_KEYS:
            raise_not_found("Setting", key)

        setting = await self.setting_repo.upsert(key, value)
        logger.info(f"Setting '{key}' saved by {user_id}")
        return setting
