"""
System settings schemas.
"""
from typing import Any, Dict
from pydantic import BaseModel


class SettingUpdate(BaseModel):
    setting_value: Dict[str, Any]


class SettingsResponse(BaseModel):
    settings: Dict[str, Dict[str, Any]]
