"""
Key/value system settings (company profile, notification and integration
preferences).
"""
import uuid
from datetime import datetime
from typing import Any, Dict

from sqlmodel import SQLModel, Field
from sqlalchemy import Column

from realty_crm.models.types import JSONType


class SystemSetting(SQLModel, table=True):
    __tablename__ = "system_setting"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    setting_key: str = Field(unique=True, index=True)
    setting_value: Dict[str, Any] = Field(default={}, sa_column=Column(JSONType))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


# Keys the settings page reads and writes
SETTING_KEYS = ("company", "notifications", "integrations")
