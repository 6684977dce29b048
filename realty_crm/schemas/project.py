"""
Project and lead source catalog schemas.
"""
import uuid
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, field_validator


class ProjectCreate(BaseModel):
    name: str
    category: Optional[str] = None
    area: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Project name is required")
        return value


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    area: Optional[str] = None
    is_active: Optional[bool] = None


class ProjectResponse(BaseModel):
    id: uuid.UUID
    name: str
    category: Optional[str] = None
    area: Optional[str] = None
    is_active: bool
    created_by: Optional[uuid.UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LeadSourceCreate(BaseModel):
    source_name: str
    sub_sources: List[str] = []

    @field_validator("source_name")
    @classmethod
    def name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Source name is required")
        return value

    @field_validator("sub_sources")
    @classmethod
    def drop_blank_sub_sources(cls, value: List[str]) -> List[str]:
        return [item.strip() for item in value if item and item.strip()]


class LeadSourceUpdate(BaseModel):
    source_name: Optional[str] = None
    sub_sources: Optional[List[str]] = None
    is_active: Optional[bool] = None


class LeadSourceResponse(BaseModel):
    id: uuid.UUID
    source_name: str
    sub_sources: List[str]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
