"""
Catalog models: projects and lead sources.
Both are soft-deleted through is_active and are referenced by leads as plain
strings, so edits never rewrite existing leads.
"""
import uuid
from datetime import datetime
from typing import Optional, List

from sqlmodel import SQLModel, Field
from sqlalchemy import Column

from realty_crm.models.types import JSONType


class Project(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    category: Optional[str] = None  # Residential, Commercial, Land ...
    area: Optional[str] = None
    is_active: bool = Field(default=True, index=True)

    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)


class LeadSourceOption(SQLModel, table=True):
    """Selectable sub-sources grouped under a source name."""
    __tablename__ = "lead_source"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    source_name: str = Field(index=True)
    sub_sources: List[str] = Field(default=[], sa_column=Column(JSONType))
    is_active: bool = Field(default=True, index=True)

    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
