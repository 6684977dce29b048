"""
Personal to-do items. Visible only to their owner.
"""
import uuid
from datetime import date, datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class Task(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    title: str
    description: Optional[str] = None
    priority: Optional[str] = Field(default="medium")  # low, medium, high
    due_date: Optional[date] = None
    is_completed: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
