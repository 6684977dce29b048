"""
Notification model.
Notices are broadcast by writing one row per recipient; each copy is read,
edited and deleted independently.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class NotificationTypes:
    LEAD = "lead"
    NOTICE = "notice"


class Notification(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)  # recipient

    title: str
    message: str
    type: str = Field(default=NotificationTypes.LEAD, index=True)
    is_read: bool = Field(default=False, index=True)

    # Back-reference only; kept when the lead is deleted
    lead_id: Optional[uuid.UUID] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
