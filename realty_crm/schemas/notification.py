"""
Notification and notice schemas.
"""
import uuid
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, field_validator


class NotificationResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    message: str
    type: str
    is_read: bool
    lead_id: Optional[uuid.UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class NoticeCreate(BaseModel):
    """Broadcast a notice. ``target_user_id`` of None means everyone."""
    title: str
    message: str
    target_user_id: Optional[uuid.UUID] = None

    @field_validator("title", "message")
    @classmethod
    def required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please fill in all fields")
        return value


class NoticeUpdate(BaseModel):
    title: str
    message: str

    @field_validator("title", "message")
    @classmethod
    def required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please fill in all fields")
        return value


class NoticeAdminResponse(NotificationResponse):
    """Notice copy with its recipient's name, for the management page."""
    recipient_name: Optional[str] = None
    recipient_email: Optional[str] = None


class NoticeSendResponse(BaseModel):
    sent: int
    notices: List[NotificationResponse]


class UnreadCountResponse(BaseModel):
    unread: int
