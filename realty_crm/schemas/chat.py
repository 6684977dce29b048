"""
Chat schemas.
"""
import uuid
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, field_validator


class ChatGroupCreate(BaseModel):
    name: str
    description: Optional[str] = None
    member_ids: List[uuid.UUID] = []

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Group name is required")
        return value


class ChatGroupResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    created_by: uuid.UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MembersAdd(BaseModel):
    member_ids: List[uuid.UUID]


class ChatMemberResponse(BaseModel):
    user_id: uuid.UUID
    full_name: str
    email: str
    avatar_url: Optional[str] = None


class MessageCreate(BaseModel):
    message: str

    @field_validator("message")
    @classmethod
    def message_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message must not be empty")
        return value


class ChatMessageResponse(BaseModel):
    id: uuid.UUID
    group_id: uuid.UUID
    sender_id: uuid.UUID
    sender_name: Optional[str] = None
    message: str
    created_at: datetime

    class Config:
        from_attributes = True
