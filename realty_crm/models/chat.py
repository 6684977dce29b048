"""
Group messaging models.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class ChatGroup(SQLModel, table=True):
    __tablename__ = "chat_group"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    description: Optional[str] = None
    created_by: uuid.UUID = Field(foreign_key="user.id", index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ChatGroupMember(SQLModel, table=True):
    """Junction table between users and chat groups."""
    __tablename__ = "chat_group_member"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    group_id: uuid.UUID = Field(foreign_key="chat_group.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    joined_at: datetime = Field(default_factory=datetime.utcnow)


class ChatMessage(SQLModel, table=True):
    """Append-only message in a group."""
    __tablename__ = "chat_message"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    group_id: uuid.UUID = Field(foreign_key="chat_group.id", index=True)
    sender_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    message: str

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
