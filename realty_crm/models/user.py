"""
User profile and role models.
Each user carries at most one role; accounts without a role are inert.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    User model with authentication and profile info.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Auth
    email: str = Field(unique=True, index=True)
    password_hash: str

    # Profile
    full_name: str = Field(default="", index=True)
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    department: Optional[str] = None

    # Status
    is_active: bool = Field(default=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    last_login_at: Optional[datetime] = None


class UserRole(SQLModel, table=True):
    """
    Role assignment. One row per user, replaced when an admin changes it.
    """
    __tablename__ = "user_role"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", unique=True, index=True)
    role: str = Field(index=True)  # admin, digital_marketer, salesman

    created_at: datetime = Field(default_factory=datetime.utcnow)
