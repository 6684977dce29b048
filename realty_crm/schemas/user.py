"""
User profile and role schemas.
"""
import uuid
from typing import Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, EmailStr


class RoleName(str, Enum):
    ADMIN = "admin"
    DIGITAL_MARKETER = "digital_marketer"
    SALESMAN = "salesman"


class UserResponse(BaseModel):
    """User profile with role."""
    id: uuid.UUID
    email: str
    full_name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    department: Optional[str] = None
    role: Optional[str] = None
    is_active: bool = True
    created_at: datetime
    last_login_at: Optional[datetime] = None
    leads_assigned: Optional[int] = None  # admin listing only

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    """Update own profile."""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None


class UserCreate(BaseModel):
    """Admin-created account."""
    email: EmailStr
    password: str
    full_name: str
    phone: Optional[str] = None
    department: Optional[str] = None
    role: RoleName


class UserAdminUpdate(UserUpdate):
    """Admin edit of another user's profile and role."""
    role: Optional[RoleName] = None


class RoleUpdate(BaseModel):
    role: RoleName


class UserSummary(BaseModel):
    id: uuid.UUID
    full_name: str
    email: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True
