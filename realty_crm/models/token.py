"""
Refresh token model.
Stored so that sign-out can revoke a session.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class RefreshToken(SQLModel, table=True):
    """
    Refresh token for obtaining new access tokens.
    Stored in DB for revocation support.
    """
    __tablename__ = "refresh_token"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    token: str = Field(unique=True, index=True)
    jti: str = Field(unique=True, index=True)  # JWT ID for matching with JWT payload

    # Status
    revoked: bool = Field(default=False)
    revoked_at: Optional[datetime] = None

    # Metadata
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: datetime
