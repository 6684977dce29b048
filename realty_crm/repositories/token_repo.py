"""
Refresh token repository.

Each issued refresh token is stored by its JWT id so that signing out can
revoke it before it expires.
"""
import uuid
from typing import Optional
from datetime import datetime, timedelta

from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.models.token import RefreshToken
from realty_crm.repositories.base import BaseRepository
from realty_crm.config import settings


class RefreshTokenRepository(BaseRepository[RefreshToken]):

    def __init__(self, session: AsyncSession):
        super().__init__(RefreshToken, session)

    async def issue(
        self,
        user_id: uuid.UUID,
        jti: str,
        token: str,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None
    ) -> RefreshToken:
        return await self.create({
            "user_id": user_id,
            "jti": jti,
            "token": token,
            "expires_at": datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            "user_agent": user_agent,
            "ip_address": ip_address,
        })

    async def is_active(self, jti: Optional[str]) -> bool:
        """True while the token is neither revoked nor expired."""
        if not jti:
            return False
        token = await self.get_by_field("jti", jti)
        return bool(token) and not token.revoked and token.expires_at > datetime.utcnow()

    async def revoke_jti(self, jti: Optional[str]) -> bool:
        if not jti:
            return False
        revoked = await self.update_where(
            {"revoked": True, "revoked_at": datetime.utcnow()},
            {"jti": jti, "revoked": False}
        )
        return revoked > 0

    async def revoke_all_for_user(self, user_id: uuid.UUID) -> int:
        """Revoke every live session of a user; returns how many were open."""
        return await self.update_where(
            {"revoked": True, "revoked_at": datetime.utcnow()},
            {"user_id": user_id, "revoked": False}
        )
