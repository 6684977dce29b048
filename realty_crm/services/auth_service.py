"""
Authentication service - handles all auth operations.
"""
import uuid
import logging
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.config import settings
from realty_crm.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    create_refresh_token,
    verify_token,
    decode_token
)
from realty_crm.core.exceptions import (
    raise_already_exists,
    raise_unauthorized,
    raise_not_found,
    raise_validation_error
)
from realty_crm.core.permissions import Roles
from realty_crm.repositories.user_repo import UserRepository, UserRoleRepository
from realty_crm.repositories.token_repo import RefreshTokenRepository

logger = logging.getLogger(__name__)


def check_password_strength(password: str) -> None:
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise_validation_error(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters",
            "password"
        )


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.role_repo = UserRoleRepository(session)
        self.refresh_token_repo = RefreshTokenRepository(session)

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
        phone: Optional[str] = None
    ) -> dict:
        """
        Register a new profile.

        The account has no role, and therefore no access, until an admin
        assigns one. The configured bootstrap email registers as admin.
        """
        check_password_strength(password)

        existing = await self.user_repo.get_by_email(email)
        if existing:
            raise_already_exists("User", "email", email)

        user = await self.user_repo.create({
            "email": email,
            "password_hash": get_password_hash(password),
            "full_name": full_name,
            "phone": phone,
        })

        role = None
        if settings.BOOTSTRAP_ADMIN_EMAIL and email.lower() == settings.BOOTSTRAP_ADMIN_EMAIL.lower():
            await self.role_repo.set_role(user.id, Roles.ADMIN)
            role = Roles.ADMIN
            logger.info(f"Bootstrap admin {email} registered")
        else:
            logger.info(f"User {email} registered without a role")

        return {
            "message": "User registered successfully",
            "user_id": str(user.id),
            "role": role,
        }

    async def login(
        self,
        email: str,
        password: str,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None
    ) -> dict:
        """Authenticate user and return tokens."""
        user = await self.user_repo.get_by_email(email)
        if not user:
            raise_unauthorized("Incorrect email or password")

        if not verify_password(password, user.password_hash):
            raise_unauthorized("Incorrect email or password")

        if not user.is_active:
            raise_unauthorized("User account is deactivated")

        token_data = {
            "sub": user.email,
            "user_id": str(user.id),
        }

        access_token = create_access_token(token_data)
        refresh_token = create_refresh_token(token_data)

        # Decode refresh token to get jti
        refresh_payload = decode_token(refresh_token)

        await self.refresh_token_repo.issue(
            user_id=user.id,
            jti=refresh_payload["jti"],
            token=refresh_token,
            user_agent=user_agent,
            ip_address=ip_address
        )

        await self.user_repo.update_last_login(user.id)

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        }

    async def refresh_access_token(self, refresh_token: str) -> dict:
        """Get new access token using refresh token."""
        payload = verify_token(refresh_token, "refresh")
        if not payload:
            raise_unauthorized("Invalid or expired refresh token")

        jti = payload.get("jti")
        if not await self.refresh_token_repo.is_active(jti):
            raise_unauthorized("Refresh token has been revoked")

        access_token = create_access_token({
            "sub": payload.get("sub"),
            "user_id": payload.get("user_id"),
        })

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        }

    async def logout(self, refresh_token: str) -> bool:
        """Logout by revoking refresh token."""
        payload = decode_token(refresh_token)
        if not payload:
            return False
        return await self.refresh_token_repo.revoke_jti(payload.get("jti"))

    async def logout_all(self, user_id: uuid.UUID) -> int:
        """Logout from all devices by revoking all refresh tokens."""
        return await self.refresh_token_repo.revoke_all_for_user(user_id)

    async def change_password(
        self,
        user_id: uuid.UUID,
        current_password: str,
        new_password: str
    ) -> bool:
        """Change password for logged-in user."""
        check_password_strength(new_password)

        user = await self.user_repo.get(user_id)
        if not user:
            raise_not_found("User")

        if not verify_password(current_password, user.password_hash):
            raise_unauthorized("Current password is incorrect")

        await self.user_repo.update_password(user_id, get_password_hash(new_password))
        return True
