"""
API dependencies - shared across all routes.
"""
import uuid
from typing import Optional

from fastapi import Depends, Request, WebSocket
from fastapi.security import OAuth2PasswordBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.database import get_session
from realty_crm.config import settings
from realty_crm.core.security import verify_token
from realty_crm.core.exceptions import raise_unauthorized, raise_forbidden
from realty_crm.core.permissions import can_perform
from realty_crm.models.user import User
from realty_crm.repositories.user_repo import UserRepository, UserRoleRepository


oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")


async def _user_from_token(token: Optional[str], session: AsyncSession) -> Optional[User]:
    payload = verify_token(token, "access") if token else None
    if not payload or not payload.get("user_id"):
        return None

    try:
        user_id = uuid.UUID(payload["user_id"])
    except ValueError:
        return None

    user = await UserRepository(session).get(user_id)
    if not user or not user.is_active:
        return None
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session)
) -> User:
    """Get current authenticated user from JWT token."""
    payload = verify_token(token, "access")
    if not payload:
        raise_unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise_unauthorized("Could not validate credentials")

    user_repo = UserRepository(session)
    user = await user_repo.get(uuid.UUID(user_id))

    if not user:
        raise_unauthorized("User not found")

    if not user.is_active:
        raise_unauthorized("User account is deactivated")

    return user


async def get_current_role(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
) -> str:
    """Role of the current user. Accounts without one have no access."""
    role = await UserRoleRepository(session).get_role(current_user.id)
    if not role:
        raise_forbidden("Your account has no role assigned yet")
    return role


def require_capability(capability: str):
    """Route dependency that rejects roles lacking ``capability``."""

    async def checker(
        current_user: User = Depends(get_current_user),
        role: str = Depends(get_current_role)
    ) -> str:
        if not can_perform(role, capability, current_user.id):
            raise_forbidden()
        return role

    return checker


async def get_websocket_user(websocket: WebSocket, session: AsyncSession) -> Optional[User]:
    """Authenticate a WebSocket from its ``token`` query parameter."""
    return await _user_from_token(websocket.query_params.get("token"), session)


def get_client_info(request: Request) -> dict:
    """Extract client info from request."""
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent")
    }
