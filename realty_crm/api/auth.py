"""
Authentication API routes.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.database import get_session
from realty_crm.services.auth_service import AuthService
from realty_crm.schemas.auth import (
    RegisterRequest, TokenResponse, RefreshRequest, AccessTokenResponse,
    ChangePasswordRequest
)
from realty_crm.schemas.common import MessageResponse
from realty_crm.api.deps import get_current_user, get_client_info
from realty_crm.models.user import User

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=201)
async def register(
    request: RegisterRequest,
    session: AsyncSession = Depends(get_session)
):
    """Register a new profile. An admin must grant a role before it can be used."""
    auth_service = AuthService(session)
    return await auth_service.register(
        email=request.email,
        password=request.password,
        full_name=request.full_name,
        phone=request.phone
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_session)
):
    """Login and get access + refresh tokens."""
    auth_service = AuthService(session)
    client_info = get_client_info(request)

    return await auth_service.login(
        email=form_data.username,
        password=form_data.password,
        user_agent=client_info.get("user_agent"),
        ip_address=client_info.get("ip_address")
    )


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh_token(
    request: RefreshRequest,
    session: AsyncSession = Depends(get_session)
):
    """Get new access token using refresh token."""
    auth_service = AuthService(session)
    return await auth_service.refresh_access_token(request.refresh_token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: RefreshRequest,
    session: AsyncSession = Depends(get_session)
):
    """Logout by revoking refresh token."""
    auth_service = AuthService(session)
    await auth_service.logout(request.refresh_token)
    return MessageResponse(message="Logged out successfully")


@router.post("/logout-all", response_model=MessageResponse)
async def logout_all(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Logout from all devices."""
    auth_service = AuthService(session)
    count = await auth_service.logout_all(current_user.id)
    return MessageResponse(message=f"Logged out from {count} devices")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Change password for logged-in user."""
    auth_service = AuthService(session)
    await auth_service.change_password(
        current_user.id,
        request.current_password,
        request.new_password
    )
    return MessageResponse(message="Password changed successfully")
