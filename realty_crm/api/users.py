"""
User API routes.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends, UploadFile, File
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.database import get_session
from realty_crm.services.user_service import UserService
from realty_crm.schemas.user import (
    UserResponse, UserUpdate, UserCreate, UserAdminUpdate, RoleUpdate, UserSummary
)
from realty_crm.schemas.common import MessageResponse
from realty_crm.api.deps import get_current_user, get_current_role
from realty_crm.models.user import User

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Get current user profile with role."""
    user_service = UserService(session)
    return await user_service.get_profile(current_user.id)


@router.patch("/me", response_model=UserResponse)
async def update_current_user_profile(
    update_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Update current user profile."""
    user_service = UserService(session)
    return await user_service.update_profile(current_user.id, update_data)


@router.post("/me/avatar", response_model=UserResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Upload a new profile picture."""
    content = await file.read()
    user_service = UserService(session)
    return await user_service.upload_avatar(current_user.id, file.filename or "", content)


@router.get("/salespeople", response_model=List[UserSummary])
async def list_salespeople(
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Users who can be assigned leads."""
    user_service = UserService(session)
    return await user_service.list_salespeople()


@router.get("/", response_model=List[UserResponse])
async def list_users(
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """All users with role and assigned-lead count (admin)."""
    user_service = UserService(session)
    return await user_service.list_users(role)


@router.post("/", response_model=UserResponse, status_code=201)
async def create_user(
    user_data: UserCreate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Create an account with a role (admin)."""
    user_service = UserService(session)
    return await user_service.create_user(current_user.id, role, user_data)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    update_data: UserAdminUpdate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Edit a user's profile and role (admin)."""
    user_service = UserService(session)
    return await user_service.update_user(current_user.id, role, user_id, update_data)


@router.put("/{user_id}/role", response_model=MessageResponse)
async def set_user_role(
    user_id: uuid.UUID,
    role_data: RoleUpdate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Replace a user's role (admin)."""
    user_service = UserService(session)
    new_role = await user_service.set_role(current_user.id, role, user_id, role_data.role.value)
    return MessageResponse(message=f"Role updated to {new_role}")


@router.delete("/{user_id}/role", response_model=MessageResponse)
async def remove_user_role(
    user_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Revoke a user's access by removing their role (admin)."""
    user_service = UserService(session)
    await user_service.remove_role(current_user.id, role, user_id)
    return MessageResponse(message="User role removed")
