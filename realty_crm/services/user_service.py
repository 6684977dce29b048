"""
User service - profiles, avatars and role administration.
"""
import uuid
import time
import logging
from typing import Optional, List

from sqlmodel.ext.asyncio.session import AsyncSession
from starlette.concurrency import run_in_threadpool

from realty_crm.core.exceptions import (
    StorageError, raise_not_found, raise_forbidden, raise_already_exists, raise_bad_request
)
from realty_crm.core.permissions import Capabilities, Roles, can_perform
from realty_crm.core.security import get_password_hash
from realty_crm.models.user import User
from realty_crm.repositories.lead_repo import LeadRepository
from realty_crm.repositories.user_repo import UserRepository, UserRoleRepository
from realty_crm.schemas.user import UserCreate, UserAdminUpdate, UserUpdate
from realty_crm.services.auth_service import check_password_strength
from realty_crm.services.storage_service import StorageService, AVATAR_BUCKET

logger = logging.getLogger(__name__)

AVATAR_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}


def user_with_role(user: User, role: Optional[str], **extra) -> dict:
    return {**user.model_dump(exclude={"password_hash"}), "role": role, **extra}


class UserService:
    """Service for user operations."""

    def __init__(self, session: AsyncSession, storage: Optional[StorageService] = None):
        self.session = session
        self.user_repo = UserRepository(session)
        self.role_repo = UserRoleRepository(session)
        self.lead_repo = LeadRepository(session)
        self.storage = storage or StorageService()

    def _check_admin(self, role: Optional[str]) -> None:
        if not can_perform(role, Capabilities.MANAGE_USERS):
            raise_forbidden("Only admins can manage users")

    async def get_profile(self, user_id: uuid.UUID) -> dict:
        """Get user profile with role."""
        user = await self.user_repo.get(user_id)
        if not user:
            raise_not_found("User", str(user_id))
        return user_with_role(user, await self.role_repo.get_role(user_id))

    async def update_profile(self, user_id: uuid.UUID, data: UserUpdate) -> dict:
        """Update own profile."""
        user = await self.user_repo.update(user_id, data.model_dump(exclude_unset=True))
        if not user:
            raise_not_found("User", str(user_id))
        return user_with_role(user, await self.role_repo.get_role(user_id))

    async def upload_avatar(self, user_id: uuid.UUID, filename: str, content: bytes) -> dict:
        """Store a new profile picture and point the profile at it."""
        extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if extension not in AVATAR_EXTENSIONS:
            raise_bad_request("Please upload an image file")

        path = f"{user_id}/{int(time.time() * 1000)}.{extension}"
        try:
            avatar_url = await run_in_threadpool(
                self.storage.upload_file, AVATAR_BUCKET, path, content, overwrite=True
            )
        except StorageError as e:
            logger.error(e.message)
            raise_bad_request("Failed to upload image")

        user = await self.user_repo.update(user_id, {"avatar_url": avatar_url})
        if not user:
            raise_not_found("User", str(user_id))
        return user_with_role(user, await self.role_repo.get_role(user_id))

    async def list_users(self, role: Optional[str]) -> List[dict]:
        """All profiles with their role and assigned-lead count."""
        self._check_admin(role)

        users = await self.user_repo.list(order_by="created_at")
        roles = await self.role_repo.roles_by_user()
        assigned_counts = await self.lead_repo.count_by_assignee()

        return [
            user_with_role(user, roles.get(user.id), leads_assigned=assigned_counts.get(user.id, 0))
            for user in users
        ]

    async def create_user(self, actor_id: uuid.UUID, role: Optional[str], data: UserCreate) -> dict:
        """Admin-created account with a role."""
        self._check_admin(role)
        check_password_strength(data.password)

        if await self.user_repo.get_by_email(data.email):
            raise_already_exists("User", "email", data.email)

        user = await self.user_repo.create({
            "email": data.email,
            "password_hash": get_password_hash(data.password),
            "full_name": data.full_name,
            "phone": data.phone,
            "department": data.department,
        })
        assignment = await self.role_repo.set_role(user.id, data.role.value)

        logger.info(f"User {user.email} created as {assignment.role} by {actor_id}")
        return user_with_role(user, assignment.role)

    async def update_user(
        self,
        actor_id: uuid.UUID,
        role: Optional[str],
        user_id: uuid.UUID,
        data: UserAdminUpdate
    ) -> dict:
        """Admin edit of a profile; a changed role replaces the old one."""
        self._check_admin(role)

        update_data = data.model_dump(exclude_unset=True, exclude={"role"})
        user = await self.user_repo.update(user_id, update_data)
        if not user:
            raise_not_found("User", str(user_id))

        current_role = await self.role_repo.get_role(user_id)
        if data.role and data.role.value != current_role:
            current_role = await self.set_role(actor_id, role, user_id, data.role.value)

        return user_with_role(user, current_role)

    async def set_role(
        self,
        actor_id: uuid.UUID,
        role: Optional[str],
        user_id: uuid.UUID,
        new_role: str
    ) -> str:
        self._check_admin(role)
        if not await self.user_repo.exists(user_id):
            raise_not_found("User", str(user_id))

        assignment = await self.role_repo.set_role(user_id, new_role)
        logger.info(f"Role of {user_id} set to {new_role} by {actor_id}")
        return assignment.role

    async def remove_role(self, actor_id: uuid.UUID, role: Optional[str], user_id: uuid.UUID) -> bool:
        """Revoke all access; the profile itself is kept."""
        self._check_admin(role)
        if actor_id == user_id:
            raise_bad_request("You cannot remove your own role")
        if not await self.user_repo.exists(user_id):
            raise_not_found("User", str(user_id))

        removed = await self.role_repo.remove_role(user_id)
        logger.info(f"Role of {user_id} removed by {actor_id}")
        return removed

    async def list_salespeople(self) -> List[User]:
        """Profiles holding the salesman role, for assignment pickers."""
        user_ids = await self.role_repo.user_ids_with_role(Roles.SALESMAN)
        users = await self.user_repo.get_many(user_ids)
        return sorted(users, key=lambda user: user.full_name)
