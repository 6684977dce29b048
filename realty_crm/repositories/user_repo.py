"""
User and role repositories.
"""
import uuid
from typing import Optional, List, Dict, Iterable
from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.models.user import User, UserRole
from realty_crm.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        query = select(User).where(User.email == email)
        result = await self.session.exec(query)
        return result.first()

    async def get_many(self, user_ids: Iterable[uuid.UUID]) -> List[User]:
        """Fetch several users by id."""
        ids = list({user_id for user_id in user_ids if user_id})
        if not ids:
            return []
        query = select(User).where(User.id.in_(ids))
        result = await self.session.exec(query)
        return result.all()

    async def get_names(self, user_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, str]:
        """Map user ids to display names."""
        users = await self.get_many(user_ids)
        return {user.id: user.full_name for user in users}

    async def update_last_login(self, user_id: uuid.UUID) -> None:
        """Update user's last login timestamp."""
        user = await self.get(user_id)
        if user:
            user.last_login_at = datetime.utcnow()
            self.session.add(user)
            await self.session.commit()

    async def update_password(self, user_id: uuid.UUID, password_hash: str) -> bool:
        """Update user's password."""
        user = await self.get(user_id)
        if user:
            user.password_hash = password_hash
            user.updated_at = datetime.utcnow()
            self.session.add(user)
            await self.session.commit()
            return True
        return False


class UserRoleRepository(BaseRepository[UserRole]):
    """Repository for role assignments."""

    def __init__(self, session: AsyncSession):
        super().__init__(UserRole, session)

    async def get_role(self, user_id: uuid.UUID) -> Optional[str]:
        """Role of a user, or None when unassigned."""
        assignment = await self.get_by_field("user_id", user_id)
        return assignment.role if assignment else None

    async def roles_by_user(self) -> Dict[uuid.UUID, str]:
        """Every role assignment keyed by user id."""
        result = await self.session.exec(select(UserRole))
        return {assignment.user_id: assignment.role for assignment in result.all()}

    async def set_role(self, user_id: uuid.UUID, role: str) -> UserRole:
        """Replace the user's role."""
        assignment = await self.get_by_field("user_id", user_id)
        if assignment:
            assignment.role = role
        else:
            assignment = UserRole(user_id=user_id, role=role)
        self.session.add(assignment)
        await self.session.commit()
        await self.session.refresh(assignment)
        return assignment

    async def remove_role(self, user_id: uuid.UUID) -> bool:
        """Remove the user's role, revoking all access."""
        return await self.delete_where({"user_id": user_id}) > 0

    async def user_ids_with_role(self, role: str) -> List[uuid.UUID]:
        """Ids of every user holding ``role``."""
        query = select(UserRole.user_id).where(UserRole.role == role)
        result = await self.session.exec(query)
        return list(result.all())
