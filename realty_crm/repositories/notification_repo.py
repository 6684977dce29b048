"""
Notification repository.
"""
import uuid
from typing import List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from realty_crm.models.notification import Notification
from realty_crm.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)

    async def for_user(
        self,
        user_id: uuid.UUID,
        type: Optional[str] = None,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        """Notifications addressed to one user, newest first."""
        filters = {"user_id": user_id, "type": type}
        if unread_only:
            filters["is_read"] = False
        return await self.list(filters, limit=limit)

    async def unread_count(self, user_id: uuid.UUID) -> int:
        query = select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read == False  # noqa: E712
        )
        result = await self.session.exec(query)
        return result.one()

    async def unread_ids(self, user_id: uuid.UUID) -> List[uuid.UUID]:
        query = select(Notification.id).where(
            Notification.user_id == user_id,
            Notification.is_read == False  # noqa: E712
        )
        result = await self.session.exec(query)
        return list(result.all())
