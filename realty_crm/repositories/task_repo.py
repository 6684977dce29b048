"""
Task repository.
"""
import uuid
from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.models.task import Task
from realty_crm.repositories.base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Repository for Task operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Task, session)

    async def for_user(self, user_id: uuid.UUID, include_completed: bool = True) -> List[Task]:
        """A user's tasks: open ones first, then by due date."""
        query = select(Task).where(Task.user_id == user_id)
        if not include_completed:
            query = query.where(Task.is_completed == False)  # noqa: E712
        query = query.order_by(Task.is_completed, Task.due_date, Task.created_at.desc())
        result = await self.session.exec(query)
        return result.all()
