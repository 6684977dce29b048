"""
Task service - personal to-do items.
"""
import uuid
from typing import List

from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.core.exceptions import raise_not_found
from realty_crm.models.task import Task
from realty_crm.repositories.task_repo import TaskRepository
from realty_crm.schemas.task import TaskCreate, TaskUpdate


class TaskService:
    """Service for task operations. Users only ever see their own tasks."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.task_repo = TaskRepository(session)

    async def _get_own(self, user_id: uuid.UUID, task_id: uuid.UUID) -> Task:
        task = await self.task_repo.get(task_id)
        if not task or task.user_id != user_id:
            raise_not_found("Task", str(task_id))
        return task

    async def list(self, user_id: uuid.UUID, include_completed: bool = True) -> List[Task]:
        return await self.task_repo.for_user(user_id, include_completed)

    async def create(self, user_id: uuid.UUID, data: TaskCreate) -> Task:
        return await self.task_repo.create({**data.model_dump(), "user_id": user_id})

    async def update(self, user_id: uuid.UUID, task_id: uuid.UUID, data: TaskUpdate) -> Task:
        await self._get_own(user_id, task_id)
        return await self.task_repo.update(task_id, data.model_dump(exclude_unset=True))

    async def toggle(self, user_id: uuid.UUID, task_id: uuid.UUID) -> Task:
        task = await self._get_own(user_id, task_id)
        return await self.task_repo.update(task_id, {"is_completed": not task.is_completed})

    async def delete(self, user_id: uuid.UUID, task_id: uuid.UUID) -> bool:
        await self._get_own(user_id, task_id)
        return await self.task_repo.delete(task_id)
