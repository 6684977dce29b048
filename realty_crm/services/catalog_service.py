"""
Catalog service - projects and lead sources offered on the lead form.
Entries are deactivated rather than deleted.
"""
import uuid
import logging
from typing import List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.core.exceptions import raise_not_found, raise_forbidden
from realty_crm.core.permissions import Capabilities, can_perform
from realty_crm.models.project import Project, LeadSourceOption
from realty_crm.repositories.project_repo import ProjectRepository, LeadSourceRepository
from realty_crm.schemas.project import ProjectCreate, ProjectUpdate, LeadSourceCreate, LeadSourceUpdate

logger = logging.getLogger(__name__)


class ProjectService:
    """Service for project catalog operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.project_repo = ProjectRepository(session)

    def _check_manage(self, role: Optional[str]) -> None:
        if not can_perform(role, Capabilities.MANAGE_PROJECTS):
            raise_forbidden("Only admins and digital marketers can manage projects")

    async def list(self, include_inactive: bool = False) -> List[Project]:
        return await self.project_repo.list_catalog(include_inactive)

    async def create(self, user_id: uuid.UUID, role: Optional[str], data: ProjectCreate) -> Project:
        self._check_manage(role)
        project = await self.project_repo.create({**data.model_dump(), "created_by": user_id})
        logger.info(f"Project '{project.name}' created by {user_id}")
        return project

    async def update(self, role: Optional[str], project_id: uuid.UUID, data: ProjectUpdate) -> Project:
        self._check_manage(role)
        project = await self.project_repo.update(project_id, data.model_dump(exclude_unset=True))
        if not project:
            raise_not_found("Project", str(project_id))
        return project

    async def deactivate(self, role: Optional[str], project_id: uuid.UUID) -> Project:
        """Hide a project from pickers; leads keep their copied name."""
        self._check_manage(role)
        project = await self.project_repo.update(project_id, {"is_active": False})
        if not project:
            raise_not_found("Project", str(project_id))
        return project


class LeadSourceService:
    """Service for lead source catalog operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.source_repo = LeadSourceRepository(session)

    def _check_manage(self, role: Optional[str]) -> None:
        if not can_perform(role, Capabilities.MANAGE_SOURCES):
            raise_forbidden("Only admins and digital marketers can manage sources")

    async def list(self, include_inactive: bool = False) -> List[LeadSourceOption]:
        return await self.source_repo.list_catalog(include_inactive)

    async def create(self, user_id: uuid.UUID, role: Optional[str], data: LeadSourceCreate) -> LeadSourceOption:
        self._check_manage(role)
        return await self.source_repo.create({**data.model_dump(), "created_by": user_id})

    async def update(
        self,
        role: Optional[str],
        source_id: uuid.UUID,
        data: LeadSourceUpdate
    ) -> LeadSourceOption:
        self._check_manage(role)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("sub_sources") is not None:
            update_data["sub_sources"] = [
                item.strip() for item in update_data["sub_sources"] if item and item.strip()
            ]
        source = await self.source_repo.update(source_id, update_data)
        if not source:
            raise_not_found("Lead source", str(source_id))
        return source

    async def deactivate(self, role: Optional[str], source_id: uuid.UUID) -> LeadSourceOption:
        self._check_manage(role)
        source = await self.source_repo.update(source_id, {"is_active": False})
        if not source:
            raise_not_found("Lead source", str(source_id))
        return source
