"""
Project and lead-source catalog repositories.
"""
from typing import Dict, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.models.project import Project, LeadSourceOption
from realty_crm.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Project, session)

    async def list_catalog(self, include_inactive: bool = False) -> List[Project]:
        """Projects ordered by name."""
        filters = None if include_inactive else {"is_active": True}
        return await self.list(filters, order_by="name", order_desc=False)

    async def catalog_by_name(self) -> Dict[str, Project]:
        """Every project keyed by name, active or not; the first row wins."""
        result = await self.session.exec(select(Project).order_by(Project.created_at))
        catalog = {}
        for project in result.all():
            catalog.setdefault(project.name, project)
        return catalog


class LeadSourceRepository(BaseRepository[LeadSourceOption]):
    """Repository for lead source catalog entries."""

    def __init__(self, session: AsyncSession):
        super().__init__(LeadSourceOption, session)

    async def list_catalog(self, include_inactive: bool = False) -> List[LeadSourceOption]:
        filters = None if include_inactive else {"is_active": True}
        return await self.list(filters, order_by="source_name", order_desc=False)
