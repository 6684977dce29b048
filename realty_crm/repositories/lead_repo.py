"""
Lead repository with search and reporting queries.
"""
import uuid
from typing import Optional, List
from datetime import datetime

from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from realty_crm.models.lead import Lead, PriorityStatus
from realty_crm.repositories.base import BaseRepository
from realty_crm.schemas.lead import LeadFilter


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Lead, session)

    def _visible_to(self, query, visible_to: Optional[uuid.UUID]):
        # Restricted callers see leads assigned to them or entered by them
        if visible_to:
            query = query.where(
                or_(Lead.assigned_to == visible_to, Lead.created_by == visible_to)
            )
        return query

    async def search(
        self,
        filters: Optional[LeadFilter] = None,
        page: int = 1,
        limit: int = 20,
        visible_to: Optional[uuid.UUID] = None
    ) -> dict:
        """Search leads with filtering, newest first."""
        query = self._visible_to(select(Lead), visible_to)

        if filters:
            if filters.status:
                query = query.where(Lead.status == filters.status)
            if filters.stage:
                query = query.where(Lead.stage == filters.stage)
            if filters.priority_status:
                query = query.where(Lead.priority_status == filters.priority_status)
            if filters.source:
                query = query.where(Lead.source == filters.source)
            if filters.project_name:
                query = query.where(Lead.project_name == filters.project_name)
            if filters.assigned_to:
                query = query.where(Lead.assigned_to == filters.assigned_to)
            if filters.unassigned:
                query = query.where(Lead.assigned_to.is_(None))
            if filters.created_after:
                query = query.where(Lead.created_at >= filters.created_after)
            if filters.created_before:
                query = query.where(Lead.created_at <= filters.created_before)
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        Lead.name.ilike(search_term),
                        Lead.phone.ilike(search_term),
                        Lead.email.ilike(search_term),
                        Lead.lead_code.ilike(search_term),
                        Lead.project_name.ilike(search_term)
                    )
                )

        return await self.paginate(query, page, limit)

    async def bulk_create(self, leads_data: List[dict], commit: bool = True) -> List[Lead]:
        """Create multiple leads at once."""
        return await self.create_many(leads_data, commit=commit)

    async def list_created_between(
        self,
        start: datetime,
        end: datetime,
        assigned_to: Optional[uuid.UUID] = None
    ) -> List[Lead]:
        """Leads whose created_at falls in the inclusive range, oldest first."""
        query = select(Lead).where(
            Lead.created_at >= start,
            Lead.created_at <= end
        )
        if assigned_to:
            query = query.where(Lead.assigned_to == assigned_to)
        query = query.order_by(Lead.created_at)
        result = await self.session.exec(query)
        return result.all()

    async def recent(self, limit: int = 5, visible_to: Optional[uuid.UUID] = None) -> List[Lead]:
        """Most recently created leads."""
        query = self._visible_to(select(Lead), visible_to)
        query = query.order_by(Lead.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return result.all()

    async def get_stats(self, visible_to: Optional[uuid.UUID] = None) -> dict:
        """Lead counters for the dashboard cards."""
        total_query = self._visible_to(select(func.count()).select_from(Lead), visible_to)
        result = await self.session.exec(total_query)
        total = result.one()

        counts_query = self._visible_to(
            select(Lead.priority_status, func.count()).select_from(Lead),
            visible_to
        ).group_by(Lead.priority_status)
        result = await self.session.exec(counts_query)
        by_priority = {key: count for key, count in result.all() if key}

        stats = {"total": total}
        for priority_status in PriorityStatus:
            stats[priority_status.value] = by_priority.get(priority_status.value, 0)
        return stats

    async def count_by_assignee(self) -> dict:
        """Number of leads assigned to each user."""
        query = select(Lead.assigned_to, func.count()).where(
            Lead.assigned_to.is_not(None)
        ).group_by(Lead.assigned_to)
        result = await self.session.exec(query)
        return {assigned_to: count for assigned_to, count in result.all()}
