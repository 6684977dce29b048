"""
Lead activity repository. Entries are only ever appended.
"""
import uuid
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.models.lead import LeadActivity
from realty_crm.repositories.base import BaseRepository


class LeadActivityRepository(BaseRepository[LeadActivity]):
    """Repository for LeadActivity operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(LeadActivity, session)

    async def log(
        self,
        lead_id: uuid.UUID,
        user_id: uuid.UUID,
        activity_type: str,
        notes: Optional[str] = None,
        commit: bool = True
    ) -> LeadActivity:
        """Append an activity entry."""
        activity = LeadActivity(
            lead_id=lead_id,
            user_id=user_id,
            activity_type=activity_type,
            notes=notes
        )
        self.session.add(activity)
        await self._save(commit)
        await self.session.refresh(activity)
        return activity

    async def get_for_lead(self, lead_id: uuid.UUID, limit: int = 100) -> List[LeadActivity]:
        """Activity for one lead, newest first."""
        query = select(LeadActivity).where(
            LeadActivity.lead_id == lead_id
        ).order_by(LeadActivity.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return result.all()

    async def purge_for_lead(self, lead_id: uuid.UUID, commit: bool = True) -> int:
        """Remove the trail of a lead that is being deleted."""
        return await self.delete_where({"lead_id": lead_id}, commit=commit)
