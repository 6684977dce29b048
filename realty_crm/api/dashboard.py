"""
Dashboard API routes.
"""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.database import get_session
from realty_crm.services.lead_service import LeadService
from realty_crm.schemas.lead import LeadResponse, LeadStatsResponse
from realty_crm.api.deps import get_current_user, get_current_role
from realty_crm.models.user import User

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=LeadStatsResponse)
async def get_dashboard_stats(
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Lead totals per priority status over the leads the caller can see."""
    lead_service = LeadService(session)
    return await lead_service.get_stats(current_user.id, role)


@router.get("/recent-leads", response_model=List[LeadResponse])
async def get_recent_leads(
    limit: int = Query(5, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Most recently created leads."""
    lead_service = LeadService(session)
    return await lead_service.recent(current_user.id, role, limit)
