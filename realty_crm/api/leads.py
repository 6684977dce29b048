"""
Leads API routes.
"""
import uuid
from typing import Optional
from datetime import datetime

from fastapi import APIRouter, Depends, Query, UploadFile, File
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.database import get_session
from realty_crm.core.duration import LeadDuration
from realty_crm.core.exceptions import raise_bad_request
from realty_crm.models.lead import LeadStatus, LeadSourceType, PriorityStatus
from realty_crm.services.lead_service import LeadService
from realty_crm.schemas.lead import (
    LeadCreate, LeadUpdate, LeadResponse, LeadFilter, LeadImportResponse,
    LeadStatusUpdate, PriorityStatusUpdate, LeadAssign, MeetingUpdate,
    AddressUpdate, BudgetUpdate, NoteCreate, LeadActivityResponse,
    LeadDetailResponse, LeadListResponse
)
from realty_crm.api.deps import get_current_user, get_current_role
from realty_crm.models.user import User

router = APIRouter(prefix="/api/leads", tags=["leads"])


@router.post("/", response_model=LeadResponse, status_code=201)
async def create_lead(
    lead_data: LeadCreate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Create a new lead."""
    lead_service = LeadService(session)
    return await lead_service.create(current_user.id, role, lead_data)


@router.get("/", response_model=LeadListResponse)
async def list_leads(
    view: str = Query("recent", pattern="^(distribution|mine|recent)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[LeadStatus] = None,
    stage: Optional[str] = None,
    priority_status: Optional[PriorityStatus] = None,
    source: Optional[LeadSourceType] = None,
    project_name: Optional[str] = None,
    assigned_to: Optional[uuid.UUID] = None,
    unassigned: bool = False,
    created_after: Optional[datetime] = None,
    created_before: Optional[datetime] = None,
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """List leads for one of the list screens, with filtering and pagination."""
    filters = LeadFilter(
        status=status,
        stage=stage,
        priority_status=priority_status,
        source=source,
        project_name=project_name,
        assigned_to=assigned_to,
        unassigned=unassigned,
        created_after=created_after,
        created_before=created_before,
        search=search
    )

    lead_service = LeadService(session)
    return await lead_service.list_view(current_user.id, role, view, filters, page, limit)


@router.post("/import", response_model=LeadImportResponse)
async def import_leads(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Import leads from a CSV file."""
    if not (file.filename or "").lower().endswith(".csv"):
        raise_bad_request("Please upload a CSV file")

    content = await file.read()
    try:
        csv_content = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise_bad_request("CSV file must be UTF-8 encoded")

    lead_service = LeadService(session)
    return await lead_service.import_csv(current_user.id, role, csv_content)


@router.get("/{lead_id}", response_model=LeadDetailResponse)
async def get_lead(
    lead_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Get a lead with its assignee, activity trail and allowed actions."""
    lead_service = LeadService(session)
    return await lead_service.get_detail(current_user.id, role, lead_id)


@router.get("/{lead_id}/duration", response_model=LeadDuration)
async def get_lead_duration(
    lead_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Age badge of a lead, computed now."""
    lead_service = LeadService(session)
    return await lead_service.duration(current_user.id, role, lead_id)


@router.patch("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: uuid.UUID,
    lead_data: LeadUpdate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Update a lead."""
    lead_service = LeadService(session)
    return await lead_service.update(current_user.id, role, lead_id, lead_data)


@router.delete("/{lead_id}", status_code=204)
async def delete_lead(
    lead_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Delete a lead."""
    lead_service = LeadService(session)
    await lead_service.delete(current_user.id, role, lead_id)


@router.put("/{lead_id}/status", response_model=LeadResponse)
async def update_lead_status(
    lead_id: uuid.UUID,
    data: LeadStatusUpdate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    lead_service = LeadService(session)
    return await lead_service.update_status(current_user.id, role, lead_id, data.status)


@router.put("/{lead_id}/priority-status", response_model=LeadResponse)
async def update_lead_priority_status(
    lead_id: uuid.UUID,
    data: PriorityStatusUpdate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    lead_service = LeadService(session)
    return await lead_service.update_priority_status(current_user.id, role, lead_id, data.priority_status)


@router.put("/{lead_id}/assign", response_model=LeadResponse)
async def assign_lead(
    lead_id: uuid.UUID,
    data: LeadAssign,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Transfer a lead to a salesperson."""
    lead_service = LeadService(session)
    return await lead_service.assign(current_user.id, role, lead_id, data.assigned_to)


@router.put("/{lead_id}/meeting", response_model=LeadResponse)
async def update_lead_meeting(
    lead_id: uuid.UUID,
    data: MeetingUpdate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    lead_service = LeadService(session)
    return await lead_service.update_meeting(current_user.id, role, lead_id, data)


@router.put("/{lead_id}/address", response_model=LeadResponse)
async def update_lead_address(
    lead_id: uuid.UUID,
    data: AddressUpdate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    lead_service = LeadService(session)
    return await lead_service.update_address(current_user.id, role, lead_id, data)


@router.put("/{lead_id}/budget", response_model=LeadResponse)
async def update_lead_budget(
    lead_id: uuid.UUID,
    data: BudgetUpdate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    lead_service = LeadService(session)
    return await lead_service.update_budget(current_user.id, role, lead_id, data)


@router.post("/{lead_id}/notes", response_model=LeadActivityResponse, status_code=201)
async def add_lead_note(
    lead_id: uuid.UUID,
    data: NoteCreate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Add a note to the lead's activity trail."""
    lead_service = LeadService(session)
    return await lead_service.add_note(current_user.id, role, lead_id, data.notes)
