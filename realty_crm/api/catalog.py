"""
Project and lead source catalog API routes.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.database import get_session
from realty_crm.services.catalog_service import ProjectService, LeadSourceService
from realty_crm.schemas.project import (
    ProjectCreate, ProjectUpdate, ProjectResponse,
    LeadSourceCreate, LeadSourceUpdate, LeadSourceResponse
)
from realty_crm.api.deps import get_current_user, get_current_role
from realty_crm.models.user import User

projects_router = APIRouter(prefix="/api/projects", tags=["projects"])
sources_router = APIRouter(prefix="/api/sources", tags=["sources"])


@projects_router.get("/", response_model=List[ProjectResponse])
async def list_projects(
    include_inactive: bool = False,
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Projects offered on the lead form."""
    return await ProjectService(session).list(include_inactive)


@projects_router.post("/", response_model=ProjectResponse, status_code=201)
async def create_project(
    data: ProjectCreate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    return await ProjectService(session).create(current_user.id, role, data)


@projects_router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: uuid.UUID,
    data: ProjectUpdate,
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    return await ProjectService(session).update(role, project_id, data)


@projects_router.delete("/{project_id}", response_model=ProjectResponse)
async def deactivate_project(
    project_id: uuid.UUID,
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Deactivate a project. Existing leads are untouched."""
    return await ProjectService(session).deactivate(role, project_id)


@sources_router.get("/", response_model=List[LeadSourceResponse])
async def list_sources(
    include_inactive: bool = False,
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    return await LeadSourceService(session).list(include_inactive)


@sources_router.post("/", response_model=LeadSourceResponse, status_code=201)
async def create_source(
    data: LeadSourceCreate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    return await LeadSourceService(session).create(current_user.id, role, data)


@sources_router.patch("/{source_id}", response_model=LeadSourceResponse)
async def update_source(
    source_id: uuid.UUID,
    data: LeadSourceUpdate,
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    return await LeadSourceService(session).update(role, source_id, data)


@sources_router.delete("/{source_id}", response_model=LeadSourceResponse)
async def deactivate_source(
    source_id: uuid.UUID,
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Deactivate a lead source."""
    return await LeadSourceService(session).deactivate(role, source_id)
