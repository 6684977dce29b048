"""
Report API routes.
"""
from fastapi import APIRouter, Depends, Path, Query, Response
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.database import get_session
from realty_crm.core.permissions import Capabilities
from realty_crm.services.report_service import ReportService
from realty_crm.schemas.report import MonthlyReportResponse
from realty_crm.api.deps import get_current_user, require_capability
from realty_crm.models.user import User

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/monthly", response_model=MonthlyReportResponse)
async def get_monthly_report(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    current_user: User = Depends(get_current_user),
    role: str = Depends(require_capability(Capabilities.VIEW_REPORTS)),
    session: AsyncSession = Depends(get_session)
):
    """Project, source and salesperson pivots for one month."""
    report_service = ReportService(session)
    return await report_service.monthly_report(year, month, current_user.id, role)


@router.get("/monthly/{pivot}/export")
async def export_monthly_report(
    pivot: str = Path(..., pattern="^(project|source|salesperson)$"),
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    current_user: User = Depends(get_current_user),
    role: str = Depends(require_capability(Capabilities.VIEW_REPORTS)),
    session: AsyncSession = Depends(get_session)
):
    """Download one pivot as CSV."""
    report_service = ReportService(session)
    filename, csv_content = await report_service.export(pivot, year, month, current_user.id, role)

    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )
