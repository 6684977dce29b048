"""
Report schemas.
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel


class ReportCounters(BaseModel):
    mql: int = 0
    sgl: int = 0
    total: int = 0
    priority: int = 0
    top_priority: int = 0
    junk: int = 0
    hold: int = 0
    sold: int = 0


class ProjectReportRow(ReportCounters):
    project_name: str
    area: str
    category: str


class SourceReportRow(ReportCounters):
    source_type: str


class SalesPersonReportRow(ReportCounters):
    sales_person: str
    designation: str


class MonthlyReportResponse(BaseModel):
    year: int
    month: int
    start_date: datetime
    end_date: datetime
    lead_count: int
    by_project: List[ProjectReportRow]
    by_source: List[SourceReportRow]
    by_salesperson: List[SalesPersonReportRow]
    scope: Optional[str] = None  # "all" or "assigned"
