"""
Report service - monthly lead pivots and their CSV export.

The aggregation functions are pure: they take an already filtered lead list
and return fresh rows on every call, in first-seen bucket order.
"""
import calendar
import csv
import io
import logging
import uuid
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.core.exceptions import raise_validation_error
from realty_crm.core.permissions import Capabilities, can_perform, SALESMAN_STAGE, MARKETING_STAGE
from realty_crm.models.lead import PriorityStatus
from realty_crm.repositories.lead_repo import LeadRepository
from realty_crm.repositories.project_repo import ProjectRepository
from realty_crm.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

COUNTER_FIELDS = ("mql", "sgl", "total", "priority", "top_priority", "junk", "hold", "sold")
PRIORITY_COUNTERS = tuple(status.value for status in PriorityStatus)

NO_PROJECT = "No Project"
UNKNOWN_SOURCE = "unknown"
UNKNOWN_SALES_PERSON = "Unknown"
NOT_AVAILABLE = "N/A"
SALES_PERSON_DESIGNATION = "Sales Person"

SEQUENCE_LABEL = "SL No"
PROJECT_EXPORT_HEADERS = [
    "SL No", "Project Name", "Area", "Category", "MQL", "SGL", "Total",
    "Priority", "Top Priority", "Junk", "Hold", "Sold",
]
SOURCE_EXPORT_HEADERS = [
    "SL No", "Source Type", "MQL", "SGL", "Total",
    "Priority", "Top Priority", "Junk", "Hold", "Sold",
]
SALES_PERSON_EXPORT_HEADERS = [
    "SL No", "Sales Person", "Designation", "MQL", "SGL", "Total",
    "Priority", "Top Priority", "Junk", "Hold", "Sold",
]

PIVOTS = ("project", "source", "salesperson")
EXPORT_HEADERS = {
    "project": PROJECT_EXPORT_HEADERS,
    "source": SOURCE_EXPORT_HEADERS,
    "salesperson": SALES_PERSON_EXPORT_HEADERS,
}
EXPORT_FILENAMES = {
    "project": "project_wise_report",
    "source": "source_wise_report",
    "salesperson": "sales_person_wise_report",
}


def _field(item: Any, name: str) -> Any:
    if item is None:
        return None
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def month_range(year: int, month: int) -> Tuple[datetime, datetime]:
    """First and last instant of a calendar month, both inclusive."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime.combine(date(year, month, last_day), time.max)
    return start, end


def empty_counters() -> Dict[str, int]:
    return {field: 0 for field in COUNTER_FIELDS}


def count_lead(bucket: Dict[str, Any], lead: Any) -> None:
    """Add one lead to a bucket's counters."""
    bucket["total"] += 1

    stage = _field(lead, "stage")
    if stage == MARKETING_STAGE:
        bucket["mql"] += 1
    elif stage == SALESMAN_STAGE:
        bucket["sgl"] += 1

    priority_status = _field(lead, "priority_status")
    if priority_status in PRIORITY_COUNTERS:
        bucket[priority_status] += 1


def aggregate_by_project(
    leads: Iterable[Any],
    catalog: Optional[Mapping[str, Any]] = None
) -> List[Dict[str, Any]]:
    """
    Group leads by project name.

    Area and category come from the first lead of each bucket, falling back to
    the catalog entry with the same name, then to "N/A".
    """
    catalog = catalog or {}
    buckets: Dict[str, Dict[str, Any]] = {}

    for lead in leads:
        project_name = _field(lead, "project_name") or NO_PROJECT
        bucket = buckets.get(project_name)
        if bucket is None:
            project = catalog.get(project_name)
            bucket = {
                "project_name": project_name,
                "area": _field(lead, "location") or _field(project, "area") or NOT_AVAILABLE,
                "category": _field(lead, "property_type") or _field(project, "category") or NOT_AVAILABLE,
                **empty_counters(),
            }
            buckets[project_name] = bucket
        count_lead(bucket, lead)

    return list(buckets.values())


def aggregate_by_source(leads: Iterable[Any]) -> List[Dict[str, Any]]:
    """Group leads by source."""
    buckets: Dict[str, Dict[str, Any]] = {}

    for lead in leads:
        source = _field(lead, "source") or UNKNOWN_SOURCE
        if hasattr(source, "value"):
            source = source.value
        bucket = buckets.get(source)
        if bucket is None:
            bucket = {"source_type": source, **empty_counters()}
            buckets[source] = bucket
        count_lead(bucket, lead)

    return list(buckets.values())


def aggregate_by_salesperson(
    leads: Iterable[Any],
    names: Mapping[Any, str]
) -> List[Dict[str, Any]]:
    """
    Group assigned leads by the assignee's display name.
    Unassigned leads are left out entirely.
    """
    buckets: Dict[str, Dict[str, Any]] = {}

    for lead in leads:
        assigned_to = _field(lead, "assigned_to")
        if not assigned_to:
            continue
        sales_person = names.get(assigned_to) or UNKNOWN_SALES_PERSON
        bucket = buckets.get(sales_person)
        if bucket is None:
            bucket = {
                "sales_person": sales_person,
                "designation": SALES_PERSON_DESIGNATION,
                **empty_counters(),
            }
            buckets[sales_person] = bucket
        count_lead(bucket, lead)

    return list(buckets.values())


def header_key(label: str) -> str:
    """'Top Priority' -> 'top_priority'"""
    return label.strip().lower().replace(" ", "_")


def export_report_csv(rows: List[Mapping[str, Any]], headers: List[str]) -> str:
    """
    Flatten pivot rows into CSV.

    The header list decides which fields appear and in what order. An "SL No"
    column gets the 1-based row number; missing or empty values become 0.
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(headers)

    sequence_key = header_key(SEQUENCE_LABEL)
    for index, row in enumerate(rows, start=1):
        line = []
        for label in headers:
            key = header_key(label)
            if key == sequence_key:
                line.append(index)
                continue
            value = row.get(key)
            line.append(value if value not in (None, "") else 0)
        writer.writerow(line)

    return output.getvalue()


def read_report_csv(text: str) -> List[Dict[str, Any]]:
    """Parse an exported report back into rows keyed by normalized header."""
    reader = csv.reader(io.StringIO(text))
    try:
        headers = [header_key(label) for label in next(reader)]
    except StopIteration:
        return []

    rows = []
    for values in reader:
        if not values:
            continue
        row = {}
        for key, value in zip(headers, values):
            if key in COUNTER_FIELDS or key == header_key(SEQUENCE_LABEL):
                row[key] = int(value)
            else:
                row[key] = value
        rows.append(row)
    return rows


class ReportService:
    """Service for monthly lead reports."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.lead_repo = LeadRepository(session)
        self.project_repo = ProjectRepository(session)
        self.user_repo = UserRepository(session)

    async def monthly_report(
        self,
        year: int,
        month: int,
        user_id: uuid.UUID,
        role: str
    ) -> dict:
        """Build all three pivots for one month."""
        try:
            start, end = month_range(year, month)
        except ValueError as e:
            raise_validation_error(str(e), "month")

        # Callers who cannot see every lead only report on their own assignments
        scope = "all"
        assigned_to = None
        if not can_perform(role, Capabilities.VIEW_ALL_LEADS, user_id):
            scope = "assigned"
            assigned_to = user_id

        leads = await self.lead_repo.list_created_between(start, end, assigned_to)
        catalog = await self.project_repo.catalog_by_name()
        names = await self.user_repo.get_names(lead.assigned_to for lead in leads)

        logger.info(f"Report {year}-{month:02d} ({scope}) over {len(leads)} leads for user {user_id}")

        return {
            "year": year,
            "month": month,
            "start_date": start,
            "end_date": end,
            "lead_count": len(leads),
            "by_project": aggregate_by_project(leads, catalog),
            "by_source": aggregate_by_source(leads),
            "by_salesperson": aggregate_by_salesperson(leads, names),
            "scope": scope,
        }

    async def export(
        self,
        pivot: str,
        year: int,
        month: int,
        user_id: uuid.UUID,
        role: str
    ) -> Tuple[str, str]:
        """Return ``(filename, csv_text)`` for one pivot."""
        if pivot not in PIVOTS:
            raise_validation_error(f"Unknown report '{pivot}'", "pivot")

        report = await self.monthly_report(year, month, user_id, role)
        rows = {
            "project": report["by_project"],
            "source": report["by_source"],
            "salesperson": report["by_salesperson"],
        }[pivot]

        filename = f"{EXPORT_FILENAMES[pivot]}_{year}_{month}.csv"
        return filename, export_report_csv(rows, EXPORT_HEADERS[pivot])
