"""
Bulk lead import from comma-separated text.

The format is deliberately simple: first non-blank line is the header, every
other non-blank line is split on bare commas. Quoted fields are NOT supported,
so a value containing a comma shifts every later column of its row.
"""
import logging
import uuid
from typing import Any, Dict, Iterator, List, Optional

from realty_crm.core.exceptions import ValidationError
from realty_crm.core.permissions import Roles, SALESMAN_STAGE, MARKETING_STAGE
from realty_crm.models.lead import LeadSourceType, LeadStatus

logger = logging.getLogger(__name__)

# Normalized header token -> lead field
HEADER_SYNONYMS: Dict[str, str] = {
    "name": "name",
    "customer name": "name",
    "phone": "phone",
    "mobile": "phone",
    "customer mobile": "phone",
    "email": "email",
    "customer email": "email",
    "project": "project_name",
    "project name": "project_name",
    "source": "source",
    "notes": "notes",
    "remarks": "notes",
    "location": "location",
    "area": "location",
}

VALID_SOURCES = {source.value for source in LeadSourceType}

NO_VALID_ROWS_MESSAGE = "No valid leads found in the file. Ensure CSV has 'name' and 'phone' columns."


def normalize_header(token: str) -> str:
    return token.strip().lower()


def normalize_source(value: Optional[str]) -> str:
    """Map a free-text source cell onto the source enum, defaulting to other."""
    if not value:
        return LeadSourceType.OTHER.value
    candidate = value.strip().lower().replace(" ", "_")
    if candidate in VALID_SOURCES:
        return candidate
    return LeadSourceType.OTHER.value


def placeholder_email(row_index: int) -> str:
    return f"lead{row_index}@placeholder.com"


def ownership_defaults(importer_id: uuid.UUID, importer_role: Optional[str]) -> dict:
    """Stage and assignment given to leads entered by ``importer_role``."""
    if importer_role == Roles.SALESMAN:
        return {"created_by": importer_id, "assigned_to": importer_id, "stage": SALESMAN_STAGE}
    return {"created_by": importer_id, "assigned_to": None, "stage": MARKETING_STAGE}


def _split_lines(text: str) -> List[str]:
    return [line for line in text.splitlines() if line.strip()]


def parse_rows(text: str) -> Iterator[Dict[str, Any]]:
    """
    Yield one ``{field: value}`` mapping per data row, before validation.

    Columns whose header is not in HEADER_SYNONYMS are ignored. The yielded
    mapping also carries ``_row`` with the 1-based data row index.
    """
    lines = _split_lines(text)
    if not lines:
        return

    columns = [HEADER_SYNONYMS.get(normalize_header(token)) for token in lines[0].split(",")]

    for row_index, line in enumerate(lines[1:], start=1):
        values = [value.strip() for value in line.split(",")]
        row: Dict[str, Any] = {"_row": row_index}
        for position, field in enumerate(columns):
            if field is None:
                continue
            row[field] = values[position] if position < len(values) else ""
        yield row


def iter_import_records(
    text: str,
    importer_id: uuid.UUID,
    importer_role: Optional[str]
) -> Iterator[dict]:
    """
    Lazily turn CSV text into lead-creation records.

    Rows without both a name and a phone are skipped silently.
    """
    defaults = ownership_defaults(importer_id, importer_role)

    for row in parse_rows(text):
        name = row.get("name") or ""
        phone = row.get("phone") or ""
        if not name or not phone:
            continue

        yield {
            **defaults,
            "name": name,
            "phone": phone,
            "email": row.get("email") or placeholder_email(row["_row"]),
            "project_name": row.get("project_name") or None,
            "source": normalize_source(row.get("source")),
            "notes": row.get("notes") or None,
            "location": row.get("location") or None,
            "status": LeadStatus.NEW.value,
        }


def build_import_records(
    text: str,
    importer_id: uuid.UUID,
    importer_role: Optional[str]
) -> List[dict]:
    """
    Materialize every valid record.

    Raises:
        ValidationError: when the text holds no valid row at all
    """
    records = list(iter_import_records(text, importer_id, importer_role))
    if not records:
        raise ValidationError(NO_VALID_ROWS_MESSAGE)

    logger.info(f"Parsed {len(records)} importable leads for user {importer_id}")
    return records
