"""
Lead schemas.
"""
import uuid
from typing import Optional, List
from datetime import date, datetime
from pydantic import BaseModel, EmailStr, field_validator

from realty_crm.core.duration import LeadDuration
from realty_crm.models.lead import LeadStatus, LeadSourceType, PriorityStatus


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class LeadFields(BaseModel):
    """Optional descriptive fields shared by create and update payloads."""
    email: Optional[EmailStr] = None
    client_name_2: Optional[str] = None
    client_phone_2: Optional[str] = None
    project_name: Optional[str] = None
    location: Optional[str] = None
    property_type: Optional[str] = None
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    notes: Optional[str] = None
    priority: Optional[str] = None
    lead_sales_type: Optional[str] = None
    sub_source: Optional[str] = None
    customer_occupation: Optional[str] = None
    customer_organization: Optional[str] = None
    customer_designation: Optional[str] = None
    customer_address_details: Optional[str] = None
    customer_additional_data: Optional[str] = None
    meeting_type: Optional[str] = None
    meeting_date: Optional[date] = None
    meeting_time: Optional[str] = None
    meeting_notes: Optional[str] = None

    @field_validator("email", "meeting_date", mode="before")
    @classmethod
    def empty_string_is_none(cls, value):
        return _blank_to_none(value)


class LeadCreate(LeadFields):
    """Create a new lead."""
    name: str
    phone: str
    status: LeadStatus = LeadStatus.NEW
    stage: Optional[str] = None
    priority_status: Optional[PriorityStatus] = None
    source: LeadSourceType = LeadSourceType.OTHER
    assigned_to: Optional[uuid.UUID] = None

    @field_validator("name", "phone")
    @classmethod
    def required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("priority_status", mode="before")
    @classmethod
    def empty_priority_is_none(cls, value):
        return _blank_to_none(value)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "John Doe",
                "phone": "01712345678",
                "email": "john@example.com",
                "project_name": "Lake View Residence",
                "source": "website",
                "budget_min": 100000,
                "budget_max": 500000
            }
        }


class LeadUpdate(LeadFields):
    """Full-record edit. Ownership and pipeline fields have their own endpoints."""
    name: Optional[str] = None
    phone: Optional[str] = None
    stage: Optional[str] = None
    source: Optional[LeadSourceType] = None

    @field_validator("name", "phone")
    @classmethod
    def not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            value = value.strip()
            if not value:
                raise ValueError("must not be empty")
        return value


class LeadStatusUpdate(BaseModel):
    status: LeadStatus


class PriorityStatusUpdate(BaseModel):
    priority_status: PriorityStatus


class LeadAssign(BaseModel):
    assigned_to: uuid.UUID


class MeetingUpdate(BaseModel):
    meeting_type: Optional[str] = None
    meeting_date: Optional[date] = None
    meeting_time: Optional[str] = None
    meeting_notes: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def empty_string_is_none(cls, value):
        return _blank_to_none(value)


class AddressUpdate(BaseModel):
    customer_address_details: Optional[str] = None
    customer_additional_data: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def empty_string_is_none(cls, value):
        return _blank_to_none(value)


class BudgetUpdate(BaseModel):
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None

    @field_validator("*", mode="before")
    @classmethod
    def empty_string_is_none(cls, value):
        return _blank_to_none(value)


class NoteCreate(BaseModel):
    notes: str

    @field_validator("notes")
    @classmethod
    def required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class LeadResponse(BaseModel):
    """Lead response."""
    id: uuid.UUID
    lead_code: Optional[str] = None
    status: str
    stage: Optional[str] = None
    priority_status: Optional[str] = None
    priority: Optional[str] = None
    lead_sales_type: Optional[str] = None
    source: str
    sub_source: Optional[str] = None
    created_by: uuid.UUID
    assigned_to: Optional[uuid.UUID] = None
    name: str
    phone: str
    email: Optional[str] = None
    client_name_2: Optional[str] = None
    client_phone_2: Optional[str] = None
    project_name: Optional[str] = None
    location: Optional[str] = None
    property_type: Optional[str] = None
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    notes: Optional[str] = None
    customer_occupation: Optional[str] = None
    customer_organization: Optional[str] = None
    customer_designation: Optional[str] = None
    customer_address_details: Optional[str] = None
    customer_additional_data: Optional[str] = None
    meeting_type: Optional[str] = None
    meeting_date: Optional[date] = None
    meeting_time: Optional[str] = None
    meeting_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LeadActivityResponse(BaseModel):
    id: uuid.UUID
    lead_id: uuid.UUID
    user_id: uuid.UUID
    user_name: Optional[str] = None
    activity_type: str
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AssigneeSummary(BaseModel):
    id: uuid.UUID
    full_name: str
    email: str
    avatar_url: Optional[str] = None


class LeadCapabilities(BaseModel):
    can_edit: bool
    can_delete: bool
    can_assign: bool
    can_update_status: bool
    can_edit_working_fields: bool


class LeadDetailResponse(BaseModel):
    """Lead with everything the detail page shows."""
    lead: LeadResponse
    assignee: Optional[AssigneeSummary] = None
    activities: List[LeadActivityResponse]
    duration: LeadDuration
    capabilities: LeadCapabilities


class LeadFilter(BaseModel):
    """Lead filtering options."""
    status: Optional[LeadStatus] = None
    stage: Optional[str] = None
    priority_status: Optional[PriorityStatus] = None
    source: Optional[LeadSourceType] = None
    project_name: Optional[str] = None
    assigned_to: Optional[uuid.UUID] = None
    unassigned: bool = False
    search: Optional[str] = None  # Search in name, phone, email, code, project
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None


class LeadImportResponse(BaseModel):
    """CSV import result. Skipped rows are not itemised."""
    imported: int
    message: str


class LeadViewConfig(BaseModel):
    """Which optional columns and actions a lead list screen renders."""
    name: str
    show_duration_column: bool = False
    show_stage_column: bool = False
    allow_transfer_dialog: bool = False


LEAD_VIEW_PRESETS = {
    "distribution": LeadViewConfig(
        name="distribution",
        show_duration_column=True,
        show_stage_column=True,
        allow_transfer_dialog=True
    ),
    "mine": LeadViewConfig(
        name="mine",
        show_duration_column=True,
        show_stage_column=True
    ),
    "recent": LeadViewConfig(name="recent"),
}


class LeadListRow(BaseModel):
    lead: LeadResponse
    assignee: Optional[AssigneeSummary] = None
    duration: Optional[LeadDuration] = None
    capabilities: LeadCapabilities
    can_transfer: bool = False


class LeadListResponse(BaseModel):
    """One page of a lead list screen."""
    view: LeadViewConfig
    items: List[LeadListRow]
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool
    has_prev: bool
    refresh_interval_seconds: int


class LeadStatsResponse(BaseModel):
    total: int
    priority: int = 0
    top_priority: int = 0
    junk: int = 0
    hold: int = 0
    sold: int = 0
