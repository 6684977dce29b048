"""
Lead model - the central pipeline entity - and its append-only activity trail.
"""
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CONVERTED = "converted"
    LOST = "lost"


class LeadSourceType(str, Enum):
    WEBSITE = "website"
    REFERRAL = "referral"
    SOCIAL_MEDIA = "social_media"
    PHONE_CALL = "phone_call"
    WALK_IN = "walk_in"
    OTHER = "other"


class PriorityStatus(str, Enum):
    PRIORITY = "priority"
    TOP_PRIORITY = "top_priority"
    JUNK = "junk"
    HOLD = "hold"
    SOLD = "sold"


class Lead(SQLModel, table=True):
    """
    Lead entity - a prospective property buyer tracked through the pipeline.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    lead_code: Optional[str] = Field(default=None, unique=True, index=True)

    # Classification
    status: str = Field(default=LeadStatus.NEW.value, index=True)
    stage: Optional[str] = Field(default="MQL", index=True)  # MQL, SGL
    priority_status: Optional[str] = Field(default=None, index=True)
    priority: Optional[str] = None
    lead_sales_type: Optional[str] = None
    source: str = Field(default=LeadSourceType.OTHER.value, index=True)
    sub_source: Optional[str] = None

    # Ownership
    created_by: uuid.UUID = Field(foreign_key="user.id", index=True)
    assigned_to: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id", index=True)

    # Contact
    name: str = Field(index=True)
    phone: str = Field(index=True)
    email: Optional[str] = Field(default=None, index=True)
    client_name_2: Optional[str] = None
    client_phone_2: Optional[str] = None

    # Property interest
    project_name: Optional[str] = Field(default=None, index=True)
    location: Optional[str] = None
    property_type: Optional[str] = None
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    notes: Optional[str] = None

    # Customer details
    customer_occupation: Optional[str] = None
    customer_organization: Optional[str] = None
    customer_designation: Optional[str] = None
    customer_address_details: Optional[str] = None
    customer_additional_data: Optional[str] = None

    # Meeting
    meeting_type: Optional[str] = None
    meeting_date: Optional[date] = None
    meeting_time: Optional[str] = None  # HH:MM
    meeting_notes: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class LeadActivity(SQLModel, table=True):
    """
    Audit entry written for every mutating action on a lead.
    Rows are never updated.
    """
    __tablename__ = "lead_activity"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    lead_id: uuid.UUID = Field(foreign_key="lead.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)

    activity_type: str = Field(index=True)
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)


# Activity type constants for consistency
class ActivityTypes:
    CREATED = "Created"
    UPDATED = "Lead Updated"
    STATUS_UPDATE = "Status Update"
    PRIORITY_UPDATE = "Priority Update"
    ASSIGNMENT = "Assignment"
    NOTE = "Note"
    MEETING_UPDATED = "Meeting Updated"
    ADDRESS_UPDATED = "Address Updated"
    BUDGET_UPDATED = "Budget Updated"
