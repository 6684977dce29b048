"""
Lead service - lead lifecycle, role checks and the activity trail.
"""
import uuid
import logging
from typing import Optional, List
from datetime import datetime

from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.config import settings
from realty_crm.core.duration import lead_duration
from realty_crm.core.exceptions import (
    ValidationError, raise_not_found, raise_forbidden, raise_validation_error
)
from realty_crm.core.permissions import (
    Capabilities, Roles, can_perform, lead_capabilities, SALESMAN_STAGE, MARKETING_STAGE
)
from realty_crm.models.lead import Lead, ActivityTypes
from realty_crm.repositories.lead_repo import LeadRepository
from realty_crm.repositories.activity_repo import LeadActivityRepository
from realty_crm.repositories.user_repo import UserRepository, UserRoleRepository
from realty_crm.schemas.lead import (
    LeadCreate, LeadUpdate, LeadFilter, LeadImportResponse,
    MeetingUpdate, AddressUpdate, BudgetUpdate, LEAD_VIEW_PRESETS
)
from realty_crm.services.lead_import import build_import_records
from realty_crm.services.notification_service import NotificationService
from realty_crm.services.realtime import EventTypes, get_broker

logger = logging.getLogger(__name__)

LEAD_TABLE = "lead"


def generate_lead_code(now: Optional[datetime] = None) -> str:
    """Human-readable lead reference, e.g. LD-2410-9F3A1C."""
    now = now or datetime.utcnow()
    return f"LD-{now:%y%m}-{uuid.uuid4().hex[:6].upper()}"


def assignee_summary(user) -> Optional[dict]:
    if not user:
        return None
    return {
        "id": user.id,
        "full_name": user.full_name,
        "email": user.email,
        "avatar_url": user.avatar_url,
    }


class LeadService:
    """Service for lead operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.lead_repo = LeadRepository(session)
        self.activity_repo = LeadActivityRepository(session)
        self.user_repo = UserRepository(session)
        self.role_repo = UserRoleRepository(session)
        self.notification_service = NotificationService(session)
        self.broker = get_broker()

    def _publish(self, event_type: str, lead: Lead) -> None:
        self.broker.publish(LEAD_TABLE, event_type, lead.model_dump(mode="json"))

    def _visibility(self, user_id: uuid.UUID, role: Optional[str]) -> Optional[uuid.UUID]:
        # None means unrestricted
        if can_perform(role, Capabilities.VIEW_ALL_LEADS, user_id):
            return None
        return user_id

    def _is_visible(self, lead: Lead, user_id: uuid.UUID, role: Optional[str]) -> bool:
        restricted_to = self._visibility(user_id, role)
        return restricted_to is None or restricted_to in (lead.assigned_to, lead.created_by)

    def _require(
        self,
        role: Optional[str],
        capability: str,
        user_id: uuid.UUID,
        lead: Optional[Lead] = None,
        message: str = "You don't have permission to perform this action"
    ) -> None:
        if not can_perform(role, capability, user_id, lead):
            raise_forbidden(message)

    async def _get_visible(self, lead_id: uuid.UUID, user_id: uuid.UUID, role: Optional[str]) -> Lead:
        lead = await self.lead_repo.get(lead_id)
        if not lead or not self._is_visible(lead, user_id, role):
            raise_not_found("Lead", str(lead_id))
        return lead

    async def _check_assignee(self, assignee_id: uuid.UUID) -> None:
        assignee = await self.user_repo.get(assignee_id)
        if not assignee:
            raise_not_found("User", str(assignee_id))

    async def create(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        lead_data: LeadCreate
    ) -> Lead:
        """Create a new lead. Salesman leads are self-assigned SGL leads."""
        self._require(role, Capabilities.CREATE_LEAD, user_id)

        data = lead_data.model_dump()
        data["created_by"] = user_id
        data["lead_code"] = generate_lead_code()

        if role == Roles.SALESMAN:
            data["assigned_to"] = user_id
            data["stage"] = SALESMAN_STAGE
        else:
            data["stage"] = data.get("stage") or MARKETING_STAGE
            if data.get("assigned_to"):
                self._require(role, Capabilities.ASSIGN_LEAD, user_id)
                await self._check_assignee(data["assigned_to"])

        lead = await self.lead_repo.create(data, commit=False)
        await self.activity_repo.log(
            lead_id=lead.id,
            user_id=user_id,
            activity_type=ActivityTypes.CREATED,
            notes=f"Lead '{lead.name}' created",
            commit=False
        )
        await self.session.commit()

        self._publish(EventTypes.INSERT, lead)

        if lead.assigned_to and lead.assigned_to != user_id:
            await self.notification_service.notify_lead_assignment(lead, lead.assigned_to)

        return lead

    async def get(self, user_id: uuid.UUID, role: Optional[str], lead_id: uuid.UUID) -> Lead:
        """Get a lead by ID."""
        return await self._get_visible(lead_id, user_id, role)

    async def get_detail(self, user_id: uuid.UUID, role: Optional[str], lead_id: uuid.UUID) -> dict:
        """Lead with assignee, activity trail, age badge and per-lead actions."""
        lead = await self._get_visible(lead_id, user_id, role)

        activities = await self.activity_repo.get_for_lead(lead_id)
        names = await self.user_repo.get_names(
            [activity.user_id for activity in activities] + [lead.assigned_to]
        )
        assignee = await self.user_repo.get(lead.assigned_to) if lead.assigned_to else None

        return {
            "lead": lead,
            "assignee": assignee_summary(assignee),
            "activities": [
                {**activity.model_dump(), "user_name": names.get(activity.user_id)}
                for activity in activities
            ],
            "duration": lead_duration(lead.created_at),
            "capabilities": lead_capabilities(role, user_id, lead),
        }

    async def duration(self, user_id: uuid.UUID, role: Optional[str], lead_id: uuid.UUID):
        lead = await self._get_visible(lead_id, user_id, role)
        return lead_duration(lead.created_at)

    async def list(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        filters: Optional[LeadFilter] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """List leads with filtering and pagination."""
        return await self.lead_repo.search(filters, page, limit, self._visibility(user_id, role))

    async def list_view(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        view: str = "recent",
        filters: Optional[LeadFilter] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """
        One page of a lead list screen.

        ``mine`` narrows to leads assigned to the caller; the other presets
        show everything the caller may see. Optional columns are filled only
        when the preset renders them.
        """
        config = LEAD_VIEW_PRESETS.get(view)
        if config is None:
            raise_validation_error(f"Unknown lead view '{view}'", "view")

        filters = filters or LeadFilter()
        if view == "mine":
            filters = filters.model_copy(update={"assigned_to": user_id, "unassigned": False})

        result = await self.list(user_id, role, filters, page, limit)
        leads = result["items"]

        assignees = {
            user.id: user
            for user in await self.user_repo.get_many(lead.assigned_to for lead in leads)
        }
        now = datetime.utcnow()

        rows = []
        for lead in leads:
            capabilities = lead_capabilities(role, user_id, lead)
            rows.append({
                "lead": lead,
                "assignee": assignee_summary(assignees.get(lead.assigned_to)),
                "duration": lead_duration(lead.created_at, now) if config.show_duration_column else None,
                "capabilities": capabilities,
                "can_transfer": config.allow_transfer_dialog and capabilities["can_assign"],
            })

        return {
            **result,
            "items": rows,
            "view": config,
            "refresh_interval_seconds": settings.DURATION_REFRESH_SECONDS,
        }

    async def update(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        lead_id: uuid.UUID,
        lead_data: LeadUpdate
    ) -> Lead:
        """Full-record edit."""
        lead = await self._get_visible(lead_id, user_id, role)
        self._require(role, Capabilities.EDIT_LEAD, user_id, lead, "You can only edit SGL leads you created")

        update_data = lead_data.model_dump(exclude_unset=True)
        for required in ("name", "phone", "source"):
            if required in update_data and update_data[required] is None:
                del update_data[required]
        if role == Roles.SALESMAN:
            # Salesmen cannot move a lead out of their own stage
            update_data.pop("stage", None)

        updated_lead = await self.lead_repo.update(lead_id, update_data, skip_none=False, commit=False)
        await self.activity_repo.log(
            lead_id=lead_id,
            user_id=user_id,
            activity_type=ActivityTypes.UPDATED,
            notes=f"Updated fields: {', '.join(sorted(update_data)) or 'none'}",
            commit=False
        )
        await self.session.commit()
        self._publish(EventTypes.UPDATE, updated_lead)
        return updated_lead

    async def delete(self, user_id: uuid.UUID, role: Optional[str], lead_id: uuid.UUID) -> bool:
        """Delete a lead together with its activity trail."""
        lead = await self._get_visible(lead_id, user_id, role)
        self._require(role, Capabilities.DELETE_LEAD, user_id, lead, "You can only delete SGL leads you created")

        record = lead.model_dump(mode="json")
        purged = await self.activity_repo.purge_for_lead(lead_id, commit=False)
        success = await self.lead_repo.delete(lead_id, commit=False)
        await self.session.commit()

        if success:
            logger.info(f"Lead {lead.lead_code} deleted by {user_id} ({purged} activities removed)")
            self.broker.publish(LEAD_TABLE, EventTypes.DELETE, record)

        return success

    async def _apply_change(
        self,
        lead: Lead,
        user_id: uuid.UUID,
        patch: dict,
        activity_type: str,
        notes: str
    ) -> Lead:
        updated_lead = await self.lead_repo.update(lead.id, patch, skip_none=False, commit=False)
        await self.activity_repo.log(
            lead_id=lead.id,
            user_id=user_id,
            activity_type=activity_type,
            notes=notes,
            commit=False
        )
        await self.session.commit()
        self._publish(EventTypes.UPDATE, updated_lead)
        return updated_lead

    async def update_status(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        lead_id: uuid.UUID,
        status: str
    ) -> Lead:
        lead = await self._get_visible(lead_id, user_id, role)
        self._require(role, Capabilities.UPDATE_STATUS, user_id, lead)

        status = getattr(status, "value", status)
        return await self._apply_change(
            lead, user_id, {"status": status},
            ActivityTypes.STATUS_UPDATE, f"Status changed to {status}"
        )

    async def update_priority_status(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        lead_id: uuid.UUID,
        priority_status: str
    ) -> Lead:
        lead = await self._get_visible(lead_id, user_id, role)
        self._require(role, Capabilities.UPDATE_STATUS, user_id, lead)

        priority_status = getattr(priority_status, "value", priority_status)
        return await self._apply_change(
            lead, user_id, {"priority_status": priority_status},
            ActivityTypes.PRIORITY_UPDATE, f"Priority status changed to {priority_status}"
        )

    async def assign(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        lead_id: uuid.UUID,
        assignee_id: uuid.UUID
    ) -> Lead:
        """Hand a lead to a salesperson and notify them."""
        lead = await self._get_visible(lead_id, user_id, role)
        self._require(role, Capabilities.ASSIGN_LEAD, user_id, lead, "Only admins and digital marketers can assign leads")

        assignee = await self.user_repo.get(assignee_id)
        if not assignee:
            raise_not_found("User", str(assignee_id))

        updated_lead = await self._apply_change(
            lead, user_id, {"assigned_to": assignee_id},
            ActivityTypes.ASSIGNMENT, f"Lead assigned to {assignee.full_name}"
        )

        if assignee_id != user_id:
            await self.notification_service.notify_lead_assignment(updated_lead, assignee_id)

        return updated_lead

    async def update_meeting(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        lead_id: uuid.UUID,
        data: MeetingUpdate
    ) -> Lead:
        lead = await self._get_visible(lead_id, user_id, role)
        self._require(role, Capabilities.EDIT_WORKING_FIELDS, user_id, lead)

        patch = data.model_dump()
        summary = ", ".join(
            str(value) for value in (patch["meeting_type"], patch["meeting_date"], patch["meeting_time"]) if value
        )
        return await self._apply_change(
            lead, user_id, patch,
            ActivityTypes.MEETING_UPDATED, f"Meeting updated: {summary}" if summary else "Meeting cleared"
        )

    async def update_address(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        lead_id: uuid.UUID,
        data: AddressUpdate
    ) -> Lead:
        lead = await self._get_visible(lead_id, user_id, role)
        self._require(role, Capabilities.EDIT_WORKING_FIELDS, user_id, lead)

        return await self._apply_change(
            lead, user_id, data.model_dump(),
            ActivityTypes.ADDRESS_UPDATED, "Customer address details updated"
        )

    async def update_budget(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        lead_id: uuid.UUID,
        data: BudgetUpdate
    ) -> Lead:
        lead = await self._get_visible(lead_id, user_id, role)
        self._require(role, Capabilities.EDIT_WORKING_FIELDS, user_id, lead)

        return await self._apply_change(
            lead, user_id, data.model_dump(),
            ActivityTypes.BUDGET_UPDATED,
            f"Budget set to {data.budget_min if data.budget_min is not None else '-'}"
            f" - {data.budget_max if data.budget_max is not None else '-'}"
        )

    async def add_note(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        lead_id: uuid.UUID,
        notes: str
    ):
        """Append a free-text note to the activity trail."""
        lead = await self._get_visible(lead_id, user_id, role)
        self._require(role, Capabilities.EDIT_WORKING_FIELDS, user_id, lead)

        return await self.activity_repo.log(
            lead_id=lead_id,
            user_id=user_id,
            activity_type=ActivityTypes.NOTE,
            notes=notes
        )

    async def import_csv(
        self,
        user_id: uuid.UUID,
        role: Optional[str],
        csv_content: str
    ) -> LeadImportResponse:
        """Import leads from CSV content. All rows go in one transaction."""
        self._require(role, Capabilities.IMPORT_LEADS, user_id)

        try:
            records = build_import_records(csv_content, user_id, role)
        except ValidationError as e:
            raise_validation_error(e.message)

        for record in records:
            record["lead_code"] = generate_lead_code()

        leads = await self.lead_repo.bulk_create(records, commit=False)
        await self.activity_repo.create_many([
            {
                "lead_id": lead.id,
                "user_id": user_id,
                "activity_type": ActivityTypes.CREATED,
                "notes": "Imported from CSV",
            }
            for lead in leads
        ], commit=False)
        await self.session.commit()
        for lead in leads:
            self._publish(EventTypes.INSERT, lead)

        logger.info(f"Imported {len(leads)} leads for user {user_id}")
        return LeadImportResponse(
            imported=len(leads),
            message=f"Successfully imported {len(leads)} leads!"
        )

    async def get_stats(self, user_id: uuid.UUID, role: Optional[str]) -> dict:
        """Dashboard counters over the leads the caller can see."""
        return await self.lead_repo.get_stats(self._visibility(user_id, role))

    async def recent(self, user_id: uuid.UUID, role: Optional[str], limit: int = 5) -> List[Lead]:
        return await self.lead_repo.recent(limit, self._visibility(user_id, role))
