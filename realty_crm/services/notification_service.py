"""
Notification service - per-user notifications and broadcast notices.
"""
import uuid
import logging
from typing import List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.core.exceptions import raise_not_found, raise_forbidden, raise_validation_error
from realty_crm.core.permissions import Capabilities, can_perform
from realty_crm.models.lead import Lead
from realty_crm.models.notification import Notification, NotificationTypes
from realty_crm.repositories.notification_repo import NotificationRepository
from realty_crm.repositories.user_repo import UserRepository
from realty_crm.schemas.notification import NoticeCreate, NoticeUpdate
from realty_crm.services.realtime import EventTypes, get_broker

logger = logging.getLogger(__name__)

NOTIFICATION_TABLE = "notification"
NO_RECIPIENTS_MESSAGE = "No users to send notice to"


def notification_record(notification: Notification) -> dict:
    """JSON-safe row payload for realtime events."""
    return notification.model_dump(mode="json")


class NotificationService:
    """Service for notification operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.notification_repo = NotificationRepository(session)
        self.user_repo = UserRepository(session)
        self.broker = get_broker()

    def _publish(self, event_type: str, notification: Notification) -> None:
        self.broker.publish(NOTIFICATION_TABLE, event_type, notification_record(notification))

    async def _get_own(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> Notification:
        notification = await self.notification_repo.get(notification_id)
        if not notification or notification.user_id != user_id:
            raise_not_found("Notification", str(notification_id))
        return notification

    # ---- Recipient side ----

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        type: Optional[str] = None,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        return await self.notification_repo.for_user(user_id, type, unread_only, limit)

    async def unread_count(self, user_id: uuid.UUID) -> int:
        return await self.notification_repo.unread_count(user_id)

    async def mark_read(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> Notification:
        notification = await self._get_own(user_id, notification_id)
        if notification.is_read:
            return notification

        notification = await self.notification_repo.update(notification_id, {"is_read": True})
        self._publish(EventTypes.UPDATE, notification)
        return notification

    async def mark_all_read(self, user_id: uuid.UUID) -> int:
        """Mark every unread notification of the user as read."""
        unread_ids = await self.notification_repo.unread_ids(user_id)
        if not unread_ids:
            return 0

        updated = await self.notification_repo.update_where(
            {"is_read": True},
            {"id": unread_ids}
        )
        for notification_id in unread_ids:
            self.broker.publish(
                NOTIFICATION_TABLE,
                EventTypes.UPDATE,
                {"id": str(notification_id), "user_id": str(user_id), "is_read": True}
            )
        return updated

    # ---- Lead notifications ----

    async def notify_lead_assignment(self, lead: Lead, assignee_id: uuid.UUID) -> Notification:
        """Tell a salesperson a lead was handed to them."""
        notification = await self.notification_repo.create({
            "user_id": assignee_id,
            "title": "New lead assigned",
            "message": f"Lead '{lead.name}' has been assigned to you",
            "type": NotificationTypes.LEAD,
            "lead_id": lead.id,
        })
        self._publish(EventTypes.INSERT, notification)
        return notification

    # ---- Notices ----

    def _check_manage(self, role: Optional[str]) -> None:
        if not can_perform(role, Capabilities.MANAGE_NOTICES):
            raise_forbidden("Only admins and digital marketers can manage notices")

    async def send_notice(
        self,
        actor_id: uuid.UUID,
        role: Optional[str],
        data: NoticeCreate
    ) -> List[Notification]:
        """
        Fan a notice out as one independent row per recipient.

        A ``target_user_id`` of None addresses every profile.
        """
        self._check_manage(role)

        if data.target_user_id:
            target = await self.user_repo.get(data.target_user_id)
            if not target:
                raise_not_found("User", str(data.target_user_id))
            recipient_ids = [target.id]
        else:
            recipient_ids = [user.id for user in await self.user_repo.list(order_by="created_at")]

        if not recipient_ids:
            raise_validation_error(NO_RECIPIENTS_MESSAGE)

        notices = await self.notification_repo.create_many([
            {
                "user_id": recipient_id,
                "title": data.title,
                "message": data.message,
                "type": NotificationTypes.NOTICE,
                "is_read": False,
            }
            for recipient_id in recipient_ids
        ])

        for notice in notices:
            self._publish(EventTypes.INSERT, notice)

        logger.info(f"Notice '{data.title}' sent to {len(notices)} users by {actor_id}")
        return notices

    async def list_notices(self, role: Optional[str]) -> List[dict]:
        """Every notice copy with its recipient, newest first."""
        self._check_manage(role)

        notices = await self.notification_repo.list({"type": NotificationTypes.NOTICE})
        recipients = {
            user.id: user
            for user in await self.user_repo.get_many(notice.user_id for notice in notices)
        }

        items = []
        for notice in notices:
            recipient = recipients.get(notice.user_id)
            items.append({
                **notice.model_dump(),
                "recipient_name": recipient.full_name if recipient else None,
                "recipient_email": recipient.email if recipient else None,
            })
        return items

    async def _get_notice(self, notice_id: uuid.UUID) -> Notification:
        notice = await self.notification_repo.get(notice_id)
        if not notice or notice.type != NotificationTypes.NOTICE:
            raise_not_found("Notice", str(notice_id))
        return notice

    async def update_notice(
        self,
        role: Optional[str],
        notice_id: uuid.UUID,
        data: NoticeUpdate
    ) -> Notification:
        """Edit one recipient's copy of a notice."""
        self._check_manage(role)
        await self._get_notice(notice_id)

        notice = await self.notification_repo.update(notice_id, data.model_dump())
        self._publish(EventTypes.UPDATE, notice)
        return notice

    async def delete_notice(self, role: Optional[str], notice_id: uuid.UUID) -> None:
        self._check_manage(role)
        notice = await self._get_notice(notice_id)
        record = notification_record(notice)

        await self.notification_repo.delete(notice_id)
        self.broker.publish(NOTIFICATION_TABLE, EventTypes.DELETE, record)
