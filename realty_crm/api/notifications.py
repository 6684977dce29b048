"""
Notification and notice API routes, including the live notification stream.
"""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, status
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.database import get_session
from realty_crm.models.notification import NotificationTypes
from realty_crm.services.notification_feed import FEED_LIMIT, apply_event, mark_read_event
from realty_crm.services.notification_service import (
    NotificationService, NOTIFICATION_TABLE, notification_record
)
from realty_crm.services.realtime import EventTypes, RealtimeEvent
from realty_crm.schemas.notification import (
    NotificationResponse, NoticeCreate, NoticeUpdate, NoticeAdminResponse,
    NoticeSendResponse, UnreadCountResponse
)
from realty_crm.schemas.common import MessageResponse
from realty_crm.api.deps import get_current_user, get_current_role, get_websocket_user
from realty_crm.api.streams import pump
from realty_crm.models.user import User

router = APIRouter(prefix="/api/notifications", tags=["notifications"])
notices_router = APIRouter(prefix="/api/notices", tags=["notices"])


@router.get("/", response_model=List[NotificationResponse])
async def list_notifications(
    type: Optional[str] = Query(None, pattern="^(lead|notice)$"),
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Own notifications, newest first."""
    notification_service = NotificationService(session)
    return await notification_service.list_for_user(current_user.id, type, unread_only, limit)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    notification_service = NotificationService(session)
    return UnreadCountResponse(unread=await notification_service.unread_count(current_user.id))


@router.post("/read-all", response_model=MessageResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    notification_service = NotificationService(session)
    count = await notification_service.mark_all_read(current_user.id)
    return MessageResponse(message=f"Marked {count} notifications as read")


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    notification_service = NotificationService(session)
    return await notification_service.mark_read(current_user.id, notification_id)


@router.websocket("/ws")
async def notification_stream(
    websocket: WebSocket,
    session: AsyncSession = Depends(get_session)
):
    """
    Live feed of the caller's unread notifications.

    Authenticate with ``?token=<access token>``. The server sends a
    ``snapshot`` message on connect and after every change. The client may
    send ``{"action": "mark_read", "id": "<uuid>"}``.
    """
    user = await get_websocket_user(websocket, session)
    if not user:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    notification_service = NotificationService(session)

    unread = await notification_service.list_for_user(user.id, unread_only=True, limit=FEED_LIMIT)
    state = {"feed": [notification_record(notification) for notification in unread]}

    async def send_snapshot(event_type: Optional[str] = None) -> None:
        await websocket.send_json({
            "type": "snapshot",
            "event": event_type,
            "items": state["feed"],
        })

    async def on_event(event: RealtimeEvent) -> None:
        state["feed"] = apply_event(state["feed"], event.event_type, event.record, unread_only=True)
        await send_snapshot(event.event_type)

    async def on_message(message: dict) -> None:
        if message.get("action") != "mark_read":
            await websocket.send_json({"type": "error", "detail": "Unknown action"})
            return
        try:
            notification_id = uuid.UUID(str(message.get("id")))
            await notification_service.mark_read(user.id, notification_id)
        except (ValueError, HTTPException):
            await websocket.send_json({"type": "error", "detail": "Notification not found"})
            return
        state["feed"] = apply_event(
            state["feed"], EventTypes.UPDATE, mark_read_event(str(notification_id)), unread_only=True
        )

    await send_snapshot()
    await pump(websocket, NOTIFICATION_TABLE, {"user_id": user.id}, on_event, on_message)


# ---- Notices ----

@notices_router.get("/", response_model=List[NotificationResponse])
async def list_my_notices(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Notices addressed to the caller."""
    notification_service = NotificationService(session)
    return await notification_service.list_for_user(current_user.id, NotificationTypes.NOTICE)


@notices_router.get("/manage", response_model=List[NoticeAdminResponse])
async def list_all_notices(
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Every notice copy with its recipient."""
    notification_service = NotificationService(session)
    return await notification_service.list_notices(role)


@notices_router.post("/", response_model=NoticeSendResponse, status_code=201)
async def send_notice(
    data: NoticeCreate,
    current_user: User = Depends(get_current_user),
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    """Send a notice to one user or to everyone."""
    notification_service = NotificationService(session)
    notices = await notification_service.send_notice(current_user.id, role, data)
    return {"sent": len(notices), "notices": notices}


@notices_router.put("/{notice_id}", response_model=NotificationResponse)
async def update_notice(
    notice_id: uuid.UUID,
    data: NoticeUpdate,
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    notification_service = NotificationService(session)
    return await notification_service.update_notice(role, notice_id, data)


@notices_router.delete("/{notice_id}", status_code=204)
async def delete_notice(
    notice_id: uuid.UUID,
    role: str = Depends(get_current_role),
    session: AsyncSession = Depends(get_session)
):
    notification_service = NotificationService(session)
    await notification_service.delete_notice(role, notice_id)
