"""
Chat API routes, including the per-group message stream.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, status
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.database import get_session
from realty_crm.services.chat_service import ChatService, MESSAGE_TABLE
from realty_crm.services.realtime import EventTypes, RealtimeEvent
from realty_crm.schemas.chat import (
    ChatGroupCreate, ChatGroupResponse, MembersAdd, ChatMemberResponse,
    MessageCreate, ChatMessageResponse
)
from realty_crm.api.deps import get_current_user, get_websocket_user
from realty_crm.api.streams import pump
from realty_crm.models.user import User

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.get("/groups", response_model=List[ChatGroupResponse])
async def list_groups(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Groups the caller belongs to."""
    return await ChatService(session).list_groups(current_user.id)


@router.post("/groups", response_model=ChatGroupResponse, status_code=201)
async def create_group(
    data: ChatGroupCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Create a group with the caller and the selected members."""
    return await ChatService(session).create_group(current_user.id, data)


@router.get("/groups/{group_id}/members", response_model=List[ChatMemberResponse])
async def list_members(
    group_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await ChatService(session).list_members(current_user.id, group_id)


@router.post("/groups/{group_id}/members", response_model=List[ChatMemberResponse])
async def add_members(
    group_id: uuid.UUID,
    data: MembersAdd,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await ChatService(session).add_members(current_user.id, group_id, data.member_ids)


@router.get("/groups/{group_id}/messages", response_model=List[ChatMessageResponse])
async def list_messages(
    group_id: uuid.UUID,
    limit: int = Query(200, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Messages in chronological order."""
    return await ChatService(session).list_messages(current_user.id, group_id, limit)


@router.post("/groups/{group_id}/messages", response_model=ChatMessageResponse, status_code=201)
async def send_message(
    group_id: uuid.UUID,
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await ChatService(session).send_message(current_user.id, group_id, data.message)


@router.websocket("/groups/{group_id}/ws")
async def message_stream(
    websocket: WebSocket,
    group_id: uuid.UUID,
    session: AsyncSession = Depends(get_session)
):
    """
    New messages of one group as they are sent.

    Authenticate with ``?token=<access token>``. The client may send
    ``{"message": "..."}`` to post into the group.
    """
    user = await get_websocket_user(websocket, session)
    if not user:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    chat_service = ChatService(session)
    try:
        await chat_service.require_member(group_id, user.id)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    async def on_event(event: RealtimeEvent) -> None:
        if event.event_type == EventTypes.INSERT:
            await websocket.send_json({"type": "message", "message": event.record})

    async def on_message(message: dict) -> None:
        text = str(message.get("message") or "").strip()
        if not text:
            await websocket.send_json({"type": "error", "detail": "Message must not be empty"})
            return
        await chat_service.send_message(user.id, group_id, text)

    await pump(websocket, MESSAGE_TABLE, {"group_id": group_id}, on_event, on_message)
