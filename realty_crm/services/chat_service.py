"""
Chat service - group messaging between staff.
"""
import uuid
import logging
from datetime import datetime
from typing import List

from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.core.exceptions import raise_not_found, raise_forbidden
from realty_crm.models.chat import ChatGroup, ChatMessage
from realty_crm.repositories.chat_repo import (
    ChatGroupRepository, ChatMemberRepository, ChatMessageRepository
)
from realty_crm.repositories.user_repo import UserRepository
from realty_crm.schemas.chat import ChatGroupCreate
from realty_crm.services.realtime import EventTypes, get_broker

logger = logging.getLogger(__name__)

MESSAGE_TABLE = "chat_message"


class ChatService:
    """Service for chat groups, members and messages."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.group_repo = ChatGroupRepository(session)
        self.member_repo = ChatMemberRepository(session)
        self.message_repo = ChatMessageRepository(session)
        self.user_repo = UserRepository(session)
        self.broker = get_broker()

    async def require_member(self, group_id: uuid.UUID, user_id: uuid.UUID) -> ChatGroup:
        """The group, provided ``user_id`` belongs to it."""
        group = await self.group_repo.get(group_id)
        if not group:
            raise_not_found("Chat group", str(group_id))
        if not await self.member_repo.is_member(group_id, user_id):
            raise_forbidden("You are not a member of this group")
        return group

    async def list_groups(self, user_id: uuid.UUID) -> List[ChatGroup]:
        return await self.group_repo.for_member(user_id)

    async def create_group(self, user_id: uuid.UUID, data: ChatGroupCreate) -> ChatGroup:
        """Create a group; the creator is always a member."""
        member_ids = [user_id] + [member_id for member_id in dict.fromkeys(data.member_ids) if member_id != user_id]
        users = await self.user_repo.get_many(member_ids)
        known = {user.id for user in users}
        for member_id in member_ids:
            if member_id not in known:
                raise_not_found("User", str(member_id))

        group = await self.group_repo.create({
            "name": data.name,
            "description": data.description,
            "created_by": user_id,
        })
        await self.member_repo.create_many([
            {"group_id": group.id, "user_id": member_id} for member_id in member_ids
        ])

        logger.info(f"Chat group '{group.name}' created by {user_id} with {len(member_ids)} members")
        return group

    async def list_members(self, user_id: uuid.UUID, group_id: uuid.UUID) -> List[dict]:
        await self.require_member(group_id, user_id)
        users = await self.user_repo.get_many(await self.member_repo.member_ids(group_id))
        return [
            {
                "user_id": user.id,
                "full_name": user.full_name,
                "email": user.email,
                "avatar_url": user.avatar_url,
            }
            for user in sorted(users, key=lambda user: user.full_name)
        ]

    async def add_members(
        self,
        user_id: uuid.UUID,
        group_id: uuid.UUID,
        member_ids: List[uuid.UUID]
    ) -> List[dict]:
        """Add users to a group; existing members are skipped."""
        await self.require_member(group_id, user_id)

        existing = set(await self.member_repo.member_ids(group_id))
        new_ids = [member_id for member_id in dict.fromkeys(member_ids) if member_id not in existing]
        if new_ids:
            known = {user.id for user in await self.user_repo.get_many(new_ids)}
            for member_id in new_ids:
                if member_id not in known:
                    raise_not_found("User", str(member_id))
            await self.member_repo.create_many([
                {"group_id": group_id, "user_id": member_id} for member_id in new_ids
            ])

        return await self.list_members(user_id, group_id)

    async def list_messages(self, user_id: uuid.UUID, group_id: uuid.UUID, limit: int = 200) -> List[dict]:
        """Messages in chronological order with sender names."""
        await self.require_member(group_id, user_id)
        messages = await self.message_repo.for_group(group_id, limit)
        names = await self.user_repo.get_names(message.sender_id for message in messages)
        return [
            {**message.model_dump(), "sender_name": names.get(message.sender_id)}
            for message in messages
        ]

    async def send_message(self, user_id: uuid.UUID, group_id: uuid.UUID, text: str) -> dict:
        await self.require_member(group_id, user_id)

        message = await self.message_repo.create({
            "group_id": group_id,
            "sender_id": user_id,
            "message": text,
        })
        await self.group_repo.update(group_id, {"updated_at": datetime.utcnow()})

        sender = await self.user_repo.get(user_id)
        payload = {
            **message.model_dump(mode="json"),
            "sender_name": sender.full_name if sender else None,
        }
        self.broker.publish(MESSAGE_TABLE, EventTypes.INSERT, payload)
        return {**message.model_dump(), "sender_name": payload["sender_name"]}
