"""
Chat group, membership and message repositories.
"""
import uuid
from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from realty_crm.models.chat import ChatGroup, ChatGroupMember, ChatMessage
from realty_crm.repositories.base import BaseRepository


class ChatGroupRepository(BaseRepository[ChatGroup]):
    """Repository for ChatGroup operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(ChatGroup, session)

    async def for_member(self, user_id: uuid.UUID) -> List[ChatGroup]:
        """Groups the user belongs to, most recently updated first."""
        query = select(ChatGroup).join(
            ChatGroupMember, ChatGroupMember.group_id == ChatGroup.id
        ).where(
            ChatGroupMember.user_id == user_id
        ).order_by(ChatGroup.updated_at.desc())
        result = await self.session.exec(query)
        return result.all()


class ChatMemberRepository(BaseRepository[ChatGroupMember]):
    """Repository for group membership rows."""

    def __init__(self, session: AsyncSession):
        super().__init__(ChatGroupMember, session)

    async def member_ids(self, group_id: uuid.UUID) -> List[uuid.UUID]:
        query = select(ChatGroupMember.user_id).where(ChatGroupMember.group_id == group_id)
        result = await self.session.exec(query)
        return list(result.all())

    async def is_member(self, group_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        query = select(ChatGroupMember).where(
            ChatGroupMember.group_id == group_id,
            ChatGroupMember.user_id == user_id
        )
        result = await self.session.exec(query)
        return result.first() is not None


class ChatMessageRepository(BaseRepository[ChatMessage]):
    """Repository for chat messages."""

    def __init__(self, session: AsyncSession):
        super().__init__(ChatMessage, session)

    async def for_group(self, group_id: uuid.UUID, limit: int = 200) -> List[ChatMessage]:
        """Latest ``limit`` messages of a group in chronological order."""
        query = select(ChatMessage).where(
            ChatMessage.group_id == group_id
        ).order_by(ChatMessage.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return list(reversed(result.all()))
