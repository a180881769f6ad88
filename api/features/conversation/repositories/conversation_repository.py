"""Conversation repository using base repository pattern."""
from typing import List, Optional, Sequence

from sqlalchemy import select

from api.features.conversation.entities import Conversation
from api.shared.base import BaseRepository


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversation entities with owner-scoped queries."""

    model = Conversation

    async def get_owned(
        self,
        conversation_id: str,
        owner_id: str,
        *,
        for_update: bool = False,
        for_share: bool = False,
    ) -> Optional[Conversation]:
        """Fetch a conversation only if ``owner_id`` owns it.

        The owner predicate is part of the query, so row locks are never taken
        on another user's conversation.
        """
        stmt = select(Conversation).where(
            Conversation.id == conversation_id, Conversation.owner_id == owner_id
        )
        if for_update:
            stmt = stmt.with_for_update()
        elif for_share:
            stmt = stmt.with_for_update(read=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def ordered_ids_for_owner(self, owner_id: str) -> List[str]:
        """Owner's conversation ids, most recently updated first (ties by id)."""
        stmt = (
            select(Conversation.id)
            .where(Conversation.owner_id == owner_id)
            .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_many_owned(
        self, conversation_ids: Sequence[str], owner_id: str
    ) -> List[Conversation]:
        """Conversations among ``conversation_ids`` still owned by ``owner_id``, unordered."""
        if not conversation_ids:
            return []
        stmt = select(Conversation).where(
            Conversation.id.in_(list(conversation_ids)),
            Conversation.owner_id == owner_id,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def ids_for_owner(self, owner_id: str, *, for_update: bool = False) -> List[str]:
        """Identifiers of every conversation owned by ``owner_id``."""
        stmt = select(Conversation.id).where(Conversation.owner_id == owner_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_for_owner(self, owner_id: str) -> int:
        """Delete every conversation owned by ``owner_id``."""
        return await self.delete_by_field("owner_id", owner_id)
