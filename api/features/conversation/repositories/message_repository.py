"""Message repository using base repository pattern."""
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_, delete, func, or_, select

from api.features.conversation.entities import Message
from api.shared.base import BaseRepository

MessageCursor = Tuple[datetime, str]


class MessageRepository(BaseRepository[Message]):
    """Repository for message entities. Messages are never updated."""

    model = Message

    async def list_for_conversation(
        self,
        conversation_id: str,
        *,
        after: Optional[MessageCursor] = None,
        limit: int = 100,
    ) -> List[Message]:
        """Messages of a conversation in chronological order, after a keyset cursor."""
        stmt = select(Message).where(Message.conversation_id == conversation_id)
        if after is not None:
            timestamp, message_id = after
            stmt = stmt.where(
                or_(
                    Message.timestamp > timestamp,
                    and_(Message.timestamp == timestamp, Message.id > message_id),
                )
            )
        stmt = stmt.order_by(Message.timestamp.asc(), Message.id.asc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_for_conversation(self, conversation_id: str) -> int:
        """Delete all messages of one conversation."""
        return await self.delete_by_field("conversation_id", conversation_id)

    async def delete_for_conversations(self, conversation_ids: Sequence[str]) -> int:
        """Delete all messages of several conversations."""
        if not conversation_ids:
            return 0
        stmt = delete(Message).where(Message.conversation_id.in_(conversation_ids))
        result = await self.session.execute(stmt)
        return result.rowcount

    async def token_totals(self, conversation_id: str) -> Tuple[int, int, int]:
        """Sum of input tokens, output tokens and the message count.

        Untracked counts (NULL) contribute zero.
        """
        stmt = select(
            func.coalesce(func.sum(Message.tokens_input), 0),
            func.coalesce(func.sum(Message.tokens_output), 0),
            func.count(Message.id),
        ).where(Message.conversation_id == conversation_id)
        result = await self.session.execute(stmt)
        tokens_input, tokens_output, message_count = result.one()
        return int(tokens_input), int(tokens_output), int(message_count)
