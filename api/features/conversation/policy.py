"""Access policy for conversations and their messages.

An actor may read or write a record only when it is the record's owner:
directly for conversations, and through the parent conversation for
messages. Missing records and records owned by someone else are reported the
same way (``NotFoundError``) so the existence of another user's data is never
revealed.
"""
from enum import Enum
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversation.entities import Conversation
from api.features.conversation.repositories import ConversationRepository
from api.shared.exceptions import NotFoundError
from api.shared.utils import normalize_uuid

logger = structlog.get_logger("conversation.policy")


class PolicyAction(str, Enum):
    """Operations gated by the policy."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class AccessPolicy:
    """Stateless ownership check evaluated on every store call."""

    resource_name = "Conversation"

    def allowed(
        self, action: PolicyAction, conversation: Optional[Conversation], actor: str
    ) -> bool:
        """Every action follows the same rule: the actor owns the conversation."""
        if conversation is None or not actor:
            return False
        return conversation.owner_id == actor

    async def resolve_conversation(
        self,
        session: AsyncSession,
        conversation_id: str,
        actor: str,
        action: PolicyAction = PolicyAction.SELECT,
    ) -> Conversation:
        """Load a conversation the actor may act on, or fail closed.

        Mutations lock the row for update. Message inserts take a shared lock
        so a concurrent cascade delete waits for the append to finish.
        """
        canonical_id = normalize_uuid(conversation_id)
        conversation = None
        if canonical_id is not None and actor:
            repository = ConversationRepository(session)
            conversation = await repository.get_owned(
                canonical_id,
                actor,
                for_update=action in (PolicyAction.UPDATE, PolicyAction.DELETE),
                for_share=action is PolicyAction.INSERT,
            )

        if not self.allowed(action, conversation, actor):
            logger.debug(
                "Access denied",
                action=action.value,
                conversation_id=str(conversation_id),
            )
            raise NotFoundError(self.resource_name, str(conversation_id))
        return conversation
