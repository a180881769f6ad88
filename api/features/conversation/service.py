"""Conversation and message stores.

Every public operation runs in one transaction opened through
``DatabaseResource.session_scope`` and passes the acting identity through the
``AccessPolicy`` before touching data. Either the whole operation is applied
or nothing is.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Any, Optional

import structlog

from api.features.conversation.entities import Conversation, Message, MessageRole
from api.features.conversation.models import ConversationModel, MessageModel, TokenUsage
from api.features.conversation.policy import AccessPolicy, PolicyAction
from api.features.conversation.repositories import (
    ConversationRepository,
    MessageCursor,
    MessageRepository,
)
from api.features.conversation.validators import ConversationValidator, MessageValidator
from api.shared.streams import RecordStream, SnapshotStream
from api.shared.utils import as_utc, new_id, utcnow_monotonic
from core.settings import SETTINGS, ConversationSettings
from infra.resources import DatabaseResource

logger = structlog.get_logger("conversation.store")


class ConversationStore:
    """Owns conversation lifecycle, title and timestamps."""

    def __init__(
        self,
        database: DatabaseResource,
        policy: AccessPolicy,
        settings: ConversationSettings = SETTINGS.CONVERSATION,
    ):
        self.database = database
        self.policy = policy
        self.settings = settings
        self.validator = ConversationValidator(settings)

    async def create(self, owner_id: str, title: Optional[str] = None) -> ConversationModel:
        """Create a conversation; an omitted title becomes the default placeholder."""
        owner_id = self.validator.validate_owner(owner_id)
        title = self.validator.validate_title(title, allow_default=True)

        now = utcnow_monotonic()
        entity = Conversation(
            id=new_id(),
            owner_id=owner_id,
            title=title,
            created_at=now,
            updated_at=now,
        )
        async with self.database.session_scope() as session:
            entity = await ConversationRepository(session).create(entity)
            model = ConversationModel.from_entity(entity)

        logger.info("Conversation created", conversation_id=model.id, owner_id=owner_id)
        return model

    async def get(self, conversation_id: str, owner_id: str) -> ConversationModel:
        async with self.database.session_scope() as session:
            entity = await self.policy.resolve_conversation(
                session, conversation_id, owner_id, PolicyAction.SELECT
            )
            return ConversationModel.from_entity(entity)

    async def update_title(
        self, conversation_id: str, owner_id: str, new_title: str
    ) -> ConversationModel:
        """Replace the title; ``updated_at`` is refreshed by the mutation path."""
        title = self.validator.validate_title(new_title, allow_default=False)
        model = await self._mutate(conversation_id, owner_id, title=title)
        logger.info("Conversation title updated", conversation_id=model.id)
        return model

    async def touch(self, conversation_id: str, owner_id: str) -> ConversationModel:
        """Refresh ``updated_at`` without changing anything else."""
        return await self._mutate(conversation_id, owner_id)

    async def _mutate(
        self, conversation_id: str, owner_id: str, **changes: Any
    ) -> ConversationModel:
        """Single write path for conversation updates.

        Applies ``changes`` under a row lock and moves ``updated_at`` strictly
        past its previous value.
        """
        async with self.database.session_scope() as session:
            entity = await self.policy.resolve_conversation(
                session, conversation_id, owner_id, PolicyAction.UPDATE
            )
            for field, value in changes.items():
                setattr(entity, field, value)

            previous = as_utc(entity.updated_at)
            now = utcnow_monotonic()
            if now <= previous:
                now = previous + timedelta(microseconds=1)
            entity.updated_at = now

            entity = await ConversationRepository(session).update(entity)
            return ConversationModel.from_entity(entity)

    async def delete(self, conversation_id: str, owner_id: str) -> None:
        """Delete a conversation and all of its messages in one transaction."""
        async with self.database.session_scope() as session:
            entity = await self.policy.resolve_conversation(
                session, conversation_id, owner_id, PolicyAction.DELETE
            )
            deleted_id = entity.id
            removed_messages = await MessageRepository(session).delete_for_conversation(
                deleted_id
            )
            await ConversationRepository(session).delete(deleted_id)

        logger.info(
            "Conversation deleted",
            conversation_id=deleted_id,
            messages_removed=removed_messages,
        )

    async def delete_all_for_owner(self, owner_id: str) -> int:
        """Account-deletion cascade: drop every conversation and message of ``owner_id``.

        Returns the number of conversations removed.
        """
        owner_id = self.validator.validate_owner(owner_id)
        async with self.database.session_scope() as session:
            conversations = ConversationRepository(session)
            ids = await conversations.ids_for_owner(owner_id, for_update=True)
            removed_messages = await MessageRepository(session).delete_for_conversations(ids)
            removed = await conversations.delete_for_owner(owner_id)

        logger.info(
            "Owner data deleted",
            owner_id=owner_id,
            conversations_removed=removed,
            messages_removed=removed_messages,
        )
        return removed

    def list(self, owner_id: str) -> SnapshotStream[ConversationModel, str]:
        """Owner's conversations, most recently updated first.

        The returned stream is lazy and can be iterated any number of times.
        Each pass orders the ids once when it starts and loads rows batch by
        batch from that list, so a conversation updated mid-pass keeps its
        place instead of being skipped. Conversations deleted mid-pass are
        left out.
        """

        async def snapshot():
            async with self.database.session_scope() as session:
                return await ConversationRepository(session).ordered_ids_for_owner(owner_id)

        async def load(conversation_ids):
            async with self.database.session_scope() as session:
                entities = await ConversationRepository(session).get_many_owned(
                    conversation_ids, owner_id
                )
                return [ConversationModel.from_entity(e) for e in entities]

        return SnapshotStream(
            snapshot,
            load,
            key=lambda model: model.id,
            batch_size=self.settings.STREAM_BATCH_SIZE,
        )


class MessageStore:
    """Owns append-only messages; ownership comes from the parent conversation."""

    def __init__(
        self,
        database: DatabaseResource,
        policy: AccessPolicy,
        settings: ConversationSettings = SETTINGS.CONVERSATION,
    ):
        self.database = database
        self.policy = policy
        self.settings = settings
        self.validator = MessageValidator(settings)

    async def append(
        self,
        conversation_id: str,
        owner_id: str,
        role: MessageRole | str,
        content: str,
        model_used: Optional[str] = None,
        tokens_input: Optional[int] = None,
        tokens_output: Optional[int] = None,
    ) -> MessageModel:
        """Append one message. The parent's ``updated_at`` is left untouched."""
        role = self.validator.validate_role(role)
        content = self.validator.validate_content(content)
        model_used = self.validator.validate_model_used(model_used)
        tokens_input = self.validator.validate_tokens("tokens_input", tokens_input)
        tokens_output = self.validator.validate_tokens("tokens_output", tokens_output)

        async with self.database.session_scope() as session:
            conversation = await self.policy.resolve_conversation(
                session, conversation_id, owner_id, PolicyAction.INSERT
            )
            entity = Message(
                id=new_id(),
                conversation_id=conversation.id,
                owner_id=conversation.owner_id,
                role=role.value,
                content=content,
                model_used=model_used,
                tokens_input=tokens_input,
                tokens_output=tokens_output,
                timestamp=utcnow_monotonic(),
            )
            entity = await MessageRepository(session).create(entity)
            model = MessageModel.from_entity(entity)

        logger.info(
            "Message appended",
            conversation_id=model.conversation_id,
            message_id=model.id,
            role=model.role.value,
        )
        return model

    def list(
        self, conversation_id: str, owner_id: str
    ) -> RecordStream[MessageModel, MessageCursor]:
        """Messages of a conversation in chronological order.

        Every batch re-checks ownership, so iterating a stream for a
        conversation that is missing, deleted or owned by someone else raises
        ``NotFoundError``. If the conversation is deleted partway through a
        pass, the messages of batches already read have been yielded and the
        next batch raises ``NotFoundError``; callers that need all-or-nothing
        should collect with ``all()`` and discard on error.
        """

        async def fetch_page(after: Optional[MessageCursor], limit: int):
            async with self.database.session_scope() as session:
                conversation = await self.policy.resolve_conversation(
                    session, conversation_id, owner_id, PolicyAction.SELECT
                )
                entities = await MessageRepository(session).list_for_conversation(
                    conversation.id, after=after, limit=limit
                )
                return [MessageModel.from_entity(e) for e in entities]

        return RecordStream(
            fetch_page,
            key=lambda model: model.cursor,
            batch_size=self.settings.STREAM_BATCH_SIZE,
        )

    async def usage(self, conversation_id: str, owner_id: str) -> TokenUsage:
        """Token totals of a conversation for cost accounting."""
        async with self.database.session_scope() as session:
            conversation = await self.policy.resolve_conversation(
                session, conversation_id, owner_id, PolicyAction.SELECT
            )
            tokens_input, tokens_output, message_count = await MessageRepository(
                session
            ).token_totals(conversation.id)

        return TokenUsage(
            conversation_id=conversation.id,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            message_count=message_count,
        )
