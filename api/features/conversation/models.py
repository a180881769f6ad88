"""Models for the Conversation feature."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from api.features.conversation.entities import (
    Conversation as ConversationEntity,
    Message as MessageEntity,
    MessageRole,
)
from api.features.conversation.repositories import MessageCursor
from api.shared.utils import as_utc


class ConversationModel(BaseModel):
    """Domain model for Conversation."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str = Field(description="Conversation identifier")
    owner_id: str = Field(description="Owning user identifier")
    title: str = Field(description="Conversation title")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")

    @classmethod
    def from_entity(cls, entity: ConversationEntity) -> "ConversationModel":
        """Create model from database entity."""
        return cls(
            id=entity.id,
            owner_id=entity.owner_id,
            title=entity.title,
            created_at=as_utc(entity.created_at),
            updated_at=as_utc(entity.updated_at),
        )


class MessageModel(BaseModel):
    """Domain model for Message."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str = Field(description="Message identifier")
    conversation_id: str = Field(description="Parent conversation identifier")
    owner_id: str = Field(description="Authoring user identifier")
    role: MessageRole = Field(description="Message role: user, assistant or system")
    content: str = Field(description="Message content")
    model_used: Optional[str] = Field(default=None, description="Model that generated the message")
    tokens_input: Optional[int] = Field(default=None, ge=0, description="Input tokens, if tracked")
    tokens_output: Optional[int] = Field(default=None, ge=0, description="Output tokens, if tracked")
    timestamp: datetime = Field(description="Creation timestamp")

    @classmethod
    def from_entity(cls, entity: MessageEntity) -> "MessageModel":
        """Create model from database entity."""
        return cls(
            id=entity.id,
            conversation_id=entity.conversation_id,
            owner_id=entity.owner_id,
            role=MessageRole(entity.role),
            content=entity.content,
            model_used=entity.model_used,
            tokens_input=entity.tokens_input,
            tokens_output=entity.tokens_output,
            timestamp=as_utc(entity.timestamp),
        )

    @property
    def cursor(self) -> MessageCursor:
        """Keyset position in chronological order."""
        return self.timestamp, self.id


class TokenUsage(BaseModel):
    """Token totals for one conversation, for cost accounting."""

    model_config = ConfigDict(frozen=True)

    conversation_id: str = Field(description="Conversation identifier")
    tokens_input: int = Field(default=0, ge=0, description="Sum of tracked input tokens")
    tokens_output: int = Field(default=0, ge=0, description="Sum of tracked output tokens")
    message_count: int = Field(default=0, ge=0, description="Number of messages")

    @property
    def total_tokens(self) -> int:
        return self.tokens_input + self.tokens_output
