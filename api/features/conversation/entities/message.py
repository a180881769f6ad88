"""Message entity."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from api.shared.entities.base import BaseEntity
from api.shared.utils import utcnow_monotonic


class MessageRole(str, Enum):
    """Who sent the message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseEntity):
    """A single append-only turn of a conversation."""

    conversation_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey(
            "conversation.id", name="fk_message_conversation_id", ondelete="CASCADE"
        ),
        nullable=False,
    )
    owner_id: Mapped[str] = mapped_column("user_id", String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Cost tracking
    model_used: Mapped[Optional[str]] = mapped_column(String(100))
    tokens_input: Mapped[Optional[int]] = mapped_column(Integer)
    tokens_output: Mapped[Optional[int]] = mapped_column(Integer)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow_monotonic,
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('user', 'assistant', 'system')", name="ck_message_role"
        ),
        CheckConstraint(
            "length(trim(content)) > 0", name="ck_message_content_not_empty"
        ),
        CheckConstraint(
            "(tokens_input IS NULL OR tokens_input >= 0) AND "
            "(tokens_output IS NULL OR tokens_output >= 0)",
            name="ck_message_tokens_non_negative",
        ),
        Index("ix_message_conversation_id", "conversation_id"),
        Index("ix_message_user_id", "user_id"),
        Index("ix_message_timestamp", "timestamp"),
    )
