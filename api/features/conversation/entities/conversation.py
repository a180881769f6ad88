"""Conversation entity."""
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from api.shared.entities.base import BaseEntity
from api.shared.utils import utcnow_monotonic


class Conversation(BaseEntity):
    """A conversation owned by exactly one user."""

    owner_id: Mapped[str] = mapped_column("user_id", String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow_monotonic,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow_monotonic,
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint(
            "length(trim(title)) > 0", name="ck_conversation_title_not_empty"
        ),
        CheckConstraint(
            "updated_at >= created_at", name="ck_conversation_updated_after_created"
        ),
        Index("ix_conversation_user_id", "user_id"),
        Index("ix_conversation_updated_at", "updated_at"),
    )
