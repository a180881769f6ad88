"""Entity registry to ensure SQLAlchemy loads all table metadata.

Import all entity modules here so Alembic and schema bootstrap can discover them.
"""
# Import base first to expose BaseEntity.metadata
from api.shared.entities.base import BaseEntity

# Feature: Conversation
from api.features.conversation.entities.conversation import Conversation  # noqa: F401
from api.features.conversation.entities.message import Message  # noqa: F401

metadata = BaseEntity.metadata
