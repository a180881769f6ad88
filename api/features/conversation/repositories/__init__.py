from .conversation_repository import ConversationRepository
from .message_repository import MessageCursor, MessageRepository

__all__ = [
    "ConversationRepository",
    "MessageCursor",
    "MessageRepository",
]
