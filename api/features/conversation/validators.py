"""Validators for conversation and message input."""
from typing import Optional

from api.features.conversation.entities import MessageRole
from api.shared.exceptions import ValidationError
from core.settings import SETTINGS, ConversationSettings

OWNER_ID_MAX_LENGTH = 100


class ConversationValidator:
    """Input checks for conversation writes."""

    def __init__(self, settings: ConversationSettings = SETTINGS.CONVERSATION):
        self.settings = settings

    def validate_owner(self, owner_id: str) -> str:
        if not isinstance(owner_id, str) or not owner_id.strip():
            raise ValidationError("Owner identifier must not be empty", {"field": "owner_id"})
        if len(owner_id) > OWNER_ID_MAX_LENGTH:
            raise ValidationError(
                f"Owner identifier exceeds {OWNER_ID_MAX_LENGTH} characters",
                {"field": "owner_id"},
            )
        return owner_id

    def validate_title(self, title: Optional[str], *, allow_default: bool) -> str:
        """Return the trimmed title, or the placeholder when omitted and allowed."""
        if title is None:
            if allow_default:
                return self.settings.CONVERSATION_DEFAULT_TITLE
            raise ValidationError("Title is required", {"field": "title"})
        if not isinstance(title, str):
            raise ValidationError("Title must be a string", {"field": "title"})

        trimmed = title.strip()
        if not trimmed:
            raise ValidationError("Title must not be empty", {"field": "title"})
        if len(trimmed) > self.settings.CONVERSATION_TITLE_MAX_LENGTH:
            raise ValidationError(
                f"Title exceeds {self.settings.CONVERSATION_TITLE_MAX_LENGTH} characters",
                {"field": "title", "length": len(trimmed)},
            )
        return trimmed


class MessageValidator(ConversationValidator):
    """Input checks for message appends."""

    def validate_role(self, role: MessageRole | str) -> MessageRole:
        try:
            return MessageRole(role)
        except ValueError:
            allowed = ", ".join(r.value for r in MessageRole)
            raise ValidationError(
                f"Invalid role '{role}'. Allowed: {allowed}", {"field": "role"}
            ) from None

    def validate_content(self, content: str) -> str:
        # Stored verbatim; only the emptiness check looks at the trimmed value
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("Content must not be empty", {"field": "content"})
        return content

    def validate_model_used(self, model_used: Optional[str]) -> Optional[str]:
        if model_used is None:
            return None
        if not isinstance(model_used, str):
            raise ValidationError("model_used must be a string", {"field": "model_used"})
        if len(model_used) > self.settings.MODEL_USED_MAX_LENGTH:
            raise ValidationError(
                f"model_used exceeds {self.settings.MODEL_USED_MAX_LENGTH} characters",
                {"field": "model_used"},
            )
        return model_used

    def validate_tokens(self, field: str, value: Optional[int]) -> Optional[int]:
        """Token counts are optional; when present they must be integers >= 0."""
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{field} must be an integer", {"field": field})
        if value < 0:
            raise ValidationError(
                f"{field} must not be negative", {"field": field, "value": value}
            )
        return value
