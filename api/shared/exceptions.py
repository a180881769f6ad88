"""Shared exceptions for the conversation store."""
from typing import Any, Dict, Optional


class ConversationStoreException(Exception):
    """Base exception for the conversation store."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ConversationStoreException):
    """Raised when input violates a data invariant."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundError(ConversationStoreException):
    """Raised when a resource is not found or not visible to the actor.

    Both cases produce the same message and details so callers cannot tell
    them apart.
    """

    def __init__(self, resource: str, identifier: str):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(message, "NOT_FOUND", {"resource": resource, "identifier": identifier})


class IntegrityError(ConversationStoreException):
    """Raised when a storage-level constraint or uniqueness guarantee fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INTEGRITY_ERROR", details)
