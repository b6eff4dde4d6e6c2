# mentorchat/core/exceptions.py
"""Custom exceptions for the MentorChat application."""
from typing import Optional


class MentorChatException(Exception):
    """Base exception for MentorChat application."""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(MentorChatException):
    """Empty message body, empty nickname on first set, invalid display mode."""
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class PreferenceImmutableError(MentorChatException):
    """Raised when an already-set nickname would be changed."""
    status_code = 409

    def __init__(self, current_value: str):
        self.current_value = current_value
        super().__init__("Nickname can only be set once and cannot be changed")


class NotAuthenticatedError(MentorChatException):
    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class NotFoundError(MentorChatException):
    """Resource not found exception"""
    status_code = 404

    def __init__(self, resource: str, id: Optional[str] = None):
        message = f"{resource} not found"
        if id:
            message += f" with id: {id}"
        super().__init__(message)


class NotParticipantError(MentorChatException):
    status_code = 403

    def __init__(self, message: str = "You are not a participant of this room"):
        super().__init__(message)


class ConflictRetryableError(MentorChatException):
    """Unique constraint violation on a create path.

    Create paths catch this and re-read the winning row, so it never reaches
    an end user.
    """
    status_code = 409

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"Concurrent creation of {resource}")


class TransientIOError(MentorChatException):
    """Storage or transport unavailable. Retryable by the caller."""
    status_code = 503

    def __init__(self, message: str = "Service temporarily unavailable"):
        super().__init__(message)
