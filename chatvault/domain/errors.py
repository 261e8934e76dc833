"""Domain-level errors and exceptions."""

from typing import Optional


class DomainError(Exception):
    """Base domain error."""
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(DomainError):
    """A required request field is missing or malformed."""
    pass


class AuthenticationError(DomainError):
    """Caller identity is missing or could not be verified."""
    pass


class NotFoundError(DomainError):
    """Requested resource does not exist for this caller."""
    pass


class ChatNotFoundError(NotFoundError):
    """Raised when no chat matches the (chat id, owner) pair."""
    pass


class StorageError(DomainError):
    """Persistence layer failure."""
    pass


class DatabaseConnectionError(StorageError):
    """Raised when the database stays unreachable after all retries."""
    pass


class UploadAuthError(DomainError):
    """Raised when CDN upload parameters cannot be produced."""
    pass
