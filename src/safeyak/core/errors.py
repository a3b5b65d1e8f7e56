"""Domain exceptions raised by the SafeYak services.

Each exception carries the HTTP status class the API layer reports for it,
so services stay free of FastAPI imports.
"""

from __future__ import annotations


class SafeYakError(RuntimeError):
    """Base exception for all SafeYak domain failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SafeYakError):
    """Raised when required fields are missing or empty."""

    status_code = 400


class AuthorizationError(SafeYakError):
    """Raised when the presented author token does not own the content."""

    status_code = 403


class NotFoundError(SafeYakError):
    """Raised when operating on a post or comment that does not exist."""

    status_code = 404


class ThreadLockedError(SafeYakError):
    """Raised when commenting on a thread that has been auto-locked."""

    status_code = 409


class RateLimitError(SafeYakError):
    """Raised when an author posts again before the cooldown elapsed.

    The condition is transient; ``retry_after`` is the number of whole seconds
    the caller should wait.
    """

    status_code = 429

    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class CollaboratorUnavailable(SafeYakError):
    """Raised when an external collaborator cannot be reached."""

    status_code = 503


class StorageUnavailable(CollaboratorUnavailable):
    """Raised when the relational store fails during an operation."""


class ScorerUnavailable(CollaboratorUnavailable):
    """Raised by toxicity scorers on timeouts, transport or upstream errors."""


class ScorerNotConfigured(ScorerUnavailable):
    """Raised when no toxicity backend credentials are configured."""
