"""Domain exceptions for the heists client.

Watchers never raise these past their own boundary; they are turned into
state. The write path and auth use cases raise them to their callers.
"""

from typing import Any


class HeistException(Exception):
    """Base exception for all heists client errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, heist_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(HeistException):
    """Raised when input validation fails (e.g. empty title, too long)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class SelfAssignmentException(ValidationException):
    """Raised when a principal tries to assign a heist to itself."""

    def __init__(self, uid: str) -> None:
        super().__init__("You cannot assign a heist to yourself", field="assigned_to")
        self.error_code = "SELF_ASSIGNMENT"
        self.details["uid"] = uid


class AuthenticationException(HeistException):
    """Raised when an identity provider call fails.

    ``code`` follows the provider's ``auth/...`` convention
    (e.g. ``auth/email-already-in-use``) so callers can pick a message.
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        code: str = "auth/unknown",
    ) -> None:
        super().__init__(message, "AUTHENTICATION_ERROR", {"code": code})
        self.code = code


class HeistLoadError(HeistException):
    """Generic load failure reported by watchers.

    Carries only a user-facing message; the backend error is logged where
    it happened and is never attached.
    """

    def __init__(self, message: str = "Failed to load heist. Please try again.") -> None:
        super().__init__(message, "HEIST_LOAD_ERROR")
