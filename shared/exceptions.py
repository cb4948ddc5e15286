"""
Base exception classes for the Guide data layer.

Each module should define its own exceptions that inherit from these bases.
Services turn them into state errors or MutationResult failures, so nothing
from the Gateway libraries leaks past the repository layer.
"""

from typing import Optional, Any


class GuideError(Exception):
    """
    Base exception for all Guide errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for display or logging."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(GuideError):
    """Resource not found."""

    pass


class ValidationError(GuideError):
    """Input validation failed before reaching the Gateway."""

    @classmethod
    def from_pydantic(cls, error: Any, code: Optional[str] = None) -> "ValidationError":
        """Build from a pydantic ValidationError, keeping the first problem."""
        problems = error.errors()
        if not problems:
            return cls(str(error), code=code)
        first = problems[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        message = first.get("msg", "Invalid value")
        if field:
            message = f"{field}: {message}"
        return cls(message, code=code, details={"errors": len(problems)})


class AuthenticationError(GuideError):
    """Authentication failed (invalid or missing credentials)."""

    pass


class AuthorizationError(GuideError):
    """Authorization failed (insufficient permissions)."""

    pass


class ConflictError(GuideError):
    """A uniqueness constraint rejected the write."""

    pass


class ExternalServiceError(GuideError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
