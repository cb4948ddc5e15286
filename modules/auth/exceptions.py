"""
Authentication module exceptions.

These exceptions are raised by the auth provider and repository and are
turned into session state errors or MutationResult failures by the
session manager.
"""

from typing import Optional

from shared.exceptions import AuthenticationError, NotFoundError, ValidationError


class InvalidCredentialsError(AuthenticationError):
    """Raised when the Gateway rejects the supplied credentials."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class AuthProviderError(AuthenticationError):
    """Raised when the auth service fails for any other reason."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(
            message,
            code="AUTH_PROVIDER_ERROR",
            details={"status": status},
        )


class NotSignedInError(AuthenticationError):
    """Raised when an operation needs a signed-in principal."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="NOT_SIGNED_IN")


class ProfileNotFoundError(NotFoundError):
    """Raised when an operation needs a profile that is not loaded."""

    def __init__(self, message: str = "No profile found"):
        super().__init__(message, code="PROFILE_NOT_FOUND")


class EmptyProfileUpdateError(ValidationError):
    """Raised when a profile update carries no fields."""

    def __init__(self):
        super().__init__("Nothing to update", code="EMPTY_PROFILE_UPDATE")
