"""
Authentication module.

Handles the Gateway session, the application profile attached to it,
and default profile provisioning for federated sign-in.

Public API:
- ISessionManager: Interface for session operations
- IAuthProvider, IProfileRepository: Gateway-facing contracts
- Profile, ProfileRole, SessionState: Data models
- Auth exceptions: InvalidCredentialsError, ProfileNotFoundError, etc.
"""

from .interfaces import IAuthProvider, IProfileRepository, ISessionManager
from .models import (
    AuthEvent,
    AuthSession,
    AuthStatus,
    Profile,
    ProfileRole,
    ProfileUpdate,
    SessionState,
)
from .exceptions import (
    InvalidCredentialsError,
    AuthProviderError,
    NotSignedInError,
    ProfileNotFoundError,
    EmptyProfileUpdateError,
)

__all__ = [
    # Interfaces
    "IAuthProvider",
    "IProfileRepository",
    "ISessionManager",
    # Models
    "AuthEvent",
    "AuthSession",
    "AuthStatus",
    "Profile",
    "ProfileRole",
    "ProfileUpdate",
    "SessionState",
    # Exceptions
    "InvalidCredentialsError",
    "AuthProviderError",
    "NotSignedInError",
    "ProfileNotFoundError",
    "EmptyProfileUpdateError",
]
