"""
Authentication module interfaces.

Other modules should depend on these protocols, not the concrete
implementations. This enables testing with in-memory fakes and swapping
the Gateway without touching the session manager.
"""

from typing import Any, Callable, Optional, Protocol, runtime_checkable

from shared.models import MutationResult, Principal

from .models import (
    AuthEvent,
    AuthSession,
    Profile,
    ProfileRole,
    ProfileUpdate,
    SessionState,
)


SessionChangeHandler = Callable[[AuthEvent, Optional[AuthSession]], None]


@runtime_checkable
class IAuthProvider(Protocol):
    """
    Interface for the Gateway's authentication capability.

    All methods raise AuthenticationError subclasses on failure.
    """

    async def get_session(self) -> Optional[AuthSession]:
        """Return the current session, or None if signed out."""
        ...

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Optional[Principal]:
        """
        Register a principal.

        Returns:
            The created principal, or None when the Gateway defers creation
            (for example pending email confirmation).
        """
        ...

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password."""
        ...

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> str:
        """
        Start a federated sign-in.

        Returns:
            URL the user agent must be sent to.
        """
        ...

    async def exchange_code(self, auth_code: str) -> AuthSession:
        """Exchange a federated sign-in callback code for a session."""
        ...

    async def sign_out(self) -> None:
        """End the current session."""
        ...

    def on_session_change(self, handler: SessionChangeHandler) -> Callable[[], None]:
        """
        Register a session change handler.

        The handler is called synchronously by the Gateway client.

        Returns:
            Callable that removes the handler.
        """
        ...


@runtime_checkable
class IProfileRepository(Protocol):
    """Interface for profile persistence."""

    async def get_by_auth_uid(self, auth_uid: str) -> Optional[Profile]:
        """Get the profile owned by a principal, or None."""
        ...

    async def create(self, data: dict[str, Any]) -> Profile:
        """
        Insert a profile row.

        Raises:
            ConflictError: If a profile already exists for the principal.
        """
        ...

    async def update(self, profile_id: str, changes: dict[str, Any]) -> Optional[Profile]:
        """Apply a partial update and return the stored row."""
        ...


@runtime_checkable
class ISessionManager(Protocol):
    """
    Interface for the auth/profile session.

    Consumers read `state` and call the mutation methods; mutations return
    MutationResult and never raise for Gateway or validation failures.
    """

    @property
    def state(self) -> SessionState:
        ...

    async def start(self) -> None:
        """Restore any existing session and begin listening for changes."""
        ...

    async def close(self) -> None:
        """Stop listening and cancel pending work."""
        ...

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        role: ProfileRole = ProfileRole.GUEST,
    ) -> MutationResult[Principal]:
        ...

    async def sign_in(self, email: str, password: str) -> MutationResult[Principal]:
        ...

    async def sign_in_with_google(self) -> MutationResult[str]:
        ...

    async def sign_out(self) -> MutationResult[None]:
        ...

    async def update_profile(self, changes: ProfileUpdate) -> MutationResult[Profile]:
        ...
