"""
Supabase Auth adapter.

Wraps the async Supabase auth client behind IAuthProvider and maps its
users, sessions and errors onto the auth module's own types.
"""

import logging
from typing import Any, Callable, Optional

import httpx
from supabase import AsyncClient, AuthError

from shared.exceptions import ExternalServiceError
from shared.models import Principal

from .exceptions import AuthProviderError, InvalidCredentialsError
from .interfaces import SessionChangeHandler
from .models import AuthEvent, AuthSession

logger = logging.getLogger(__name__)


INVALID_CREDENTIAL_CODES = {"invalid_credentials", "invalid_grant"}


def map_principal(user: Any) -> Optional[Principal]:
    """Map a Supabase auth user onto a Principal."""
    if user is None:
        return None
    return Principal(
        id=str(user.id),
        email=getattr(user, "email", None),
        user_metadata=dict(getattr(user, "user_metadata", None) or {}),
    )


def map_session(session: Any) -> Optional[AuthSession]:
    """Map a Supabase session onto an AuthSession."""
    if session is None or getattr(session, "user", None) is None:
        return None
    return AuthSession(
        principal=map_principal(session.user),
        access_token=getattr(session, "access_token", "") or "",
        expires_at=getattr(session, "expires_at", None),
    )


def map_event(event: Any) -> Optional[AuthEvent]:
    value = getattr(event, "value", event)
    try:
        return AuthEvent(value)
    except ValueError:
        return None


class SupabaseAuthProvider:
    """IAuthProvider backed by Supabase Auth."""

    def __init__(self, db: AsyncClient):
        self._db = db

    async def get_session(self) -> Optional[AuthSession]:
        session = await self._call("restore session", self._db.auth.get_session())
        return map_session(session)

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Optional[Principal]:
        response = await self._call(
            "sign up",
            self._db.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": metadata or {}},
                }
            ),
        )
        return map_principal(response.user)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        response = await self._call(
            "sign in",
            self._db.auth.sign_in_with_password({"email": email, "password": password}),
        )
        session = map_session(response.session)
        if session is None:
            raise AuthProviderError("Sign in did not return a session")
        return session

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> str:
        response = await self._call(
            f"sign in with {provider}",
            self._db.auth.sign_in_with_oauth(
                {"provider": provider, "options": {"redirect_to": redirect_to}}
            ),
        )
        return str(response.url)

    async def exchange_code(self, auth_code: str) -> AuthSession:
        response = await self._call(
            "complete sign in",
            self._db.auth.exchange_code_for_session({"auth_code": auth_code}),
        )
        session = map_session(response.session)
        if session is None:
            raise AuthProviderError("Code exchange did not return a session")
        return session

    async def sign_out(self) -> None:
        await self._call("sign out", self._db.auth.sign_out())

    def on_session_change(self, handler: SessionChangeHandler) -> Callable[[], None]:
        def relay(event: Any, session: Any) -> None:
            auth_event = map_event(event)
            if auth_event is None:
                logger.debug(f"Ignoring unknown auth event: {event}")
                return
            handler(auth_event, map_session(session))

        subscription = self._db.auth.on_auth_state_change(relay)
        return subscription.unsubscribe

    async def _call(self, operation: str, awaitable: Any) -> Any:
        """Await a Supabase auth call and translate its failures."""
        try:
            return await awaitable
        except AuthError as e:
            code = getattr(e, "code", None)
            if code in INVALID_CREDENTIAL_CODES or "invalid login credentials" in str(e).lower():
                raise InvalidCredentialsError()
            raise AuthProviderError(
                f"Failed to {operation}: {e}",
                status=getattr(e, "status", None),
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"Failed to {operation}: {e}",
                service="auth",
                code="AUTH_UNAVAILABLE",
            )
