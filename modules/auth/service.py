"""
Auth/profile session manager.

Owns the authenticated principal and its application profile, mediates
sign-up, sign-in (password and federated), sign-out and profile updates,
and provisions a default profile the first time a federated principal
signs in.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from shared.cache import TTLCache
from shared.config import Settings, get_settings
from shared.exceptions import ConflictError, GuideError, NotFoundError, ValidationError
from shared.models import MutationResult, Principal
from shared.state import StateStore
from shared.tasks import BackgroundTasks

from .exceptions import EmptyProfileUpdateError, ProfileNotFoundError
from .interfaces import IAuthProvider, IProfileRepository
from .models import (
    DEFAULT_CITY,
    AuthEvent,
    AuthSession,
    AuthStatus,
    Profile,
    ProfileRole,
    ProfileUpdate,
    SessionState,
    SignUpRequest,
)

logger = logging.getLogger(__name__)


GOOGLE_PROVIDER = "google"


def profile_cache_key(principal_id: str) -> str:
    return f"profile:{principal_id}"


class SessionManager:
    """
    Session state machine over uninitialized, loading, authenticated,
    anonymous and error.

    Use as an async context manager, or call start() and close():

        async with SessionManager(auth, profiles, cache) as session:
            result = await session.sign_in(email, password)
            print(session.state.profile)
    """

    def __init__(
        self,
        auth: IAuthProvider,
        profiles: IProfileRepository,
        cache: TTLCache,
        settings: Optional[Settings] = None,
    ):
        self._auth = auth
        self._profiles = profiles
        self._cache = cache
        self._settings = settings or get_settings()
        self._store: StateStore[SessionState] = StateStore(SessionState())
        self._tasks = BackgroundTasks("session")
        self._unsubscribe: Optional[Callable[[], None]] = None
        # principal id -> (lock, callers holding or waiting on it)
        self._provision_locks: dict[str, tuple[asyncio.Lock, int]] = {}
        # Bumped on sign-out so late results for the old session are dropped
        self._epoch = 0

    @property
    def state(self) -> SessionState:
        return self._store.state

    def subscribe(self, listener: Callable[[SessionState], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    async def __aenter__(self) -> "SessionManager":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Listen for session changes, then restore any existing session."""
        if self._unsubscribe is None:
            self._unsubscribe = self._auth.on_session_change(self._on_session_change)
        await self.initialize()

    async def close(self) -> None:
        """Stop listening and cancel outstanding session work."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self._tasks.close()

    async def initialize(self) -> None:
        """
        Restore the Gateway session, if any.

        The principal is exposed as soon as it is known; the profile follows
        once it has been resolved (cache first, Gateway second).
        """
        epoch = self._epoch
        self._apply(status=AuthStatus.LOADING, error=None)
        try:
            session = await self._auth.get_session()
        except GuideError as e:
            logger.warning(f"Auth initialization failed: {e.message}")
            self._apply(status=AuthStatus.ERROR, principal=None, profile=None, error=e.message)
            return

        if epoch != self._epoch:
            return
        if session is None:
            self._apply(status=AuthStatus.ANONYMOUS, principal=None, profile=None)
            return

        self._apply(status=AuthStatus.AUTHENTICATED, principal=session.principal)
        profile = await self.fetch_profile(session.principal.id)
        if self._is_current(session.principal, epoch):
            self._apply(status=AuthStatus.AUTHENTICATED, profile=profile)

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    async def fetch_profile(self, principal_id: str) -> Optional[Profile]:
        """
        Resolve the profile for a principal, cache first.

        Returns:
            The profile, or None if none exists or the lookup failed.
        """
        key = profile_cache_key(principal_id)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Profile cache hit for {principal_id}")
            return Profile.model_validate(cached)

        try:
            profile = await self._profiles.get_by_auth_uid(principal_id)
        except GuideError as e:
            logger.warning(f"Error fetching profile for {principal_id}: {e.message}")
            return None

        if profile is not None:
            self._cache.set(key, profile, self._settings.profile_ttl_seconds)
        return profile

    async def refetch_profile(self) -> Optional[Profile]:
        """Drop the cached profile and load it again from the Gateway."""
        principal = self.state.principal
        if principal is None:
            return None
        epoch = self._epoch
        self._cache.delete(profile_cache_key(principal.id))
        profile = await self.fetch_profile(principal.id)
        if self._is_current(principal, epoch):
            self._apply(profile=profile)
        return profile

    async def provision_profile(self, principal: Principal) -> Optional[Profile]:
        """
        Make sure a profile exists for a federated principal.

        Look the profile up and insert a default guest profile when there is
        none. Concurrent calls for the same principal are serialized here;
        the Gateway's unique constraint on auth_uid is what guarantees a
        single row, so a conflicting insert falls back to reading the
        winner's row.
        """
        async with self._provision_lock(principal.id):
            try:
                existing = await self._profiles.get_by_auth_uid(principal.id)
                if existing is not None:
                    logger.debug(f"Profile already provisioned for {principal.id}")
                    return existing

                try:
                    profile = await self._profiles.create(
                        {
                            "auth_uid": principal.id,
                            "full_name": principal.display_name,
                            "email": principal.email,
                            "role": ProfileRole.GUEST.value,
                            "city": DEFAULT_CITY,
                            "verified": False,
                        }
                    )
                    logger.info(f"Provisioned default profile for {principal.id}")
                except ConflictError:
                    logger.debug(f"Profile for {principal.id} created concurrently")
                    profile = await self._profiles.get_by_auth_uid(principal.id)
            except GuideError as e:
                logger.error(f"Error provisioning profile for {principal.id}: {e.message}")
                return None

        if profile is not None:
            self._cache.set(
                profile_cache_key(principal.id), profile, self._settings.profile_ttl_seconds
            )
        return profile

    @asynccontextmanager
    async def _provision_lock(self, principal_id: str) -> AsyncIterator[None]:
        """Serialize profile creation per principal; drop the lock once unused."""
        lock, users = self._provision_locks.get(principal_id, (asyncio.Lock(), 0))
        self._provision_locks[principal_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._provision_locks[principal_id]
            if users == 1:
                del self._provision_locks[principal_id]
            else:
                self._provision_locks[principal_id] = (lock, users - 1)

    # -------------------------------------------------------------------------
    # Session change feed
    # -------------------------------------------------------------------------

    def _on_session_change(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        self._tasks.spawn(
            self.handle_session_change(event, session),
            name=f"auth-{event.value.lower()}",
        )

    async def handle_session_change(
        self,
        event: AuthEvent,
        session: Optional[AuthSession],
    ) -> None:
        """Apply a session change reported by the Gateway."""
        epoch = self._epoch
        if session is None:
            self._apply(status=AuthStatus.ANONYMOUS, principal=None, profile=None, error=None)
            return

        principal = session.principal
        profile = None
        if event == AuthEvent.SIGNED_IN:
            profile = await self.provision_profile(principal)
        if profile is None:
            profile = await self.fetch_profile(principal.id)

        if epoch != self._epoch:
            return
        self._apply(
            status=AuthStatus.AUTHENTICATED,
            principal=principal,
            profile=profile,
            error=None,
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        role: ProfileRole = ProfileRole.GUEST,
    ) -> MutationResult[Principal]:
        """
        Register a principal and create its profile.

        A profile insert failure after the principal was created is logged
        and not rolled back.
        """
        try:
            request = SignUpRequest(email=email, password=password, full_name=full_name, role=role)
        except PydanticValidationError as e:
            return self._fail(ValidationError.from_pydantic(e, code="INVALID_SIGN_UP"))

        self._begin()
        try:
            principal = await self._auth.sign_up(
                request.email,
                request.password,
                {"full_name": request.full_name},
            )
        except GuideError as e:
            return self._fail(e)

        if principal is not None:
            await self._create_signed_up_profile(principal, request)
        self._settle()
        return MutationResult.ok(principal)

    async def _create_signed_up_profile(self, principal: Principal, request: SignUpRequest) -> None:
        async with self._provision_lock(principal.id):
            try:
                profile = await self._profiles.create(
                    {
                        "auth_uid": principal.id,
                        "full_name": request.full_name,
                        "email": request.email,
                        "role": request.role.value,
                        "city": request.city,
                        "verified": False,
                    }
                )
            except ConflictError:
                # A SIGNED_IN event provisioned the default profile first
                profile = await self._upgrade_provisioned_profile(principal, request)
            except GuideError as e:
                logger.error(f"Profile creation failed after sign-up for {principal.id}: {e.message}")
                return

        if profile is not None:
            self._cache.set(
                profile_cache_key(principal.id), profile, self._settings.profile_ttl_seconds
            )

    async def _upgrade_provisioned_profile(
        self,
        principal: Principal,
        request: SignUpRequest,
    ) -> Optional[Profile]:
        try:
            existing = await self._profiles.get_by_auth_uid(principal.id)
            if existing is None:
                return None
            return await self._profiles.update(
                existing.id,
                {"full_name": request.full_name, "role": request.role.value, "city": request.city},
            )
        except GuideError as e:
            logger.error(f"Profile update failed after sign-up for {principal.id}: {e.message}")
            return None

    async def sign_in(self, email: str, password: str) -> MutationResult[Principal]:
        """Sign in with email and password."""
        if not email or not email.strip() or not password:
            return self._fail(
                ValidationError("Email and password are required", code="MISSING_CREDENTIALS")
            )

        self._begin()
        epoch = self._epoch
        try:
            session = await self._auth.sign_in_with_password(email.strip(), password)
        except GuideError as e:
            return self._fail(e)

        profile = await self.fetch_profile(session.principal.id)
        if epoch == self._epoch:
            self._apply(
                status=AuthStatus.AUTHENTICATED,
                principal=session.principal,
                profile=profile,
                error=None,
            )
        logger.info(f"Signed in {session.principal.id}")
        return MutationResult.ok(session.principal)

    async def sign_in_with_google(self) -> MutationResult[str]:
        """
        Start a Google sign-in.

        Returns:
            Result carrying the URL to send the user agent to. Provisioning
            happens when the Gateway reports the SIGNED_IN event.
        """
        self._begin()
        try:
            url = await self._auth.sign_in_with_oauth(
                GOOGLE_PROVIDER,
                self._settings.oauth_redirect_url,
            )
        except GuideError as e:
            return self._fail(e)
        self._settle()
        return MutationResult.ok(url)

    async def complete_oauth_sign_in(self, auth_code: str) -> MutationResult[Principal]:
        """Finish a federated sign-in from the callback's authorization code."""
        if not auth_code:
            return self._fail(ValidationError("Missing authorization code", code="MISSING_AUTH_CODE"))

        self._begin()
        try:
            session = await self._auth.exchange_code(auth_code)
        except GuideError as e:
            return self._fail(e)

        await self.handle_session_change(AuthEvent.SIGNED_IN, session)
        return MutationResult.ok(session.principal)

    async def sign_out(self) -> MutationResult[None]:
        """End the session, clear the cache and reset to anonymous."""
        self._begin()
        try:
            await self._auth.sign_out()
        except GuideError as e:
            return self._fail(e)

        self._epoch += 1
        self._cache.clear()
        self._apply(status=AuthStatus.ANONYMOUS, principal=None, profile=None, error=None)
        logger.info("Signed out")
        return MutationResult.ok()

    async def update_profile(
        self,
        changes: Union[ProfileUpdate, dict[str, Any]],
    ) -> MutationResult[Profile]:
        """
        Send a partial profile update.

        The row returned by the Gateway is merged into local state and into
        the cached profile for the principal.
        """
        profile = self.state.profile
        if profile is None:
            return self._fail(ProfileNotFoundError())

        if isinstance(changes, dict):
            try:
                changes = ProfileUpdate.model_validate(changes)
            except PydanticValidationError as e:
                return self._fail(ValidationError.from_pydantic(e, code="INVALID_PROFILE_UPDATE"))

        fields = changes.changes()
        if not fields:
            return self._fail(EmptyProfileUpdateError())

        self._begin()
        epoch = self._epoch
        try:
            updated = await self._profiles.update(profile.id, fields)
        except GuideError as e:
            return self._fail(e)
        if updated is None:
            return self._fail(NotFoundError("Profile no longer exists", code="PROFILE_NOT_FOUND"))

        self._cache.set(
            profile_cache_key(updated.auth_uid), updated, self._settings.profile_ttl_seconds
        )
        if epoch == self._epoch:
            self._apply(profile=updated)
            self._settle()
        return MutationResult.ok(updated)

    async def switch_role(self, role: ProfileRole) -> MutationResult[Profile]:
        """Switch between guest and host."""
        return await self.update_profile(ProfileUpdate(role=role))

    # -------------------------------------------------------------------------
    # State helpers
    # -------------------------------------------------------------------------

    def _is_current(self, principal: Principal, epoch: int) -> bool:
        current = self.state.principal
        return epoch == self._epoch and current is not None and current.id == principal.id

    def _apply(self, **changes: Any) -> None:
        if self._tasks.closed:
            return
        self._store.update(**changes)

    def _begin(self) -> None:
        self._apply(status=AuthStatus.LOADING, error=None)

    def _settle(self, error: Optional[str] = None) -> None:
        status = AuthStatus.AUTHENTICATED if self.state.principal else AuthStatus.ANONYMOUS
        self._apply(status=status, error=error)

    def _fail(self, error: GuideError) -> MutationResult:
        logger.warning(f"Auth operation failed: {error.message}")
        self._settle(error.message)
        return MutationResult.fail(error)
