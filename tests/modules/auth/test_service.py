import asyncio
import pytest

from shared.exceptions import ExternalServiceError
from shared.models import Principal

from modules.auth.models import AuthEvent, AuthSession, AuthStatus, Profile, ProfileRole
from modules.auth.service import SessionManager, profile_cache_key

from tests.fakes import FakeAuthProvider, FakeProfileRepository


@pytest.fixture
def auth():
    return FakeAuthProvider()


@pytest.fixture
def profiles():
    return FakeProfileRepository()


@pytest.fixture
def manager(auth, profiles, cache, settings):
    return SessionManager(auth, profiles, cache, settings)


def existing_profile(principal: Principal, role: ProfileRole = ProfileRole.GUEST) -> Profile:
    return Profile(
        id="profile-existing",
        auth_uid=principal.id,
        full_name="Amina Haddad",
        role=role,
        city="Rabat",
    )


class TestInitialize:
    @pytest.mark.asyncio
    async def test_no_session_is_anonymous(self, manager):
        """Should settle to anonymous when the Gateway has no session."""
        await manager.start()

        assert manager.state.status == AuthStatus.ANONYMOUS
        assert manager.state.principal is None
        assert manager.state.loading is False

    @pytest.mark.asyncio
    async def test_restores_principal_then_profile(self, manager, auth, profiles, principal):
        """Should expose the principal before the profile resolves."""
        auth.session = AuthSession(principal=principal)
        profiles.add(existing_profile(principal))
        seen = []
        manager.subscribe(seen.append)

        await manager.start()

        assert any(s.principal is not None and s.profile is None for s in seen)
        assert manager.state.is_authenticated
        assert manager.state.profile.id == "profile-existing"

    @pytest.mark.asyncio
    async def test_gateway_failure_is_error_state(self, manager, auth):
        """Should record the error when the session cannot be restored."""
        auth.error = ExternalServiceError("Gateway down", service="auth")

        await manager.start()

        assert manager.state.status == AuthStatus.ERROR
        assert manager.state.error == "Gateway down"

    @pytest.mark.asyncio
    async def test_profile_is_served_from_cache(self, manager, auth, profiles, principal, cache):
        """Should not query the profile table when the profile is cached."""
        auth.session = AuthSession(principal=principal)
        cache.set(profile_cache_key(principal.id), existing_profile(principal))

        await manager.start()

        assert profiles.count("get_by_auth_uid") == 0
        assert manager.state.profile.id == "profile-existing"

    @pytest.mark.asyncio
    async def test_close_stops_listening(self, manager, auth):
        """Should unregister from the session change feed."""
        await manager.start()
        assert len(auth.handlers) == 1

        await manager.close()

        assert auth.handlers == []


class TestProvisioning:
    @pytest.mark.asyncio
    async def test_creates_default_guest_profile(self, manager, profiles, principal):
        """Should insert a guest profile with defaults for a new principal."""
        profile = await manager.provision_profile(principal)

        assert profile.role == ProfileRole.GUEST
        assert profile.city == "Unknown"
        assert profile.verified is False
        assert profile.full_name == "Amina Haddad"
        assert len(profiles.for_principal(principal.id)) == 1

    @pytest.mark.asyncio
    async def test_name_falls_back_to_email(self, manager):
        """Should derive the display name from the email local part."""
        profile = await manager.provision_profile(
            Principal(id="p-9", email="karim@example.com")
        )
        assert profile.full_name == "karim"

    @pytest.mark.asyncio
    async def test_twice_in_succession_creates_one_profile(self, manager, profiles, principal):
        """Provisioning the same principal twice should leave exactly one row."""
        first = await manager.provision_profile(principal)
        second = await manager.provision_profile(principal)

        assert first.id == second.id
        assert len(profiles.for_principal(principal.id)) == 1
        assert profiles.count("create") == 1

    @pytest.mark.asyncio
    async def test_concurrent_calls_create_one_profile(self, manager, profiles, principal):
        """Concurrent sign-in events should not duplicate the profile."""
        profiles.yield_on_create = True

        results = await asyncio.gather(
            manager.provision_profile(principal),
            manager.provision_profile(principal),
        )

        assert results[0].id == results[1].id
        assert len(profiles.for_principal(principal.id)) == 1

    @pytest.mark.asyncio
    async def test_locks_are_released_after_use(self, manager, profiles, principal):
        """Per-principal locks should not accumulate once provisioning settles."""
        profiles.yield_on_create = True

        await asyncio.gather(
            manager.provision_profile(principal),
            manager.provision_profile(principal),
            manager.provision_profile(Principal(id="p-9", email="karim@example.com")),
        )

        assert manager._provision_locks == {}

    @pytest.mark.asyncio
    async def test_lock_is_released_on_failure(self, manager, profiles, principal):
        profiles.error = ExternalServiceError("Gateway down", service="supabase")

        assert await manager.provision_profile(principal) is None
        assert manager._provision_locks == {}

    @pytest.mark.asyncio
    async def test_conflict_reads_the_winner(self, auth, profiles, cache, settings, principal):
        """Two managers racing on one principal should converge on one row."""
        profiles.yield_on_create = True
        first = SessionManager(auth, profiles, cache, settings)
        second = SessionManager(auth, profiles, cache, settings)

        results = await asyncio.gather(
            first.provision_profile(principal),
            second.provision_profile(principal),
        )

        assert results[0].id == results[1].id
        assert len(profiles.for_principal(principal.id)) == 1

    @pytest.mark.asyncio
    async def test_failure_returns_none(self, manager, profiles, principal):
        """Should log and return None when the Gateway fails."""
        profiles.error = ExternalServiceError("Gateway down", service="supabase")
        assert await manager.provision_profile(principal) is None


class TestSessionChanges:
    @pytest.mark.asyncio
    async def test_signed_in_event_provisions(self, manager, auth, profiles, principal):
        """A SIGNED_IN event should provision and authenticate."""
        await manager.start()

        auth.emit(AuthEvent.SIGNED_IN, AuthSession(principal=principal))
        await manager._tasks.wait()

        assert manager.state.is_authenticated
        assert manager.state.profile.auth_uid == principal.id
        assert len(profiles.for_principal(principal.id)) == 1

    @pytest.mark.asyncio
    async def test_repeated_signed_in_events(self, manager, auth, profiles, principal):
        """Repeated SIGNED_IN events should still leave one profile."""
        await manager.start()
        session = AuthSession(principal=principal)

        auth.emit(AuthEvent.SIGNED_IN, session)
        auth.emit(AuthEvent.SIGNED_IN, session)
        await manager._tasks.wait()

        assert len(profiles.for_principal(principal.id)) == 1

    @pytest.mark.asyncio
    async def test_signed_out_event(self, manager, auth, principal):
        """A session-less event should reset to anonymous."""
        auth.session = AuthSession(principal=principal)
        await manager.start()

        auth.emit(AuthEvent.SIGNED_OUT, None)
        await manager._tasks.wait()

        assert manager.state.status == AuthStatus.ANONYMOUS
        assert manager.state.profile is None

    @pytest.mark.asyncio
    async def test_token_refresh_does_not_provision(self, manager, profiles, principal):
        """Only SIGNED_IN should insert a profile."""
        await manager.handle_session_change(
            AuthEvent.TOKEN_REFRESHED, AuthSession(principal=principal)
        )

        assert profiles.count("create") == 0
        assert manager.state.profile is None


class TestGoogleSignIn:
    @pytest.mark.asyncio
    async def test_returns_redirect_url(self, manager, auth, settings):
        """Should start the federated flow with the configured redirect."""
        result = await manager.sign_in_with_google()

        assert result.success is True
        assert result.data.startswith("https://auth.example.com/authorize")
        assert auth.redirects == [settings.oauth_redirect_url]

    @pytest.mark.asyncio
    async def test_first_login_creates_one_guest_profile(self, manager, auth, profiles):
        """Anonymous user finishing Google sign-in gets exactly one guest profile."""
        await manager.start()
        auth.oauth_principal = Principal(
            id="google-user",
            email="nadia@example.com",
            user_metadata={"name": "Nadia"},
        )

        await manager.sign_in_with_google()
        result = await manager.complete_oauth_sign_in("code-123")

        assert result.success is True
        created = profiles.for_principal("google-user")
        assert len(created) == 1
        assert created[0].role == ProfileRole.GUEST
        assert created[0].verified is False
        assert manager.state.is_authenticated

    @pytest.mark.asyncio
    async def test_missing_code(self, manager, auth):
        """Should reject an empty code without calling the Gateway."""
        result = await manager.complete_oauth_sign_in("")

        assert result.success is False
        assert auth.count("exchange_code") == 0


class TestSignUp:
    @pytest.mark.asyncio
    async def test_creates_principal_and_profile(self, manager, auth, profiles):
        """Should register and insert a matching profile."""
        result = await manager.sign_up(
            "youssef@example.com", "secret1", "Youssef Benali", ProfileRole.HOST
        )

        assert result.success is True
        [profile] = profiles.for_principal(result.data.id)
        assert profile.role == ProfileRole.HOST
        assert profile.full_name == "Youssef Benali"

    @pytest.mark.asyncio
    async def test_invalid_input_is_rejected_locally(self, manager, auth):
        """Should not reach the Gateway with a short password."""
        result = await manager.sign_up("youssef@example.com", "123", "Youssef")

        assert result.success is False
        assert result.code == "INVALID_SIGN_UP"
        assert auth.count("sign_up") == 0

    @pytest.mark.asyncio
    async def test_profile_failure_does_not_fail_sign_up(self, manager, profiles, caplog):
        """A profile insert failure after registration should only be logged."""
        profiles.create_error = ExternalServiceError("insert failed", service="supabase")

        result = await manager.sign_up("youssef@example.com", "secret1", "Youssef")

        assert result.success is True
        assert "Profile creation failed after sign-up" in caplog.text

    @pytest.mark.asyncio
    async def test_conflict_upgrades_provisioned_profile(self, manager, auth, profiles):
        """Should update the default profile a SIGNED_IN event created first."""
        profiles.add(
            Profile(id="profile-default", auth_uid="principal-1", full_name="youssef")
        )

        result = await manager.sign_up(
            "youssef@example.com", "secret1", "Youssef Benali", ProfileRole.HOST
        )

        assert result.success is True
        [profile] = profiles.for_principal("principal-1")
        assert profile.full_name == "Youssef Benali"
        assert profile.role == ProfileRole.HOST


class TestSignIn:
    @pytest.mark.asyncio
    async def test_success(self, manager, auth, profiles, principal):
        """Should authenticate and load the profile."""
        auth.passwords["amina@example.com"] = ("secret1", principal)
        profiles.add(existing_profile(principal))

        result = await manager.sign_in("amina@example.com", "secret1")

        assert result.success is True
        assert manager.state.is_authenticated
        assert manager.state.profile.id == "profile-existing"

    @pytest.mark.asyncio
    async def test_wrong_password(self, manager):
        """Should surface the error and leave the manager not loading."""
        result = await manager.sign_in("amina@example.com", "nope")

        assert result.success is False
        assert result.code == "INVALID_CREDENTIALS"
        assert manager.state.error == "Invalid email or password"
        assert manager.state.loading is False

    @pytest.mark.asyncio
    async def test_missing_credentials(self, manager, auth):
        """Should reject empty credentials without a Gateway call."""
        result = await manager.sign_in("  ", "")

        assert result.success is False
        assert auth.count("sign_in_with_password") == 0


class TestSignOut:
    @pytest.mark.asyncio
    async def test_clears_cache_and_state(self, manager, auth, profiles, principal, cache):
        """After sign-out no key from before reads as present."""
        auth.session = AuthSession(principal=principal)
        profiles.add(existing_profile(principal))
        await manager.start()
        cache.set("experiences:published:v1", [])
        keys = [profile_cache_key(principal.id), "experiences:published:v1"]
        assert all(cache.get(key) is not None for key in keys)

        result = await manager.sign_out()

        assert result.success is True
        assert all(cache.get(key) is None for key in keys)
        assert manager.state.status == AuthStatus.ANONYMOUS
        assert manager.state.profile is None

    @pytest.mark.asyncio
    async def test_failure_keeps_session(self, manager, auth, principal):
        """A failed sign-out should leave the session in place."""
        auth.session = AuthSession(principal=principal)
        await manager.start()
        auth.error = ExternalServiceError("Gateway down", service="auth")

        result = await manager.sign_out()

        assert result.success is False
        assert manager.state.is_authenticated
        assert manager.state.error == "Gateway down"


async def sign_in_existing(manager, auth, profiles, principal) -> SessionManager:
    auth.session = AuthSession(principal=principal)
    profiles.add(existing_profile(principal))
    await manager.start()
    return manager


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_requires_profile(self, manager):
        """Should fail without a loaded profile."""
        result = await manager.update_profile({"city": "Fes"})

        assert result.success is False
        assert result.code == "PROFILE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_merges_into_state_and_cache(self, manager, auth, profiles, principal, cache):
        """Should apply the stored row to state and the cached profile."""
        signed_in = await sign_in_existing(manager, auth, profiles, principal)
        result = await signed_in.update_profile({"city": "Fes", "bio": "Guide since 2010"})

        assert result.success is True
        assert signed_in.state.profile.city == "Fes"
        cached = Profile.model_validate(cache.get(profile_cache_key(principal.id)))
        assert cached.bio == "Guide since 2010"

    @pytest.mark.asyncio
    async def test_empty_update(self, manager, auth, profiles, principal):
        """Should refuse an update that changes nothing."""
        signed_in = await sign_in_existing(manager, auth, profiles, principal)
        result = await signed_in.update_profile({})

        assert result.success is False
        assert result.code == "EMPTY_PROFILE_UPDATE"
        assert profiles.count("update") == 0

    @pytest.mark.asyncio
    async def test_unknown_field_is_rejected(self, manager, auth, profiles, principal):
        """Should not send fields the profile does not have."""
        signed_in = await sign_in_existing(manager, auth, profiles, principal)
        result = await signed_in.update_profile({"verified": True})

        assert result.success is False
        assert profiles.count("update") == 0

    @pytest.mark.asyncio
    async def test_switch_role(self, manager, auth, profiles, principal):
        """Should flip the profile between guest and host."""
        signed_in = await sign_in_existing(manager, auth, profiles, principal)
        result = await signed_in.switch_role(ProfileRole.HOST)

        assert result.success is True
        assert signed_in.state.profile.is_host
