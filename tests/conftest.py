"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import pytest

from app.container import reset_container
from shared.cache import TTLCache
from shared.config import Settings, get_settings
from shared.database import reset_client_cache
from shared.models import Principal

from modules.auth.models import Profile, ProfileRole

from tests.fakes import FakeClock


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset module-level singletons before and after each test."""
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()
    yield
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()


@pytest.fixture
def settings() -> Settings:
    """Settings with the persistent cache mirror turned off."""
    return Settings(
        supabase_url="https://test.supabase.co",
        supabase_anon_key="test-anon-key",
        cache_mirror_enabled=False,
        _env_file=None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    """A fresh in-memory cache driven by the fake clock."""
    return TTLCache(clock=clock)


@pytest.fixture
def principal() -> Principal:
    return Principal(
        id="principal-1",
        email="amina@example.com",
        user_metadata={"full_name": "Amina Haddad"},
    )


@pytest.fixture
def guest_profile() -> Profile:
    return Profile(
        id="guest-1",
        auth_uid="principal-1",
        full_name="Amina Haddad",
        email="amina@example.com",
        role=ProfileRole.GUEST,
        city="Rabat",
    )


@pytest.fixture
def host_profile() -> Profile:
    return Profile(
        id="host-1",
        auth_uid="principal-2",
        full_name="Youssef Benali",
        email="youssef@example.com",
        role=ProfileRole.HOST,
        city="Marrakech",
        verified=True,
    )
