"""
Experience catalog and host listing services.

CatalogService is the read path for published experiences, mediated by
the shared TTL cache. HostExperienceService is the write path used by
hosts; every successful write invalidates the catalog cache so the next
catalog read is authoritative.
"""

import logging
from typing import Any, Callable, Optional, Union

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from shared.cache import TTLCache
from shared.config import Settings, get_settings
from shared.exceptions import GuideError, ValidationError
from shared.models import MutationResult
from shared.state import StateStore

from modules.auth.models import Profile

from .exceptions import (
    ExperienceAccessDeniedError,
    ExperienceNotFoundError,
    NotHostError,
)
from .interfaces import IExperienceRepository
from .models import (
    CatalogState,
    Experience,
    ExperienceCreate,
    ExperienceUpdate,
    HostExperiencesState,
)

logger = logging.getLogger(__name__)


CATALOG_KEY = "experiences:published:v1"
SEARCH_PREFIX = "search:v1:"
EXPERIENCE_PREFIX = "experience:v1:"
CATALOG_PREFIXES = ("experiences:", "search:", "experience:")

EXPERIENCE_LIST = TypeAdapter(list[Experience])


def search_cache_key(term: str) -> str:
    return f"{SEARCH_PREFIX}{term.lower()}"


def experience_cache_key(experience_id: str) -> str:
    return f"{EXPERIENCE_PREFIX}{experience_id}"


def filter_by_city(experiences: list[Experience], term: str) -> list[Experience]:
    """Experiences whose city contains `term`, case-insensitively, in order."""
    needle = term.lower()
    return [exp for exp in experiences if needle in exp.city.lower()]


class CatalogService:
    """
    Read path for the published-experience catalog.

    Reads never raise. A failed fetch records `state.error` and returns the
    last-known list.
    """

    def __init__(
        self,
        repository: IExperienceRepository,
        cache: TTLCache,
        settings: Optional[Settings] = None,
    ):
        self._repository = repository
        self._cache = cache
        self._settings = settings or get_settings()
        self._store: StateStore[CatalogState] = StateStore(CatalogState())

    @property
    def state(self) -> CatalogState:
        return self._store.state

    def subscribe(self, listener: Callable[[CatalogState], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    async def list_experiences(self, force_refresh: bool = False) -> list[Experience]:
        """
        Published experiences, newest first, bounded to the first page.

        Served from cache when a live entry exists, unless force_refresh.
        """
        if not force_refresh:
            cached = self._cache.get(CATALOG_KEY)
            if cached is not None:
                logger.debug("Catalog cache hit")
                experiences = EXPERIENCE_LIST.validate_python(cached)
                if experiences != self.state.experiences:
                    self._cache.clear_prefix(SEARCH_PREFIX)
                self._store.update(experiences=experiences, loaded=True, loading=False, error=None)
                return experiences

        self._store.update(loading=True, error=None)
        try:
            experiences = await self._repository.list_published(self._settings.catalog_page_size)
        except GuideError as e:
            logger.warning(f"Failed to fetch experiences: {e.message}")
            self._store.update(loading=False, error=e.message)
            return list(self.state.experiences)

        # Search results are derived from the list, so they go stale with it
        self._cache.clear_prefix(SEARCH_PREFIX)
        self._cache.set(CATALOG_KEY, experiences, self._settings.catalog_ttl_seconds)
        self._store.update(experiences=experiences, loaded=True, loading=False, error=None)
        return experiences

    async def refetch(self) -> list[Experience]:
        return await self.list_experiences(force_refresh=True)

    def search_by_city(self, term: str) -> list[Experience]:
        """
        Filter the loaded list by city, without a round trip.

        An empty or blank term returns the full list unchanged. Results are
        cached per lowercased term once the list has loaded. Whitespace in a
        non-blank term is part of the match.
        """
        if not term or not term.strip():
            return list(self.state.experiences)

        if not self.state.loaded:
            return filter_by_city(self.state.experiences, term)

        key = search_cache_key(term)
        cached = self._cache.get(key)
        if cached is not None:
            return EXPERIENCE_LIST.validate_python(cached)

        filtered = filter_by_city(self.state.experiences, term)
        self._cache.set(key, filtered, self._settings.search_ttl_seconds)
        return filtered

    def get_by_id(self, experience_id: str) -> Optional[Experience]:
        """
        Look an experience up in already-fetched data.

        This never queries the Gateway; see prefetch() for that.
        """
        key = experience_cache_key(experience_id)
        cached = self._cache.get(key)
        if cached is not None:
            return Experience.model_validate(cached)

        for experience in self.state.experiences:
            if experience.id == experience_id:
                self._cache.set(key, experience, self._settings.experience_ttl_seconds)
                return experience
        return None

    async def prefetch(self, experience_id: str) -> Optional[Experience]:
        """
        Fetch one experience with its full host profile.

        Used when get_by_id misses, e.g. direct navigation to a detail page
        before the list has loaded. Not-found and failures return None.
        """
        key = experience_cache_key(experience_id)
        cached = self._cache.get(key)
        if cached is not None:
            return Experience.model_validate(cached)

        try:
            experience = await self._repository.get_by_id(experience_id)
        except GuideError as e:
            logger.error(f"Error prefetching experience {experience_id}: {e.message}")
            return None

        if experience is not None:
            self._cache.set(key, experience, self._settings.experience_ttl_seconds)
        return experience

    async def get_or_fetch(self, experience_id: str) -> Optional[Experience]:
        return self.get_by_id(experience_id) or await self.prefetch(experience_id)

    def invalidate(self) -> None:
        """Drop every catalog cache entry so the next read goes to the Gateway."""
        removed = self._cache.clear_prefix(*CATALOG_PREFIXES)
        logger.debug(f"Catalog cache invalidated ({removed} entries)")

    def update_in_cache(self, experience: Experience) -> None:
        """
        Write a server-returned row into the cached list, the per-id entry
        and local state. Unpublished rows drop out of the catalog.
        """
        def splice(experiences: list[Experience]) -> list[Experience]:
            if not experience.published:
                return [exp for exp in experiences if exp.id != experience.id]
            return [experience if exp.id == experience.id else exp for exp in experiences]

        cached = self._cache.get(CATALOG_KEY)
        if cached is not None:
            self._cache.set(
                CATALOG_KEY,
                splice(EXPERIENCE_LIST.validate_python(cached)),
                self._settings.catalog_ttl_seconds,
            )
        self._cache.set(
            experience_cache_key(experience.id),
            experience,
            self._settings.experience_ttl_seconds,
        )
        self._cache.clear_prefix(SEARCH_PREFIX)
        self._store.update(experiences=splice(self.state.experiences))


class HostExperienceService:
    """
    A host's own listings: list, create, edit, publish toggle and delete.

    Only host-role profiles may create listings, and only the owning host
    may change one.
    """

    def __init__(self, repository: IExperienceRepository, catalog: CatalogService):
        self._repository = repository
        self._catalog = catalog
        self._store: StateStore[HostExperiencesState] = StateStore(HostExperiencesState())

    @property
    def state(self) -> HostExperiencesState:
        return self._store.state

    def subscribe(self, listener: Callable[[HostExperiencesState], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    async def load(self, profile: Profile) -> list[Experience]:
        """All of the host's experiences, published or not, newest first."""
        self._store.update(loading=True, error=None)
        try:
            experiences = await self._repository.list_by_host(profile.id)
        except GuideError as e:
            logger.warning(f"Failed to fetch experiences for host {profile.id}: {e.message}")
            self._store.update(loading=False, error=e.message)
            return list(self.state.experiences)
        self._store.update(experiences=experiences, loading=False, error=None)
        return experiences

    async def create(
        self,
        profile: Profile,
        data: Union[ExperienceCreate, dict[str, Any]],
    ) -> MutationResult[Experience]:
        if not profile.is_host:
            return self._fail(NotHostError(profile.id))
        try:
            request = ExperienceCreate.model_validate(data)
        except PydanticValidationError as e:
            return self._fail(ValidationError.from_pydantic(e, code="INVALID_EXPERIENCE"))

        try:
            experience = await self._repository.create(profile.id, request.model_dump(mode="json"))
        except GuideError as e:
            return self._fail(e)

        self._store.update(experiences=[experience, *self.state.experiences], error=None)
        self._catalog.invalidate()
        logger.info(f"Host {profile.id} created experience {experience.id}")
        return MutationResult.ok(experience)

    async def update(
        self,
        profile: Profile,
        experience_id: str,
        changes: Union[ExperienceUpdate, dict[str, Any]],
    ) -> MutationResult[Experience]:
        try:
            update = ExperienceUpdate.model_validate(changes)
        except PydanticValidationError as e:
            return self._fail(ValidationError.from_pydantic(e, code="INVALID_EXPERIENCE"))
        fields = update.changes()
        if not fields:
            return self._fail(ValidationError("Nothing to update", code="EMPTY_EXPERIENCE_UPDATE"))

        try:
            await self._owned(profile, experience_id)
            updated = await self._repository.update(experience_id, fields)
        except GuideError as e:
            return self._fail(e)
        if updated is None:
            return self._fail(ExperienceNotFoundError(experience_id))

        self._store.update(
            experiences=[updated if exp.id == experience_id else exp for exp in self.state.experiences],
            error=None,
        )
        self._catalog.invalidate()
        return MutationResult.ok(updated)

    async def set_published(
        self,
        profile: Profile,
        experience_id: str,
        published: bool,
    ) -> MutationResult[Experience]:
        return await self.update(profile, experience_id, ExperienceUpdate(published=published))

    async def toggle_published(self, profile: Profile, experience_id: str) -> MutationResult[Experience]:
        try:
            experience = await self._owned(profile, experience_id)
        except GuideError as e:
            return self._fail(e)
        return await self.set_published(profile, experience_id, not experience.published)

    async def delete(self, profile: Profile, experience_id: str) -> MutationResult[None]:
        try:
            await self._owned(profile, experience_id)
            await self._repository.delete(experience_id)
        except GuideError as e:
            return self._fail(e)

        self._store.update(
            experiences=[exp for exp in self.state.experiences if exp.id != experience_id],
            error=None,
        )
        self._catalog.invalidate()
        logger.info(f"Host {profile.id} deleted experience {experience_id}")
        return MutationResult.ok()

    async def _owned(self, profile: Profile, experience_id: str) -> Experience:
        """Resolve a listing and check that `profile` owns it."""
        experience = next(
            (exp for exp in self.state.experiences if exp.id == experience_id),
            None,
        )
        if experience is None:
            experience = await self._repository.get_by_id(experience_id)
        if experience is None:
            raise ExperienceNotFoundError(experience_id)
        if experience.host_id != profile.id:
            raise ExperienceAccessDeniedError(experience_id, profile.id)
        return experience

    def _fail(self, error: GuideError) -> MutationResult:
        logger.warning(f"Experience operation failed: {error.message}")
        self._store.update(error=error.message)
        return MutationResult.fail(error)
