"""
Time-bounded key/value cache.

Entries live in memory and are mirrored to a best-effort persistent store
so that a process restart within the same session does not force every
read back to the Gateway. Time is the only eviction signal: there is no
size bound and no LRU policy, the key space is small (one profile, one
catalog page, a handful of per-id lookups and search terms).

An entry is logically absent once ``now - timestamp > ttl``, whether or
not it has been physically removed yet.
"""

import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from pydantic_core import to_jsonable_python

logger = logging.getLogger(__name__)


DEFAULT_TTL_SECONDS = 120.0


@dataclass
class CacheEntry:
    """A cached value with its insertion time and lifetime."""

    value: Any
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class CacheMirror(Protocol):
    """Persistent store mirrored by TTLCache. Payloads are JSON-able dicts."""

    def read(self, key: str) -> Optional[dict[str, Any]]:
        ...

    def write(self, key: str, payload: dict[str, Any]) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def keys(self) -> list[str]:
        ...

    def clear(self) -> None:
        ...


class JsonFileMirror:
    """
    Mirror that keeps one JSON file per key in a directory.

    File names are a hash of the key; the key itself is stored inside the
    payload so prefix invalidation can enumerate entries.
    """

    def __init__(self, directory: Path):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._directory / f"{digest}.json"

    def read(self, key: str) -> Optional[dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return None
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict) or payload.get("key") != key:
            return None
        return payload

    def write(self, key: str, payload: dict[str, Any]) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        document = dict(payload, key=key)
        self._path(key).write_text(json.dumps(document), encoding="utf-8")

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        if not self._directory.exists():
            return []
        found = []
        for path in self._directory.glob("*.json"):
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                continue
            if isinstance(payload, dict) and isinstance(payload.get("key"), str):
                found.append(payload["key"])
        return found

    def clear(self) -> None:
        if not self._directory.exists():
            return
        for path in self._directory.glob("*.json"):
            path.unlink(missing_ok=True)


class TTLCache:
    """
    In-memory TTL cache with an optional persistent mirror.

    Construct one per application (see app.container.ServiceContainer) and
    inject it into every service that caches; tests build a fresh instance
    with a fake clock.
    """

    def __init__(
        self,
        mirror: Optional[CacheMirror] = None,
        clock: Callable[[], float] = time.time,
        default_ttl: float = DEFAULT_TTL_SECONDS,
    ):
        """
        Initialize the cache.

        Args:
            mirror: Persistent store to mirror writes into. None disables it.
            clock: Wall-clock source in seconds. Wall time (not monotonic) so
                   mirrored timestamps stay meaningful across restarts.
            default_ttl: Lifetime used when set() is called without one.
        """
        self._entries: dict[str, CacheEntry] = {}
        self._mirror = mirror
        self._clock = clock
        self._default_ttl = default_ttl
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[Any]:
        """
        Return the cached value, or None if absent or expired.

        Expired entries are purged on the way out. On an in-memory miss the
        mirror is consulted and a live mirrored entry is rehydrated.
        """
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is not None:
                if entry.is_expired(now):
                    logger.debug(f"Cache entry expired: {key}")
                    self._discard(key)
                    return None
                return entry.value

            entry = self._read_mirror(key)
            if entry is None:
                return None
            if entry.is_expired(now):
                self._discard(key)
                return None
            self._entries[key] = entry
            logger.debug(f"Cache entry restored from mirror: {key}")
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Insert or replace an entry, stamped with the current time."""
        lifetime = self._default_ttl if ttl is None else ttl
        with self._lock:
            entry = CacheEntry(value=value, timestamp=self._clock(), ttl=lifetime)
            self._entries[key] = entry
            self._write_mirror(key, entry)

    def delete(self, key: str) -> None:
        """Remove a single entry from memory and the mirror."""
        with self._lock:
            self._discard(key)

    def clear(self) -> None:
        """Remove every entry, including mirrored ones."""
        with self._lock:
            self._entries.clear()
            if self._mirror is not None:
                try:
                    self._mirror.clear()
                except OSError as e:
                    logger.warning(f"Failed to clear cache mirror: {e}")

    def clear_prefix(self, *prefixes: str) -> int:
        """
        Remove every entry whose key starts with one of the prefixes.

        Returns:
            Number of in-memory entries removed.
        """
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefixes)]
            for key in doomed:
                del self._entries[key]
            if self._mirror is not None:
                try:
                    for key in self._mirror.keys():
                        if key.startswith(prefixes):
                            self._mirror.remove(key)
                except OSError as e:
                    logger.warning(f"Failed to clear cache mirror prefixes: {e}")
            return len(doomed)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # -------------------------------------------------------------------------
    # Mirror helpers (best effort, never raise to the caller)
    # -------------------------------------------------------------------------

    def _discard(self, key: str) -> None:
        self._entries.pop(key, None)
        if self._mirror is not None:
            try:
                self._mirror.remove(key)
            except OSError as e:
                logger.debug(f"Failed to remove mirrored cache entry {key}: {e}")

    def _read_mirror(self, key: str) -> Optional[CacheEntry]:
        if self._mirror is None:
            return None
        try:
            payload = self._mirror.read(key)
        except (OSError, ValueError) as e:
            logger.debug(f"Failed to read mirrored cache entry {key}: {e}")
            return None
        if not payload:
            return None
        timestamp = payload.get("timestamp")
        ttl = payload.get("ttl")
        if not isinstance(timestamp, (int, float)) or not isinstance(ttl, (int, float)):
            return None
        return CacheEntry(value=payload.get("data"), timestamp=timestamp, ttl=ttl)

    def _write_mirror(self, key: str, entry: CacheEntry) -> None:
        if self._mirror is None:
            return
        try:
            self._mirror.write(
                key,
                {
                    "data": to_jsonable_python(entry.value),
                    "timestamp": entry.timestamp,
                    "ttl": entry.ttl,
                },
            )
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to mirror cache entry {key}: {e}")
