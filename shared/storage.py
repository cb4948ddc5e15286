"""
Object storage over Supabase Storage.

Only the three operations the data layer needs are exposed: upload a blob
and get its public URL back, remove blobs, and build a public URL.
"""

import inspect
import logging
from typing import Protocol, runtime_checkable

import httpx
from supabase import AsyncClient, StorageException

from .exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


@runtime_checkable
class IObjectStore(Protocol):
    """Interface for blob storage."""

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        """
        Store a blob and return its public URL.

        Raises:
            ExternalServiceError: If the upload failed.
        """
        ...

    async def remove(self, bucket: str, paths: list[str]) -> None:
        """Delete blobs by path."""
        ...

    async def get_public_url(self, bucket: str, path: str) -> str:
        """Public URL of a stored blob."""
        ...


class SupabaseObjectStore:
    """IObjectStore backed by Supabase Storage buckets."""

    def __init__(self, db: AsyncClient, cache_control_seconds: int = 3600):
        self._db = db
        self._cache_control = str(cache_control_seconds)

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        try:
            await self._db.storage.from_(bucket).upload(
                path,
                data,
                file_options={
                    "content-type": content_type,
                    "cache-control": self._cache_control,
                    "upsert": "false",
                },
            )
        except (StorageException, httpx.HTTPError) as e:
            raise ExternalServiceError(
                f"Failed to upload {path}: {e}",
                service="storage",
                code="UPLOAD_FAILED",
                details={"bucket": bucket, "path": path},
            )
        logger.info(f"Uploaded {path} to bucket {bucket}")
        return await self.get_public_url(bucket, path)

    async def remove(self, bucket: str, paths: list[str]) -> None:
        try:
            await self._db.storage.from_(bucket).remove(paths)
        except (StorageException, httpx.HTTPError) as e:
            raise ExternalServiceError(
                f"Failed to remove {', '.join(paths)}: {e}",
                service="storage",
                code="REMOVE_FAILED",
                details={"bucket": bucket, "paths": paths},
            )

    async def get_public_url(self, bucket: str, path: str) -> str:
        url = self._db.storage.from_(bucket).get_public_url(path)
        # The async bucket API returns a coroutine, the sync one a string
        if inspect.isawaitable(url):
            url = await url
        return str(url)
