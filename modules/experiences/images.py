"""
Listing image upload and removal.
"""

import logging
import time
from typing import Callable, Optional
from urllib.parse import urlparse

from shared.config import Settings, get_settings
from shared.exceptions import GuideError
from shared.models import MutationResult
from shared.storage import IObjectStore

from .exceptions import ImageTooLargeError, InvalidImageError
from .models import ExperienceImage

logger = logging.getLogger(__name__)


TEMP_FOLDER = "temp"


def image_path(filename: str, experience_id: Optional[str], millis: int) -> str:
    """Storage path `<experience_id or temp>/<millis>.<ext>`."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    return f"{experience_id or TEMP_FOLDER}/{millis}.{ext}"


def path_from_url(url: str) -> Optional[str]:
    """The bucket-relative path of a public URL: its last two segments."""
    segments = [s for s in urlparse(url).path.split("/") if s]
    if len(segments) < 2:
        return None
    return "/".join(segments[-2:])


class ExperienceImageService:
    """Validates and stores listing images in the configured bucket."""

    def __init__(
        self,
        store: IObjectStore,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._settings = settings or get_settings()
        self._clock = clock

    async def upload(
        self,
        filename: str,
        data: bytes,
        content_type: str,
        experience_id: Optional[str] = None,
        alt_text: Optional[str] = None,
    ) -> MutationResult[ExperienceImage]:
        if not content_type or not content_type.startswith("image/"):
            return self._fail(InvalidImageError(content_type))
        limit = self._settings.max_image_bytes
        if len(data) > limit:
            return self._fail(ImageTooLargeError(len(data), limit))

        path = image_path(filename, experience_id, int(self._clock() * 1000))
        try:
            url = await self._store.upload(self._settings.image_bucket, path, data, content_type)
        except GuideError as e:
            return self._fail(e)

        return MutationResult.ok(
            ExperienceImage(url=url, path=path, alt_text=alt_text or filename)
        )

    async def remove(self, url: str) -> MutationResult[None]:
        path = path_from_url(url)
        if path is None:
            logger.warning(f"Cannot derive storage path from image URL: {url}")
            return MutationResult.ok()
        try:
            await self._store.remove(self._settings.image_bucket, [path])
        except GuideError as e:
            return self._fail(e)
        return MutationResult.ok()

    def _fail(self, error: GuideError) -> MutationResult:
        logger.warning(f"Image operation failed: {error.message}")
        return MutationResult.fail(error)
