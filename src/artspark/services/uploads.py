"""Photo publishing pipeline with degraded-mode fallback."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from artspark.domain.errors import (
    ArtSparkError,
    Forbidden,
    NotFound,
    PersistError,
    UploadError,
    ValidationError,
)
from artspark.domain.photos import (
    TITLE_MAX_LENGTH,
    PhotoDraft,
    PhotoPatch,
    PhotoRecord,
    PublishResult,
)
from artspark.services.photos import PhotoService
from artspark.services.session_context import SessionContext

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]

_DEFAULT_CONTENT_TYPE = "image/jpeg"
_FALLBACK_STEP = 80

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/heic": ".heic",
}


@dataclass(frozen=True)
class ImagePayload:
    """Bytes materialised from a picked image reference."""

    content: bytes
    content_type: str = _DEFAULT_CONTENT_TYPE


class ImageFetcher(Protocol):
    """Interface for reading a local or remote image reference."""

    async def fetch(self, image_ref: str) -> ImagePayload:
        """Return the image bytes, raising FetchError when unreadable."""


class BlobStore(Protocol):
    """Interface for binary storage of photo files."""

    async def upload(self, path: str, payload: ImagePayload) -> str:
        """Upload bytes at ``path`` and return the stored path."""

    async def get_url(self, path: str) -> str:
        """Return a retrievable URL for a stored path."""

    def is_hosted(self, url: str) -> bool:
        """Return True when ``url`` points into this store."""


def _now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class _Progress:
    """Forward progress to an optional callback, remembering the last step."""

    callback: ProgressCallback | None = None
    percent: int = -1

    def report(self, percent: int, label: str) -> None:
        self.percent = percent
        if self.callback is not None:
            self.callback(percent, label)


@dataclass
class UploadOrchestrator:
    """Turn a picked image and a title into a persisted photo."""

    photo_service: PhotoService
    fetcher: ImageFetcher
    blob_store: BlobStore
    session: SessionContext
    supports_upload_timeout: bool = True
    upload_timeout_seconds: float = 15.0
    clock: Callable[[], datetime] = field(default=_now)

    async def publish(
        self,
        title: str,
        image_ref: str | None,
        progress: ProgressCallback | None = None,
    ) -> PublishResult:
        """Run the publish pipeline.

        Upload failures do not fail the call: the photo is saved with the
        original image reference and the result is flagged as degraded.
        Only a failed metadata write aborts once bytes have been read.
        """
        clean_title = _validate_title(title)
        if not image_ref:
            raise ValidationError("Please select an image to upload")
        identity = self.session.require()
        tracker = _Progress(progress)

        tracker.report(0, "Preparing upload...")
        tracker.report(10, "Converting image...")
        payload = await self.fetcher.fetch(image_ref)
        logger.info("Image payload ready, size=%s", len(payload.content))

        tracker.report(30, "Uploading to storage...")
        degraded = False
        try:
            url = await self._store(identity.uid, payload, tracker)
        except Exception:
            logger.warning(
                "Storage upload failed, using image reference directly",
                exc_info=True,
            )
            if tracker.percent < _FALLBACK_STEP:
                tracker.report(_FALLBACK_STEP, "Using fallback method...")
            url = image_ref
            degraded = True

        tracker.report(90, "Saving photo details...")
        photo_id = self._persist(PhotoDraft(title=clean_title, url=url))

        tracker.report(100, "Complete!")
        logger.info("Published photo %s (degraded=%s)", photo_id, degraded)
        return PublishResult(photo_id=photo_id, url=url, degraded=degraded)

    def find_degraded(self, owner_id: str | None = None) -> list[PhotoRecord]:
        """Return the owner's photos whose image is not hosted in storage."""
        return [
            photo
            for photo in self.photo_service.get_by_owner(owner_id)
            if not self.blob_store.is_hosted(photo.url)
        ]

    async def repair(self, photo_id: UUID) -> str:
        """Upload the original image of a degraded photo and point it at storage."""
        identity = self.session.require()
        photo = self.photo_service.get_by_id(photo_id)
        if photo is None:
            raise NotFound("Photo not found")
        if photo.owner_id != identity.uid:
            raise Forbidden("You can only repair your own photos")
        if self.blob_store.is_hosted(photo.url):
            return photo.url

        payload = await self.fetcher.fetch(photo.url)
        try:
            url = await self._store(identity.uid, payload, _Progress())
        except Exception as exc:
            raise UploadError(f"Failed to upload photo: {exc}") from exc
        self.photo_service.update(photo_id, PhotoPatch(url=url))
        logger.info("Repaired degraded photo %s", photo_id)
        return url

    async def _store(
        self,
        owner_id: str,
        payload: ImagePayload,
        tracker: _Progress,
    ) -> str:
        path = self._object_path(owner_id, payload.content_type)
        logger.info("Uploading to storage: %s", path)
        upload = self.blob_store.upload(path, payload)
        tracker.report(60, "Uploading to storage...")
        if self.supports_upload_timeout:
            try:
                stored_path = await asyncio.wait_for(
                    upload, timeout=self.upload_timeout_seconds
                )
            except TimeoutError as exc:
                raise UploadError(
                    f"Upload timeout after {self.upload_timeout_seconds:g} seconds"
                ) from exc
        else:
            stored_path = await upload
        tracker.report(80, "Getting download URL...")
        return await self.blob_store.get_url(stored_path)

    def _object_path(self, owner_id: str, content_type: str) -> str:
        millis = int(self.clock().timestamp() * 1000)
        extension = _EXTENSIONS.get(content_type, ".jpg")
        return f"{owner_id}_{millis}{extension}"

    def _persist(self, draft: PhotoDraft) -> UUID:
        try:
            return self.photo_service.save(draft)
        except ArtSparkError:
            raise
        except Exception as exc:
            logger.exception("Failed to save photo details")
            raise PersistError(f"Failed to save photo details: {exc}") from exc


def _validate_title(title: str | None) -> str:
    clean = (title or "").strip()
    if not clean:
        raise ValidationError("Please enter a title for your photo")
    if len(clean) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Title must be at most {TITLE_MAX_LENGTH} characters"
        )
    return clean
