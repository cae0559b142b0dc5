"""Photo persistence and live feed."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from artspark.domain.errors import Forbidden, NotFound, ValidationError
from artspark.domain.photos import PhotoDraft, PhotoPatch, PhotoRecord
from artspark.services.session_context import SessionContext

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=UTC)


class PhotoRepository(Protocol):
    """Persistence interface for photo records."""

    def create_photo(
        self, title: str, url: str, owner_id: str, owner_email: str | None
    ) -> UUID:
        """Create a photo record and return its id."""

    def merge_photo(  # noqa: PLR0913
        self,
        photo_id: UUID,
        title: str,
        url: str,
        owner_id: str,
        owner_email: str | None,
    ) -> None:
        """Upsert a photo record, restamping its timestamps."""

    def list_photos(self) -> list[PhotoRecord]:
        """Return every photo, newest first."""

    def list_by_owner(self, owner_id: str) -> list[PhotoRecord]:
        """Return photos for an owner in storage order."""

    def get_photo(self, photo_id: UUID) -> PhotoRecord | None:
        """Return a photo by id, if present."""

    def update_photo(self, photo_id: UUID, changes: dict[str, object]) -> None:
        """Apply a partial update to a photo."""

    def delete_photo(self, photo_id: UUID) -> None:
        """Delete a photo record."""


class PhotoChangeNotifier(Protocol):
    """Push notifications for any change to the photo collection."""

    async def watch(
        self, on_change: Callable[[], None]
    ) -> Callable[[], Awaitable[None]]:
        """Start listening and return a coroutine function that stops it."""


_CHANGED = object()
_CLOSED = object()


class FeedSubscription:
    """Async stream of full photo lists, one per change in the collection.

    Each snapshot replaces the previous one; notifications that arrive while
    a snapshot is pending are folded into it. The subscription owns the
    server listener and releases it on ``close``.
    """

    def __init__(self, load: Callable[[], list[PhotoRecord]]) -> None:
        self._load = load
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._stop: Callable[[], Awaitable[None]] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        """Return True once the subscription has been closed."""
        return self._closed

    async def open(self, notifier: PhotoChangeNotifier) -> "FeedSubscription":
        """Register with the notifier and queue the initial snapshot."""
        self._stop = await notifier.watch(self.notify)
        self.notify()
        return self

    def notify(self) -> None:
        """Mark the collection as changed."""
        if not self._closed:
            self._queue.put_nowait(_CHANGED)

    async def close(self) -> None:
        """Stop the server listener and end iteration."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        if self._stop is not None:
            stop, self._stop = self._stop, None
            await stop()

    def __aiter__(self) -> AsyncIterator[list[PhotoRecord]]:
        return self

    async def __anext__(self) -> list[PhotoRecord]:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        marker = await self._queue.get()
        while marker is _CHANGED and not self._queue.empty():
            marker = self._queue.get_nowait()
        if marker is _CLOSED:
            raise StopAsyncIteration
        return self._load()

    async def __aenter__(self) -> "FeedSubscription":
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.close()

    async def forward(self, callback: Callable[[list[PhotoRecord]], None]) -> None:
        """Invoke ``callback`` with every snapshot until the subscription closes."""
        async for photos in self:
            callback(photos)


@dataclass
class PhotoService:
    """CRUD and live feed over photo records for the current session."""

    repository: PhotoRepository
    notifier: PhotoChangeNotifier
    session: SessionContext

    def save(self, draft: PhotoDraft) -> UUID:
        """Create a photo, or merge into an existing one when ``draft.id`` is set.

        Owner fields always come from the session. A merge restamps
        ``created_at``, so an edited photo moves to the top of the feed.
        Merging into another user's photo raises ``Forbidden``.
        """
        identity = self.session.require()
        if draft.id is not None:
            existing = self.repository.get_photo(draft.id)
            if existing is not None and existing.owner_id != identity.uid:
                raise Forbidden("You can only edit your own photos")
            self.repository.merge_photo(
                draft.id,
                title=draft.title,
                url=draft.url,
                owner_id=identity.uid,
                owner_email=identity.email,
            )
            return draft.id
        return self.repository.create_photo(
            title=draft.title,
            url=draft.url,
            owner_id=identity.uid,
            owner_email=identity.email,
        )

    def get_all(self) -> list[PhotoRecord]:
        """Return all photos, newest first."""
        return self.repository.list_photos()

    async def subscribe(self) -> FeedSubscription:
        """Open a live feed subscription; the caller must close it."""
        return await FeedSubscription(self.get_all).open(self.notifier)

    def get_by_owner(self, owner_id: str | None = None) -> list[PhotoRecord]:
        """Return photos for an owner, defaulting to the session user."""
        effective_owner = owner_id or self.session.uid
        if not effective_owner:
            return []
        photos = self.repository.list_by_owner(effective_owner)
        return sorted(photos, key=_created_at_key, reverse=True)

    def get_by_id(self, photo_id: UUID) -> PhotoRecord | None:
        """Return a photo by id, or None when missing."""
        return self.repository.get_photo(photo_id)

    def update(self, photo_id: UUID, patch: PhotoPatch) -> None:
        """Apply a title/url change to a photo owned by the session user."""
        identity = self.session.require()
        changes = patch.as_changes()
        if not changes:
            raise ValidationError("Nothing to update")
        if "title" in changes and not str(changes["title"]).strip():
            raise ValidationError("Please enter a title")
        existing = self.repository.get_photo(photo_id)
        if existing is None:
            raise NotFound("Photo not found")
        if existing.owner_id != identity.uid:
            raise Forbidden("You can only edit your own photos")
        self.repository.update_photo(photo_id, changes)

    def delete(self, photo_id: UUID, owner_id: str) -> None:
        """Delete a photo when ``owner_id`` matches the session user."""
        identity = self.session.require()
        if identity.uid != owner_id:
            raise Forbidden("You can only delete your own photos")
        self.repository.delete_photo(photo_id)
        logger.info("Deleted photo %s", photo_id)


def _created_at_key(photo: PhotoRecord) -> datetime:
    return photo.created_at or _EPOCH
