"""Bookmarks of external images."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from artspark.domain.errors import Forbidden, NotFound
from artspark.domain.photos import BookmarkRecord
from artspark.services.session_context import SessionContext

DEFAULT_BOOKMARK_SOURCE = "unsplash"


class BookmarkRepository(Protocol):
    """Persistence interface for bookmarks."""

    def create_bookmark(self, uid: str, url: str, source: str) -> UUID:
        """Create a bookmark and return its id."""

    def get_bookmark(self, bookmark_id: UUID) -> BookmarkRecord | None:
        """Return a bookmark by id, if present."""

    def list_by_uid(self, uid: str) -> list[BookmarkRecord]:
        """Return a user's bookmarks in storage order."""

    def delete_bookmark(self, bookmark_id: UUID) -> None:
        """Delete a bookmark."""


@dataclass
class BookmarkService:
    """Service for the session user's saved images."""

    repository: BookmarkRepository
    session: SessionContext

    def add(self, url: str, source: str = DEFAULT_BOOKMARK_SOURCE) -> UUID:
        """Save an external image reference."""
        identity = self.session.require()
        return self.repository.create_bookmark(identity.uid, url, source)

    def list_mine(self) -> list[BookmarkRecord]:
        """Return the session user's bookmarks, newest first."""
        uid = self.session.uid
        if not uid:
            return []
        bookmarks = self.repository.list_by_uid(uid)
        return sorted(
            bookmarks,
            key=lambda item: item.created_at or datetime.min.replace(tzinfo=UTC),
            reverse=True,
        )

    def remove(self, bookmark_id: UUID) -> None:
        """Delete one of the session user's bookmarks."""
        identity = self.session.require()
        bookmark = self.repository.get_bookmark(bookmark_id)
        if bookmark is None:
            raise NotFound("Bookmark not found")
        if bookmark.uid != identity.uid:
            raise Forbidden("You can only remove your own bookmarks")
        self.repository.delete_bookmark(bookmark_id)
