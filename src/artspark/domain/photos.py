"""Domain models for photos and bookmarks."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

TITLE_MAX_LENGTH = 50


@dataclass(frozen=True)
class PhotoRecord:
    """Represents a persisted photo."""

    id: UUID
    title: str
    url: str
    owner_id: str
    owner_email: str | None
    created_at: datetime | None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class PhotoDraft:
    """Fields supplied by the caller when saving a photo.

    When ``id`` is set the save merges into that record instead of creating one.
    """

    title: str
    url: str
    id: UUID | None = None


@dataclass(frozen=True)
class PhotoPatch:
    """Partial update for the mutable photo fields."""

    title: str | None = None
    url: str | None = None

    def as_changes(self) -> dict[str, object]:
        """Return only the fields that were set."""
        changes: dict[str, object] = {}
        if self.title is not None:
            changes["title"] = self.title
        if self.url is not None:
            changes["url"] = self.url
        return changes


@dataclass(frozen=True)
class PublishResult:
    """Outcome of publishing a photo."""

    photo_id: UUID
    url: str
    degraded: bool


@dataclass(frozen=True)
class BookmarkRecord:
    """A saved reference to an external image."""

    id: UUID
    uid: str
    url: str
    source: str
    created_at: datetime | None
