"""Supabase-backed bookmark repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from artspark.domain.photos import BookmarkRecord
from artspark.services.bookmarks import BookmarkRepository

_COLUMNS = "id, uid, url, source, created_at"


@dataclass
class SupabaseBookmarkRepository(BookmarkRepository):
    """Supabase implementation for bookmarks."""

    client: Client
    table: str = "bookmarks"

    def create_bookmark(self, uid: str, url: str, source: str) -> UUID:
        """Create a bookmark row and return its id."""
        response = (
            self.client.table(self.table)
            .insert({"uid": uid, "url": url, "source": source})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create bookmark")
        return UUID(response.data[0]["id"])

    def get_bookmark(self, bookmark_id: UUID) -> BookmarkRecord | None:
        """Return a bookmark by id, if present."""
        response = (
            self.client.table(self.table)
            .select(_COLUMNS)
            .eq("id", str(bookmark_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_bookmark(response.data[0])

    def list_by_uid(self, uid: str) -> list[BookmarkRecord]:
        """Return a user's bookmarks."""
        response = (
            self.client.table(self.table)
            .select(_COLUMNS)
            .eq("uid", uid)
            .execute()
        )
        return [_parse_bookmark(row) for row in response.data or []]

    def delete_bookmark(self, bookmark_id: UUID) -> None:
        """Delete a bookmark row."""
        self.client.table(self.table).delete().eq("id", str(bookmark_id)).execute()


def _parse_bookmark(row: dict[str, object]) -> BookmarkRecord:
    created_raw = row.get("created_at")
    return BookmarkRecord(
        id=UUID(str(row["id"])),
        uid=str(row["uid"]),
        url=str(row.get("url") or ""),
        source=str(row.get("source") or ""),
        created_at=(
            datetime.fromisoformat(created_raw)
            if isinstance(created_raw, str) and created_raw
            else None
        ),
    )
