"""Supabase-backed photo repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from artspark.domain.photos import PhotoRecord
from artspark.services.photos import PhotoRepository

_COLUMNS = "id, title, url, owner_id, owner_email, created_at, updated_at"


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for photo records."""

    client: Client
    table: str = "photos"

    def create_photo(
        self, title: str, url: str, owner_id: str, owner_email: str | None
    ) -> UUID:
        """Create a photo row and return its id."""
        response = (
            self.client.table(self.table)
            .insert(
                {
                    "title": title,
                    "url": url,
                    "owner_id": owner_id,
                    "owner_email": owner_email,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create photo")
        return UUID(response.data[0]["id"])

    def merge_photo(  # noqa: PLR0913
        self,
        photo_id: UUID,
        title: str,
        url: str,
        owner_id: str,
        owner_email: str | None,
    ) -> None:
        """Upsert a photo row; both timestamps are set to now."""
        now = datetime.now(tz=UTC).isoformat()
        self.client.table(self.table).upsert(
            {
                "id": str(photo_id),
                "title": title,
                "url": url,
                "owner_id": owner_id,
                "owner_email": owner_email,
                "created_at": now,
                "updated_at": now,
            }
        ).execute()

    def list_photos(self) -> list[PhotoRecord]:
        """Return all photos, newest first."""
        response = (
            self.client.table(self.table)
            .select(_COLUMNS)
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_photo(row) for row in response.data or []]

    def list_by_owner(self, owner_id: str) -> list[PhotoRecord]:
        """Return photos for an owner without server-side ordering."""
        response = (
            self.client.table(self.table)
            .select(_COLUMNS)
            .eq("owner_id", owner_id)
            .execute()
        )
        return [_parse_photo(row) for row in response.data or []]

    def get_photo(self, photo_id: UUID) -> PhotoRecord | None:
        """Return a photo by id, if present."""
        response = (
            self.client.table(self.table)
            .select(_COLUMNS)
            .eq("id", str(photo_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_photo(response.data[0])

    def update_photo(self, photo_id: UUID, changes: dict[str, object]) -> None:
        """Apply a partial update and stamp updated_at."""
        self.client.table(self.table).update(
            {**changes, "updated_at": datetime.now(tz=UTC).isoformat()}
        ).eq("id", str(photo_id)).execute()

    def delete_photo(self, photo_id: UUID) -> None:
        """Delete a photo row."""
        self.client.table(self.table).delete().eq("id", str(photo_id)).execute()


def _parse_timestamp(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def _parse_photo(row: dict[str, object]) -> PhotoRecord:
    """Parse a photo row into a domain model."""
    return PhotoRecord(
        id=UUID(str(row["id"])),
        title=str(row.get("title") or ""),
        url=str(row.get("url") or ""),
        owner_id=str(row["owner_id"]),
        owner_email=row.get("owner_email"),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )
