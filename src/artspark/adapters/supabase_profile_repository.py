"""Supabase-backed user role repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from artspark.domain.users import Role, UserProfile
from artspark.services.profiles import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for role records keyed by uid."""

    client: Client
    table: str = "users"

    def create_profile(self, uid: str, email: str | None, role: Role) -> None:
        """Create the role row for a new account."""
        self.client.table(self.table).insert(
            {
                "id": uid,
                "email": email,
                "role": role.value,
                "created_at": datetime.now(tz=UTC).isoformat(),
            }
        ).execute()

    def get_profile(self, uid: str) -> UserProfile | None:
        """Return the role row for a uid, if present."""
        response = (
            self.client.table(self.table)
            .select("id, email, role, created_at")
            .eq("id", uid)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        created_raw = row.get("created_at")
        return UserProfile(
            uid=str(row["id"]),
            email=row.get("email"),
            role=_parse_role(row.get("role")),
            created_at=(
                datetime.fromisoformat(created_raw)
                if isinstance(created_raw, str) and created_raw
                else None
            ),
        )


def _parse_role(raw: object) -> Role:
    try:
        return Role(str(raw))
    except ValueError:
        return Role.ARTIST
