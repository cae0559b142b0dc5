"""User role records."""

from dataclasses import dataclass
from typing import Protocol

from artspark.domain.errors import Unauthenticated
from artspark.domain.users import Role, UserProfile
from artspark.services.session_context import SessionContext


class ProfileRepository(Protocol):
    """Persistence interface for user role records."""

    def create_profile(self, uid: str, email: str | None, role: Role) -> None:
        """Create the role record for a new account."""

    def get_profile(self, uid: str) -> UserProfile | None:
        """Return the role record for a uid, if present."""


@dataclass
class ProfileService:
    """Read-side access to role records."""

    repository: ProfileRepository
    session: SessionContext

    def get_role(self, uid: str | None = None) -> Role:
        """Return the user's role, Artist when none is stored."""
        effective_uid = uid or self.session.uid
        if not effective_uid:
            raise Unauthenticated()
        profile = self.repository.get_profile(effective_uid)
        if profile is None:
            return Role.ARTIST
        return profile.role

    def get_profile(self) -> UserProfile:
        """Return the session user's profile for display."""
        identity = self.session.require()
        stored = self.repository.get_profile(identity.uid)
        return UserProfile(
            uid=identity.uid,
            email=identity.email or (stored.email if stored else None),
            role=stored.role if stored else Role.ARTIST,
            created_at=stored.created_at if stored else None,
        )
