"""Domain models for users and sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class Role(StrEnum):
    """Roles a user can pick at sign-up."""

    ARTIST = "Artist"
    DIGITAL_ARTIST = "Digital Artist"
    PHOTOGRAPHER = "Photographer"


@dataclass(frozen=True)
class Identity:
    """An authenticated user as seen by the application."""

    uid: str
    email: str | None


@dataclass(frozen=True)
class AuthSession:
    """Identity plus the bearer token issued by the auth provider."""

    identity: Identity
    access_token: str


@dataclass(frozen=True)
class UserProfile:
    """Role record stored alongside the auth account."""

    uid: str
    email: str | None
    role: Role
    created_at: datetime | None = None
