"""Request and response models for the HTTP API."""

from datetime import datetime
from urllib.parse import urlparse
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from artspark.domain.photos import TITLE_MAX_LENGTH, BookmarkRecord, PhotoRecord
from artspark.domain.users import Role

_CLIENT_IMAGE_SCHEMES = {"http", "https", "data"}


def _check_image_reference(value: str) -> str:
    scheme = urlparse(value).scheme.lower()
    if scheme not in _CLIENT_IMAGE_SCHEMES:
        raise ValueError("Image must be an http(s) URL or a data URI")
    return value


class SignUpRequest(BaseModel):
    """Account creation payload."""

    email: str
    password: str
    role: Role = Role.ARTIST


class SignInRequest(BaseModel):
    """Credentials payload."""

    email: str
    password: str


class IdentityResponse(BaseModel):
    uid: str
    email: str | None = None


class SignInResponse(IdentityResponse):
    access_token: str


class ProfileResponse(BaseModel):
    uid: str
    email: str | None = None
    role: Role


class PublishRequest(BaseModel):
    """Publish payload; ``image_uri`` is the reference returned by the picker."""

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    image_uri: str = Field(min_length=1)

    @field_validator("image_uri")
    @classmethod
    def check_image_uri(cls, value: str) -> str:
        return _check_image_reference(value)


class PublishResponse(BaseModel):
    id: UUID
    url: str
    degraded: bool


class PhotoUpdateRequest(BaseModel):
    """Partial update payload for a photo."""

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    url: str | None = None

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str | None) -> str | None:
        return None if value is None else _check_image_reference(value)


class PhotoResponse(BaseModel):
    id: UUID
    title: str
    url: str
    owner_id: str
    owner_email: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record: PhotoRecord) -> "PhotoResponse":
        return cls(
            id=record.id,
            title=record.title,
            url=record.url,
            owner_id=record.owner_id,
            owner_email=record.owner_email,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class BookmarkRequest(BaseModel):
    url: str = Field(min_length=1)
    source: str = "unsplash"


class BookmarkResponse(BaseModel):
    id: UUID
    uid: str
    url: str
    source: str
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: BookmarkRecord) -> "BookmarkResponse":
        return cls(
            id=record.id,
            uid=record.uid,
            url=record.url,
            source=record.source,
            created_at=record.created_at,
        )
