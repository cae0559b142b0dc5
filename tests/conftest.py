"""Shared test fixtures."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from artspark.config import Settings
from artspark.containers import AppContainer
from artspark.domain.errors import AuthFailure, AuthFailureReason, FetchError
from artspark.domain.photos import BookmarkRecord, PhotoRecord
from artspark.domain.users import AuthSession, Identity, Role, UserProfile
from artspark.services.auth import AuthGateway
from artspark.services.bookmarks import BookmarkRepository
from artspark.services.photos import PhotoChangeNotifier, PhotoRepository
from artspark.services.profiles import ProfileRepository
from artspark.services.session_context import SessionContext
from artspark.services.uploads import BlobStore, ImageFetcher, ImagePayload

_BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@dataclass
class TickingClock:
    """Server clock that advances one second per reading."""

    ticks: int = 0

    def __call__(self) -> datetime:
        self.ticks += 1
        return _BASE_TIME + timedelta(seconds=self.ticks)


@dataclass
class InMemoryPhotoRepository(PhotoRepository):
    """In-memory photo repository for tests."""

    photos: dict[UUID, PhotoRecord] = field(default_factory=dict)
    clock: TickingClock = field(default_factory=TickingClock)

    def create_photo(
        self, title: str, url: str, owner_id: str, owner_email: str | None
    ) -> UUID:
        photo_id = uuid4()
        self.photos[photo_id] = PhotoRecord(
            id=photo_id,
            title=title,
            url=url,
            owner_id=owner_id,
            owner_email=owner_email,
            created_at=self.clock(),
        )
        return photo_id

    def merge_photo(  # noqa: PLR0913
        self,
        photo_id: UUID,
        title: str,
        url: str,
        owner_id: str,
        owner_email: str | None,
    ) -> None:
        now = self.clock()
        self.photos[photo_id] = PhotoRecord(
            id=photo_id,
            title=title,
            url=url,
            owner_id=owner_id,
            owner_email=owner_email,
            created_at=now,
            updated_at=now,
        )

    def list_photos(self) -> list[PhotoRecord]:
        return sorted(
            self.photos.values(), key=lambda photo: photo.created_at, reverse=True
        )

    def list_by_owner(self, owner_id: str) -> list[PhotoRecord]:
        return [photo for photo in self.photos.values() if photo.owner_id == owner_id]

    def get_photo(self, photo_id: UUID) -> PhotoRecord | None:
        return self.photos.get(photo_id)

    def update_photo(self, photo_id: UUID, changes: dict[str, object]) -> None:
        current = self.photos[photo_id]
        self.photos[photo_id] = PhotoRecord(
            id=current.id,
            title=str(changes.get("title", current.title)),
            url=str(changes.get("url", current.url)),
            owner_id=current.owner_id,
            owner_email=current.owner_email,
            created_at=current.created_at,
            updated_at=self.clock(),
        )

    def delete_photo(self, photo_id: UUID) -> None:
        self.photos.pop(photo_id, None)


@dataclass
class FakeChangeNotifier(PhotoChangeNotifier):
    """Notifier whose changes are fired by the test."""

    listeners: list[Callable[[], None]] = field(default_factory=list)
    stopped: int = 0

    async def watch(
        self, on_change: Callable[[], None]
    ) -> Callable[[], Awaitable[None]]:
        self.listeners.append(on_change)

        async def stop() -> None:
            self.stopped += 1
            self.listeners.remove(on_change)

        return stop

    def fire(self) -> None:
        for listener in list(self.listeners):
            listener()


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory role records for tests."""

    profiles: dict[str, UserProfile] = field(default_factory=dict)

    def create_profile(self, uid: str, email: str | None, role: Role) -> None:
        self.profiles[uid] = UserProfile(
            uid=uid, email=email, role=role, created_at=_BASE_TIME
        )

    def get_profile(self, uid: str) -> UserProfile | None:
        return self.profiles.get(uid)


@dataclass
class InMemoryBookmarkRepository(BookmarkRepository):
    """In-memory bookmark repository for tests."""

    bookmarks: dict[UUID, BookmarkRecord] = field(default_factory=dict)
    clock: TickingClock = field(default_factory=TickingClock)

    def create_bookmark(self, uid: str, url: str, source: str) -> UUID:
        bookmark_id = uuid4()
        self.bookmarks[bookmark_id] = BookmarkRecord(
            id=bookmark_id, uid=uid, url=url, source=source, created_at=self.clock()
        )
        return bookmark_id

    def get_bookmark(self, bookmark_id: UUID) -> BookmarkRecord | None:
        return self.bookmarks.get(bookmark_id)

    def list_by_uid(self, uid: str) -> list[BookmarkRecord]:
        return [item for item in self.bookmarks.values() if item.uid == uid]

    def delete_bookmark(self, bookmark_id: UUID) -> None:
        self.bookmarks.pop(bookmark_id, None)


@dataclass
class FakeAuthGateway(AuthGateway):
    """Auth gateway with in-memory accounts and tokens."""

    accounts: dict[str, tuple[str, str]] = field(default_factory=dict)
    tokens: dict[str, Identity] = field(default_factory=dict)
    revoked: list[str | None] = field(default_factory=list)

    def sign_up(self, email: str, password: str) -> Identity:
        if email in self.accounts:
            raise AuthFailure(AuthFailureReason.EMAIL_IN_USE)
        uid = f"uid-{len(self.accounts) + 1}"
        self.accounts[email] = (password, uid)
        return Identity(uid=uid, email=email)

    def sign_in(self, email: str, password: str) -> AuthSession:
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthFailure(AuthFailureReason.INVALID_CREDENTIAL)
        identity = Identity(uid=account[1], email=email)
        token = f"token-{identity.uid}"
        self.tokens[token] = identity
        return AuthSession(identity=identity, access_token=token)

    def sign_out(self, access_token: str | None = None) -> None:
        self.revoked.append(access_token)
        if access_token:
            self.tokens.pop(access_token, None)

    def get_identity(self, access_token: str) -> Identity | None:
        return self.tokens.get(access_token)


@dataclass
class FakeImageFetcher(ImageFetcher):
    """Image fetcher returning static bytes."""

    content: bytes = b"fake-image-bytes"
    fail: bool = False
    fetched: list[str] = field(default_factory=list)

    async def fetch(self, image_ref: str) -> ImagePayload:
        self.fetched.append(image_ref)
        if self.fail:
            raise FetchError("Failed to fetch image: 404")
        return ImagePayload(content=self.content, content_type="image/jpeg")


@dataclass
class FakeBlobStore(BlobStore):
    """Blob store that keeps uploads in memory.

    ``fail`` makes uploads raise; ``delay`` makes them sleep first;
    ``fail_url`` makes URL resolution raise.
    """

    base_url: str = "https://storage.test/photos/"
    fail: bool = False
    delay: float = 0.0
    fail_url: bool = False
    objects: dict[str, bytes] = field(default_factory=dict)

    async def upload(self, path: str, payload: ImagePayload) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("storage unavailable")
        self.objects[path] = payload.content
        return path

    async def get_url(self, path: str) -> str:
        if self.fail_url:
            raise RuntimeError("url lookup failed")
        return f"{self.base_url}{path}"

    def is_hosted(self, url: str) -> bool:
        return url.startswith(self.base_url)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
    )


@pytest.fixture
def identity() -> Identity:
    return Identity(uid="A", email="a@example.com")


@pytest.fixture
def session(identity: Identity) -> SessionContext:
    return SessionContext(identity=identity)


@pytest.fixture
def anonymous() -> SessionContext:
    return SessionContext()


@pytest.fixture
def photo_repository() -> InMemoryPhotoRepository:
    return InMemoryPhotoRepository()


@pytest.fixture
def notifier() -> FakeChangeNotifier:
    return FakeChangeNotifier()


@pytest.fixture
def fetcher() -> FakeImageFetcher:
    return FakeImageFetcher()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def bookmark_repository() -> InMemoryBookmarkRepository:
    return InMemoryBookmarkRepository()


@pytest.fixture
def auth_gateway() -> FakeAuthGateway:
    return FakeAuthGateway()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    photo_repository: InMemoryPhotoRepository,
    profile_repository: InMemoryProfileRepository,
    bookmark_repository: InMemoryBookmarkRepository,
    auth_gateway: FakeAuthGateway,
    notifier: FakeChangeNotifier,
    fetcher: FakeImageFetcher,
    blob_store: FakeBlobStore,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        photo_repository=photo_repository,
        profile_repository=profile_repository,
        bookmark_repository=bookmark_repository,
        auth_gateway=auth_gateway,
        notifier=notifier,
        fetcher=fetcher,
        blob_store=blob_store,
        close_resources=close_resources,
    )
