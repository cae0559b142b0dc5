"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from artspark.adapters.httpx_image_fetcher import HttpxImageFetcher
from artspark.adapters.supabase_auth_gateway import SupabaseAuthGateway
from artspark.adapters.supabase_blob_store import SupabaseBlobStore
from artspark.adapters.supabase_bookmark_repository import (
    SupabaseBookmarkRepository,
)
from artspark.adapters.supabase_photo_repository import SupabasePhotoRepository
from artspark.adapters.supabase_profile_repository import SupabaseProfileRepository
from artspark.adapters.supabase_realtime_notifier import SupabaseRealtimeNotifier
from artspark.config import Settings
from artspark.services.auth import AuthGateway, AuthService
from artspark.services.bookmarks import BookmarkRepository, BookmarkService
from artspark.services.photos import PhotoChangeNotifier, PhotoRepository, PhotoService
from artspark.services.profiles import ProfileRepository, ProfileService
from artspark.services.session_context import SessionContext
from artspark.services.uploads import BlobStore, ImageFetcher, UploadOrchestrator


@dataclass
class AppContainer:
    """Holds application-wide dependencies.

    Services are bound to a ``SessionContext``; the HTTP layer builds one per
    request from the bearer token, so services are created on demand.
    """

    settings: Settings
    photo_repository: PhotoRepository
    profile_repository: ProfileRepository
    bookmark_repository: BookmarkRepository
    auth_gateway: AuthGateway
    notifier: PhotoChangeNotifier
    fetcher: ImageFetcher
    blob_store: BlobStore
    close_resources: Callable[[], Awaitable[None]]

    def auth_service(self, session: SessionContext) -> AuthService:
        """Return the auth service for a session."""
        return AuthService(
            gateway=self.auth_gateway,
            profiles=self.profile_repository,
            session=session,
        )

    def profile_service(self, session: SessionContext) -> ProfileService:
        """Return the profile service for a session."""
        return ProfileService(repository=self.profile_repository, session=session)

    def photo_service(self, session: SessionContext) -> PhotoService:
        """Return the photo service for a session."""
        return PhotoService(
            repository=self.photo_repository,
            notifier=self.notifier,
            session=session,
        )

    def upload_orchestrator(self, session: SessionContext) -> UploadOrchestrator:
        """Return the publish pipeline for a session."""
        return UploadOrchestrator(
            photo_service=self.photo_service(session),
            fetcher=self.fetcher,
            blob_store=self.blob_store,
            session=session,
            supports_upload_timeout=self.settings.supports_upload_timeout,
            upload_timeout_seconds=self.settings.upload_timeout_seconds,
        )

    def bookmark_service(self, session: SessionContext) -> BookmarkService:
        """Return the bookmark service for a session."""
        return BookmarkService(repository=self.bookmark_repository, session=session)


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    # Separate client: sign-ins replace the auth client's credentials.
    auth_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    notifier = SupabaseRealtimeNotifier(
        supabase_url=resolved_settings.supabase_url,
        supabase_key=resolved_settings.supabase_service_key,
        table=resolved_settings.photos_table,
    )
    fetcher = HttpxImageFetcher.create(
        timeout=resolved_settings.image_fetch_timeout_seconds,
        upload_dir=resolved_settings.image_upload_dir,
    )

    async def close_resources() -> None:
        await fetcher.close()
        await notifier.close()

    return AppContainer(
        settings=resolved_settings,
        photo_repository=SupabasePhotoRepository(
            supabase_client, table=resolved_settings.photos_table
        ),
        profile_repository=SupabaseProfileRepository(
            supabase_client, table=resolved_settings.users_table
        ),
        bookmark_repository=SupabaseBookmarkRepository(
            supabase_client, table=resolved_settings.bookmarks_table
        ),
        auth_gateway=SupabaseAuthGateway(auth_client),
        notifier=notifier,
        fetcher=fetcher,
        blob_store=SupabaseBlobStore(
            supabase_client,
            supabase_url=resolved_settings.supabase_url,
            bucket=resolved_settings.photos_bucket,
        ),
        close_resources=close_resources,
    )
