"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import (
    Depends,
    FastAPI,
    Header,
    HTTPException,
    Request,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from fastapi.responses import JSONResponse

from artspark.api.models import (
    BookmarkRequest,
    BookmarkResponse,
    IdentityResponse,
    PhotoResponse,
    PhotoUpdateRequest,
    ProfileResponse,
    PublishRequest,
    PublishResponse,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
)
from artspark.app_logging import configure_logging
from artspark.containers import AppContainer
from artspark.domain.errors import (
    ArtSparkError,
    AuthFailure,
    AuthFailureReason,
    FetchError,
    Forbidden,
    NotFound,
    PersistError,
    Unauthenticated,
    UploadError,
    ValidationError,
)
from artspark.domain.photos import PhotoPatch
from artspark.services.photos import FeedSubscription
from artspark.services.session_context import SessionContext

_UNPROCESSABLE = 422

_ERROR_STATUS: dict[type[ArtSparkError], int] = {
    ValidationError: _UNPROCESSABLE,
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    FetchError: _UNPROCESSABLE,
    UploadError: status.HTTP_502_BAD_GATEWAY,
    PersistError: status.HTTP_502_BAD_GATEWAY,
}

_AUTH_STATUS: dict[AuthFailureReason, int] = {
    AuthFailureReason.INVALID_CREDENTIAL: status.HTTP_401_UNAUTHORIZED,
    AuthFailureReason.PROFILE_MISSING: status.HTTP_401_UNAUTHORIZED,
    AuthFailureReason.TOO_MANY_REQUESTS: status.HTTP_429_TOO_MANY_REQUESTS,
    AuthFailureReason.EMAIL_IN_USE: status.HTTP_409_CONFLICT,
    AuthFailureReason.INVALID_EMAIL: status.HTTP_400_BAD_REQUEST,
    AuthFailureReason.WEAK_PASSWORD: status.HTTP_400_BAD_REQUEST,
    AuthFailureReason.OTHER: status.HTTP_400_BAD_REQUEST,
}


def _status_for(exc: ArtSparkError) -> int:
    if isinstance(exc, AuthFailure):
        return _AUTH_STATUS[exc.reason]
    for error_type, code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def get_session(
    request: Request, authorization: str | None = Header(default=None)
) -> SessionContext:
    """Build the per-request session from the bearer token, if any."""
    token = _bearer_token(authorization)
    if token is None:
        return SessionContext()
    identity = _container(request).auth_gateway.get_identity(token)
    return SessionContext(identity=identity)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(ArtSparkError)
    async def handle_artspark_error(
        _request: Request, exc: ArtSparkError
    ) -> JSONResponse:
        return JSONResponse(status_code=_status_for(exc), content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/auth/signup", status_code=status.HTTP_201_CREATED)
    async def sign_up(
        body: SignUpRequest,
        request: Request,
        session: SessionContext = Depends(get_session),
    ) -> IdentityResponse:
        """Create an account and its role record."""
        service = _container(request).auth_service(session)
        identity = service.sign_up(body.email, body.password, body.role)
        return IdentityResponse(uid=identity.uid, email=identity.email)

    @app.post("/auth/login")
    async def sign_in(
        body: SignInRequest,
        request: Request,
        session: SessionContext = Depends(get_session),
    ) -> SignInResponse:
        """Sign in and return a bearer token."""
        service = _container(request).auth_service(session)
        auth_session = service.sign_in(body.email, body.password)
        return SignInResponse(
            uid=auth_session.identity.uid,
            email=auth_session.identity.email,
            access_token=auth_session.access_token,
        )

    @app.post("/auth/logout")
    async def sign_out(
        request: Request,
        authorization: str | None = Header(default=None),
        session: SessionContext = Depends(get_session),
    ) -> dict[str, str]:
        """Revoke the caller's token."""
        session.require()
        _container(request).auth_service(session).sign_out(
            _bearer_token(authorization)
        )
        return {"status": "ok"}

    @app.get("/profile")
    async def profile(
        request: Request, session: SessionContext = Depends(get_session)
    ) -> ProfileResponse:
        """Return the caller's email and role."""
        user_profile = _container(request).profile_service(session).get_profile()
        return ProfileResponse(
            uid=user_profile.uid, email=user_profile.email, role=user_profile.role
        )

    @app.get("/photos")
    async def list_photos(
        request: Request, session: SessionContext = Depends(get_session)
    ) -> list[PhotoResponse]:
        """Return the feed, newest first."""
        photos = _container(request).photo_service(session).get_all()
        return [PhotoResponse.from_record(photo) for photo in photos]

    @app.post("/photos", status_code=status.HTTP_201_CREATED)
    async def publish_photo(
        body: PublishRequest,
        request: Request,
        session: SessionContext = Depends(get_session),
    ) -> PublishResponse:
        """Publish a photo from a picked image reference."""
        orchestrator = _container(request).upload_orchestrator(session)
        result = await orchestrator.publish(body.title, body.image_uri)
        return PublishResponse(
            id=result.photo_id, url=result.url, degraded=result.degraded
        )

    @app.get("/photos/mine")
    async def my_photos(
        request: Request,
        owner_id: str | None = None,
        session: SessionContext = Depends(get_session),
    ) -> list[PhotoResponse]:
        """Return photos for an owner, defaulting to the caller."""
        photos = _container(request).photo_service(session).get_by_owner(owner_id)
        return [PhotoResponse.from_record(photo) for photo in photos]

    @app.get("/photos/degraded")
    async def degraded_photos(
        request: Request, session: SessionContext = Depends(get_session)
    ) -> list[PhotoResponse]:
        """Return the caller's photos whose image never reached storage."""
        session.require()
        photos = _container(request).upload_orchestrator(session).find_degraded()
        return [PhotoResponse.from_record(photo) for photo in photos]

    @app.get("/photos/{photo_id}")
    async def get_photo(
        photo_id: UUID,
        request: Request,
        session: SessionContext = Depends(get_session),
    ) -> PhotoResponse:
        """Return a single photo."""
        photo = _container(request).photo_service(session).get_by_id(photo_id)
        if photo is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return PhotoResponse.from_record(photo)

    @app.patch("/photos/{photo_id}")
    async def update_photo(
        photo_id: UUID,
        body: PhotoUpdateRequest,
        request: Request,
        session: SessionContext = Depends(get_session),
    ) -> PhotoResponse:
        """Edit a photo's title or url."""
        service = _container(request).photo_service(session)
        title = body.title.strip() if body.title is not None else None
        service.update(photo_id, PhotoPatch(title=title, url=body.url))
        photo = service.get_by_id(photo_id)
        if photo is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return PhotoResponse.from_record(photo)

    @app.delete("/photos/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_photo(
        photo_id: UUID,
        request: Request,
        session: SessionContext = Depends(get_session),
    ) -> None:
        """Delete one of the caller's photos."""
        service = _container(request).photo_service(session)
        session.require()
        photo = service.get_by_id(photo_id)
        if photo is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        service.delete(photo_id, photo.owner_id)

    @app.post("/photos/{photo_id}/repair")
    async def repair_photo(
        photo_id: UUID,
        request: Request,
        session: SessionContext = Depends(get_session),
    ) -> dict[str, str]:
        """Move a degraded photo's image into storage."""
        orchestrator = _container(request).upload_orchestrator(session)
        url = await orchestrator.repair(photo_id)
        return {"url": url}

    @app.get("/bookmarks")
    async def list_bookmarks(
        request: Request, session: SessionContext = Depends(get_session)
    ) -> list[BookmarkResponse]:
        """Return the caller's bookmarks, newest first."""
        bookmarks = _container(request).bookmark_service(session).list_mine()
        return [BookmarkResponse.from_record(item) for item in bookmarks]

    @app.post("/bookmarks", status_code=status.HTTP_201_CREATED)
    async def add_bookmark(
        body: BookmarkRequest,
        request: Request,
        session: SessionContext = Depends(get_session),
    ) -> dict[str, UUID]:
        """Bookmark an external image."""
        service = _container(request).bookmark_service(session)
        return {"id": service.add(body.url, body.source)}

    @app.delete("/bookmarks/{bookmark_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def remove_bookmark(
        bookmark_id: UUID,
        request: Request,
        session: SessionContext = Depends(get_session),
    ) -> None:
        """Remove one of the caller's bookmarks."""
        _container(request).bookmark_service(session).remove(bookmark_id)

    async def pump_feed(subscription: FeedSubscription, websocket: WebSocket) -> None:
        try:
            async for photos in subscription:
                await websocket.send_json(
                    [
                        PhotoResponse.from_record(photo).model_dump(mode="json")
                        for photo in photos
                    ]
                )
        except WebSocketDisconnect:
            return
        except Exception:
            logger.exception("Photo feed stream failed")
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)

    @app.websocket("/photos/feed")
    async def photo_feed(websocket: WebSocket, access_token: str | None = None) -> None:
        """Stream the full feed on connect and after every change."""
        state_container: AppContainer = websocket.app.state.container
        identity = (
            state_container.auth_gateway.get_identity(access_token)
            if access_token
            else None
        )
        if identity is None:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        await websocket.accept()
        service = state_container.photo_service(SessionContext(identity=identity))
        subscription = await service.subscribe()
        pump = asyncio.create_task(pump_feed(subscription, websocket))
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info("Feed client %s disconnected", identity.uid)
        finally:
            await subscription.close()
            pump.cancel()
            await asyncio.gather(pump, return_exceptions=True)

    return app
