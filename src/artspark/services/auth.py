"""Sign-up, sign-in and session tracking."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from artspark.domain.errors import AuthFailure, AuthFailureReason
from artspark.domain.users import AuthSession, Identity, Role
from artspark.services.profiles import ProfileRepository
from artspark.services.session_context import SessionContext, SessionListener

logger = logging.getLogger(__name__)


class AuthGateway(Protocol):
    """Interface to the authentication provider.

    Implementations raise ``AuthFailure`` for rejected requests.
    """

    def sign_up(self, email: str, password: str) -> Identity:
        """Create an account and return its identity."""

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Verify credentials and return a session."""

    def sign_out(self, access_token: str | None = None) -> None:
        """End the provider session, or revoke the given token."""

    def get_identity(self, access_token: str) -> Identity | None:
        """Resolve a bearer token, or None when it is not valid."""


@dataclass
class AuthService:
    """Application service for account lifecycle actions."""

    gateway: AuthGateway
    profiles: ProfileRepository
    session: SessionContext

    def sign_up(self, email: str, password: str, role: Role = Role.ARTIST) -> Identity:
        """Create the account and its role record."""
        identity = self.gateway.sign_up(email, password)
        self.profiles.create_profile(identity.uid, email, role)
        logger.info("Created account %s with role %s", identity.uid, role)
        return identity

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in and require a role record for the account."""
        auth_session = self.gateway.sign_in(email, password)
        uid = auth_session.identity.uid
        if self.profiles.get_profile(uid) is None:
            logger.warning("Signed-in account %s has no profile", uid)
            self.gateway.sign_out(auth_session.access_token)
            raise AuthFailure(AuthFailureReason.PROFILE_MISSING)
        self.session.set_identity(auth_session.identity)
        return auth_session

    def sign_out(self, access_token: str | None = None) -> None:
        """End the session."""
        self.gateway.sign_out(access_token)
        self.session.set_identity(None)

    def resolve(self, access_token: str) -> Identity | None:
        """Return the identity behind a bearer token."""
        return self.gateway.get_identity(access_token)

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        """Notify ``listener`` now and on every sign-in or sign-out."""
        return self.session.listen(listener)
