"""Supabase Auth gateway."""

import logging
from dataclasses import dataclass

from supabase import AuthError, Client

from artspark.domain.errors import AuthFailure, AuthFailureReason
from artspark.domain.users import AuthSession, Identity
from artspark.services.auth import AuthGateway

logger = logging.getLogger(__name__)

_HTTP_TOO_MANY_REQUESTS = 429

_SIGN_IN_REASONS = {
    "invalid_credentials": AuthFailureReason.INVALID_CREDENTIAL,
    "email_address_invalid": AuthFailureReason.INVALID_CREDENTIAL,
    "user_not_found": AuthFailureReason.INVALID_CREDENTIAL,
    "email_not_confirmed": AuthFailureReason.INVALID_CREDENTIAL,
    "over_request_rate_limit": AuthFailureReason.TOO_MANY_REQUESTS,
}

_SIGN_UP_REASONS = {
    "email_exists": AuthFailureReason.EMAIL_IN_USE,
    "user_already_exists": AuthFailureReason.EMAIL_IN_USE,
    "email_address_invalid": AuthFailureReason.INVALID_EMAIL,
    "weak_password": AuthFailureReason.WEAK_PASSWORD,
    "over_request_rate_limit": AuthFailureReason.TOO_MANY_REQUESTS,
    "over_email_send_rate_limit": AuthFailureReason.TOO_MANY_REQUESTS,
}


def _classify(exc: AuthError, reasons: dict[str, AuthFailureReason]) -> AuthFailure:
    if getattr(exc, "status", None) == _HTTP_TOO_MANY_REQUESTS:
        return AuthFailure(AuthFailureReason.TOO_MANY_REQUESTS)
    code = getattr(exc, "code", None)
    reason = reasons.get(str(code), AuthFailureReason.OTHER)
    if reason is AuthFailureReason.OTHER:
        logger.warning("Unclassified auth error: %s (code=%s)", exc, code)
    return AuthFailure(reason)


@dataclass
class SupabaseAuthGateway(AuthGateway):
    """Auth gateway backed by Supabase Auth.

    The client passed here should not be shared with table access: a
    successful sign-in switches the client's credentials to the user's token.
    """

    client: Client

    def sign_up(self, email: str, password: str) -> Identity:
        """Create an account with email and password."""
        try:
            response = self.client.auth.sign_up(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise _classify(exc, _SIGN_UP_REASONS) from exc
        if response.user is None:
            raise AuthFailure(AuthFailureReason.OTHER)
        return Identity(uid=response.user.id, email=response.user.email)

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password."""
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise _classify(exc, _SIGN_IN_REASONS) from exc
        if response.user is None or response.session is None:
            raise AuthFailure(AuthFailureReason.OTHER)
        return AuthSession(
            identity=Identity(uid=response.user.id, email=response.user.email),
            access_token=response.session.access_token,
        )

    def sign_out(self, access_token: str | None = None) -> None:
        """Revoke a token, or sign out the client's own session."""
        if access_token:
            self.client.auth.admin.sign_out(access_token)
            return
        self.client.auth.sign_out()

    def get_identity(self, access_token: str) -> Identity | None:
        """Resolve an access token into an identity."""
        try:
            response = self.client.auth.get_user(access_token)
        except AuthError:
            logger.info("Rejected access token")
            return None
        if response is None or response.user is None:
            return None
        return Identity(uid=response.user.id, email=response.user.email)
