"""Error taxonomy for ArtSpark operations."""

from enum import StrEnum


class ArtSparkError(Exception):
    """Base class for errors surfaced to ArtSpark callers."""


class ValidationError(ArtSparkError):
    """User input was rejected before any network call."""


class Unauthenticated(ArtSparkError):
    """No active session."""

    def __init__(self, message: str = "No authenticated user") -> None:
        super().__init__(message)


class Forbidden(ArtSparkError):
    """The session lacks rights for the requested action."""


class NotFound(ArtSparkError):
    """The referenced record does not exist."""


class FetchError(ArtSparkError):
    """A local image reference could not be read."""


class UploadError(ArtSparkError):
    """Binary upload to blob storage failed."""


class PersistError(ArtSparkError):
    """Writing record metadata failed."""


class AuthFailureReason(StrEnum):
    """Categorised reasons an auth call can fail."""

    INVALID_CREDENTIAL = "invalid-credential"
    TOO_MANY_REQUESTS = "too-many-requests"
    EMAIL_IN_USE = "email-in-use"
    INVALID_EMAIL = "invalid-email"
    WEAK_PASSWORD = "weak-password"
    PROFILE_MISSING = "profile-missing"
    OTHER = "other"


AUTH_FAILURE_MESSAGES: dict[AuthFailureReason, str] = {
    AuthFailureReason.INVALID_CREDENTIAL: "Invalid email or password.",
    AuthFailureReason.TOO_MANY_REQUESTS: "Too many attempts. Try again later.",
    AuthFailureReason.EMAIL_IN_USE: "This email is already registered.",
    AuthFailureReason.INVALID_EMAIL: "Please enter a valid email address.",
    AuthFailureReason.WEAK_PASSWORD: "Password must be at least 6 characters.",
    AuthFailureReason.PROFILE_MISSING: "User profile not found in database.",
    AuthFailureReason.OTHER: "Something went wrong. Please try again.",
}


class AuthFailure(ArtSparkError):
    """Authentication provider rejected the request."""

    def __init__(self, reason: AuthFailureReason) -> None:
        super().__init__(AUTH_FAILURE_MESSAGES[reason])
        self.reason = reason
