"""
Error taxonomy for the workday tracker.
Every failure the UI can report is one of these; the view layer catches
TrackerError at each action and turns it into a notification.
"""

from enum import Enum


class TrackerError(Exception):
    """Base class for errors shown to the user."""

    title = "Something went wrong"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(TrackerError):
    """Backend credentials are missing or the client could not be built."""

    title = "Backend not configured"


class AuthErrorKind(str, Enum):
    INVALID_CREDENTIALS = "invalid-credentials"
    PROVIDER_DISABLED = "provider-disabled"
    DOMAIN_NOT_AUTHORIZED = "domain-not-authorized"
    POPUP_DISMISSED = "popup-dismissed"
    OTHER = "other"


AUTH_TITLES = {
    AuthErrorKind.INVALID_CREDENTIALS: "Sign-in failed",
    AuthErrorKind.PROVIDER_DISABLED: "Sign-in method disabled",
    AuthErrorKind.DOMAIN_NOT_AUTHORIZED: "Unauthorized domain",
    AuthErrorKind.POPUP_DISMISSED: "Sign-in cancelled",
    AuthErrorKind.OTHER: "Sign-in failed",
}


class AuthError(TrackerError):
    """
    Identity provider failure.

    The kind only selects which message to display; a dismissed
    provider window is silent.
    """

    def __init__(self, kind: AuthErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    @property
    def title(self) -> str:
        return AUTH_TITLES[self.kind]

    @property
    def silent(self) -> bool:
        return self.kind is AuthErrorKind.POPUP_DISMISSED


class StoreReadError(TrackerError):
    """The user's document could not be fetched or created."""

    title = "Could not load your data"

    def __init__(self, user_id: str, message: str):
        super().__init__(message)
        self.user_id = user_id


class StoreWriteError(TrackerError):
    """A write to the user's document failed; local state must be rolled back."""

    title = "Could not save your change"

    def __init__(self, user_id: str, field: str, message: str):
        super().__init__(message)
        self.user_id = user_id
        self.field = field
