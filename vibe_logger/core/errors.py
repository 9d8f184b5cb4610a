"""Typed errors raised by the credential and session core.

Callers branch on ``kind``, never on the message text.
"""

from enum import Enum
from pathlib import Path


class ConfigErrorKind(str, Enum):
    """Why a credential or token file could not be used."""

    MISSING = "missing"
    MALFORMED = "malformed"
    UNWRITABLE = "unwritable"


class AuthErrorKind(str, Enum):
    """Authentication-flow failures."""

    NOT_AUTHENTICATED = "not_authenticated"
    REFRESH_FAILED = "refresh_failed"
    EXCHANGE_FAILED = "exchange_failed"
    INVALID_CODE = "invalid_code"


class StateErrorKind(str, Enum):
    """Session-protocol violations."""

    NO_ACTIVE_SESSION = "no_active_session"
    STALE_SESSION = "stale_session"
    UNKNOWN_SESSION = "unknown_session"


class VibeLoggerError(Exception):
    """Base class for recoverable errors surfaced to the tool layer."""

    def __init__(self, message: str, remediation: str | None = None):
        super().__init__(message)
        self.message = message
        self.remediation = remediation


class ConfigError(VibeLoggerError):
    """Raised when the credential or token file is missing, malformed or unwritable."""

    def __init__(
        self,
        kind: ConfigErrorKind,
        message: str,
        path: Path | None = None,
        remediation: str | None = None,
    ):
        super().__init__(message, remediation)
        self.kind = kind
        self.path = path


class AuthError(VibeLoggerError):
    """Raised when the OAuth flow cannot produce a usable access token.

    ``authorization_url`` is set whenever the client credential is loaded, so
    the caller can send the user through the consent screen again.
    """

    def __init__(
        self,
        kind: AuthErrorKind,
        message: str,
        authorization_url: str | None = None,
        remediation: str | None = None,
    ):
        super().__init__(message, remediation)
        self.kind = kind
        self.authorization_url = authorization_url


class StateError(VibeLoggerError):
    """Raised when a session operation is not valid in the current state."""

    def __init__(self, kind: StateErrorKind, message: str, remediation: str | None = None):
        super().__init__(message, remediation)
        self.kind = kind


class DocumentError(VibeLoggerError):
    """Raised when a backing document cannot be created, read or appended to."""

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        status_code: int | None = None,
        remediation: str | None = None,
    ):
        super().__init__(message, remediation)
        self.document_id = document_id
        self.status_code = status_code

    @property
    def not_found(self) -> bool:
        """True when the document no longer resolves."""
        return self.status_code == 404
