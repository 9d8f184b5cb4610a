"""Core credential lifecycle and session correlation logic."""

from .credential_store import CredentialStore
from .document_index import ProjectDocumentIndex, deterministic_document_name
from .errors import (
    AuthError,
    AuthErrorKind,
    ConfigError,
    ConfigErrorKind,
    DocumentError,
    StateError,
    StateErrorKind,
    VibeLoggerError,
)
from .session_registry import SessionRegistry
from .token_manager import AuthState, TokenLifecycleManager

__all__ = [
    "CredentialStore",
    "TokenLifecycleManager",
    "AuthState",
    "ProjectDocumentIndex",
    "deterministic_document_name",
    "SessionRegistry",
    "VibeLoggerError",
    "ConfigError",
    "ConfigErrorKind",
    "AuthError",
    "AuthErrorKind",
    "StateError",
    "StateErrorKind",
    "DocumentError",
]
