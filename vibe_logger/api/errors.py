"""Mapping of typed service errors onto HTTP responses."""

from fastapi import HTTPException

from ..core.errors import (
    AuthError,
    ConfigError,
    DocumentError,
    StateError,
    VibeLoggerError,
)


def to_http_exception(error: VibeLoggerError) -> HTTPException:
    """Translate a service error into an HTTPException.

    The detail carries the error kind, message and remediation so a client
    can show the user what to do next.
    """
    detail: dict[str, str | int | None] = {
        "message": error.message,
        "remediation": error.remediation,
    }

    if isinstance(error, ConfigError):
        status_code = 503
        detail["error"] = error.kind.value
        detail["path"] = str(error.path) if error.path else None
    elif isinstance(error, AuthError):
        status_code = 401
        detail["error"] = error.kind.value
        detail["authorization_url"] = error.authorization_url
    elif isinstance(error, StateError):
        status_code = 409
        detail["error"] = error.kind.value
    elif isinstance(error, DocumentError):
        status_code = 404 if error.not_found else 502
        detail["error"] = "document_not_found" if error.not_found else "document_error"
        detail["document_id"] = error.document_id
    else:
        status_code = 500
        detail["error"] = "internal"

    return HTTPException(status_code=status_code, detail=detail)
