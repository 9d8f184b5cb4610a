"""Data models for the Vibe Logger service."""

from .credentials import Credential, TokenSet
from .document import AppendContentOptions, CreateDocumentOptions, DocumentInfo, GoogleDocument
from .requests import (
    ActivityCategory,
    AuthCodeRequest,
    ContinueSessionRequest,
    EndSessionRequest,
    ImpactLevel,
    LogActivityRequest,
    LogDecisionRequest,
    SaveConversationRequest,
    StartSessionRequest,
)
from .responses import (
    AuthStatusResponse,
    AuthUrlResponse,
    HealthResponse,
    ToolInfo,
    ToolListResponse,
    ToolResponse,
    VersionResponse,
)
from .session import (
    ContinueSessionResult,
    EndSessionResult,
    Session,
    SessionStart,
    SessionTemplate,
    StartSessionResult,
)

__all__ = [
    # Credential models
    "Credential",
    "TokenSet",
    # Document models
    "DocumentInfo",
    "GoogleDocument",
    "CreateDocumentOptions",
    "AppendContentOptions",
    # Request models
    "StartSessionRequest",
    "ContinueSessionRequest",
    "EndSessionRequest",
    "LogDecisionRequest",
    "LogActivityRequest",
    "SaveConversationRequest",
    "AuthCodeRequest",
    "ActivityCategory",
    "ImpactLevel",
    # Response models
    "ToolResponse",
    "ToolInfo",
    "ToolListResponse",
    "AuthStatusResponse",
    "AuthUrlResponse",
    "HealthResponse",
    "VersionResponse",
    # Session models
    "Session",
    "SessionStart",
    "SessionTemplate",
    "StartSessionResult",
    "ContinueSessionResult",
    "EndSessionResult",
]
