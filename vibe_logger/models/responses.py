"""Response models for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from .document import DocumentInfo
from .session import Session


class ToolResponse(BaseModel):
    """Response for tool invocations.

    ``text`` is the markdown block shown to the assistant; the remaining
    fields carry the same facts in structured form.
    """

    text: str
    session: Session | None = None
    document: DocumentInfo | None = None
    is_new_document: bool | None = None
    summary: str | None = None


class ToolInfo(BaseModel):
    """Tool declaration."""

    name: str
    description: str
    input_schema: dict[str, Any] = Field(default_factory=dict)


class ToolListResponse(BaseModel):
    """Response for listing tools."""

    tools: list[ToolInfo]
    total: int


class AuthStatusResponse(BaseModel):
    """Current authentication state."""

    state: str
    authenticated: bool
    authorization_url: str | None = None
    credentials_path: str
    tokens_path: str


class AuthUrlResponse(BaseModel):
    """Authorization URL for the consent screen."""

    authorization_url: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    uptime: str
    authenticated: bool = False
    active_session: bool = False


class VersionResponse(BaseModel):
    """Version information."""

    service_version: str
