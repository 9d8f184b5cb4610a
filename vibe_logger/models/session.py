"""Session data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from .document import DocumentInfo


class SessionTemplate(str, Enum):
    """Document template used when a session creates its document."""

    PROJECT_LOG = "project_log"
    ADR = "adr"
    FEATURE_SPEC = "feature_spec"
    TROUBLESHOOTING = "troubleshooting"
    RETROSPECTIVE = "retrospective"


class Session(BaseModel):
    """One logical unit of work on a project, correlated to one document.

    Instances are shared between the active slot and the project history,
    so ``is_active`` and ``document_id`` are mutated in place.
    """

    id: str
    project_name: str
    document_id: str = Field(default="", description="Empty until a document is attached")
    document_name: str
    start_time: datetime
    objective: str
    template: SessionTemplate = SessionTemplate.PROJECT_LOG
    previous_session_id: str | None = None
    is_active: bool = True


class SessionStart(BaseModel):
    """Outcome of starting a session in the registry."""

    session: Session
    is_new_document: bool


class StartSessionResult(BaseModel):
    """Outcome of the start_session tool."""

    session: Session
    document: DocumentInfo
    is_new_document: bool


class ContinueSessionResult(BaseModel):
    """Outcome of the continue_session tool."""

    session: Session
    document: DocumentInfo


class EndSessionResult(BaseModel):
    """Outcome of the end_session tool."""

    session: Session
    summary: str
