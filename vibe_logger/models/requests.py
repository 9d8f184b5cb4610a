"""Request models for tool and auth endpoints.

Field aliases keep the camelCase names the tool schemas advertise.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import settings
from .session import SessionTemplate


class ActivityCategory(str, Enum):
    """Type of development activity."""

    IMPLEMENTATION = "implementation"
    DEBUGGING = "debugging"
    RESEARCH = "research"
    PLANNING = "planning"


class ImpactLevel(str, Enum):
    """Expected impact of a decision."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StartSessionRequest(BaseModel):
    """Creates or continues a project documentation session in Google Docs."""

    project: str = Field(..., min_length=1, description="Project name for the documentation")
    objective: str = Field(
        ..., min_length=1, description="What you are working on in this session"
    )
    template: SessionTemplate = Field(
        default_factory=lambda: SessionTemplate(settings.default_template),
        description="Document template to use (defaults to project_log)",
    )

    @field_validator("project", "objective")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Reject whitespace-only values."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class ContinueSessionRequest(BaseModel):
    """Resumes an existing project session with full context."""

    project: str | None = Field(
        default=None, description="Project name (uses the active session if not provided)"
    )


class EndSessionRequest(BaseModel):
    """Closes current session with summary and next steps."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str | None = Field(
        default=None, description="Session summary (auto-generated if not provided)"
    )
    next_steps: list[str] = Field(
        default_factory=list,
        alias="nextSteps",
        description="Next steps for future sessions",
    )


class LogDecisionRequest(BaseModel):
    """Records an architecture or implementation decision with rationale."""

    decision: str = Field(..., min_length=1, description="The decision that was made")
    rationale: str = Field(..., min_length=1, description="Why this decision was made")
    alternatives: list[str] = Field(
        default_factory=list, description="Alternative options that were considered"
    )
    impact: ImpactLevel | None = Field(
        default=None, description="Expected impact of this decision"
    )


class LogActivityRequest(BaseModel):
    """Logs development activity with context."""

    activity: str = Field(..., min_length=1, description="Description of the activity performed")
    category: ActivityCategory = Field(..., description="Type of development activity")
    outcome: str | None = Field(default=None, description="Result or outcome of the activity")


class SaveConversationRequest(BaseModel):
    """Preserves important conversation or discussion."""

    model_config = ConfigDict(populate_by_name=True)

    topic: str = Field(..., min_length=1, description="Topic or subject of the conversation")
    include_full_text: bool = Field(
        default=False,
        alias="includeFullText",
        description="Whether to include full conversation text (defaults to key points only)",
    )


class AuthCodeRequest(BaseModel):
    """Authorization code pasted back from the consent screen."""

    code: str = Field(..., description="Authorization code")
