"""Session documentation tools.

Each tool is a POST endpoint taking the tool's arguments as the JSON body and
returning a markdown block for the assistant plus the structured result.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..core.errors import VibeLoggerError
from ..core.vibe_logger import VibeLoggerService, get_service
from ..models import (
    ContinueSessionRequest,
    DocumentInfo,
    EndSessionRequest,
    LogActivityRequest,
    LogDecisionRequest,
    SaveConversationRequest,
    Session,
    StartSessionRequest,
    ToolInfo,
    ToolListResponse,
    ToolResponse,
)
from .errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tools", tags=["tools"])

DOCUMENT_URL = "https://docs.google.com/document/d/{document_id}/edit"

TOOL_DECLARATIONS: dict[str, type[BaseModel]] = {
    "start_session": StartSessionRequest,
    "continue_session": ContinueSessionRequest,
    "end_session": EndSessionRequest,
    "log_decision": LogDecisionRequest,
    "log_activity": LogActivityRequest,
    "save_conversation": SaveConversationRequest,
}


async def get_ready_service(
    service: VibeLoggerService = Depends(get_service),
) -> VibeLoggerService:
    """Dependency returning an initialized service.

    Initialization is retried on every call until it succeeds, so setup done
    after startup is picked up without a restart.
    """
    try:
        await service.initialize()
    except VibeLoggerError as e:
        logger.warning(f"Service not ready: {e.message}")
        raise to_http_exception(e) from e
    return service


def document_url(document_id: str) -> str:
    return DOCUMENT_URL.format(document_id=document_id)


def _session_line(session: Session) -> str:
    return f"Session `{session.id}` for **{session.project_name}**"


@router.get("", response_model=ToolListResponse)
async def list_tools() -> ToolListResponse:
    """List the available tools and their input schemas."""
    tools = [
        ToolInfo(
            name=name,
            description=(model.__doc__ or "").strip(),
            input_schema=model.model_json_schema(by_alias=True),
        )
        for name, model in TOOL_DECLARATIONS.items()
    ]
    return ToolListResponse(tools=tools, total=len(tools))


@router.post("/start_session", response_model=ToolResponse)
async def start_session(
    request: StartSessionRequest,
    service: VibeLoggerService = Depends(get_ready_service),
) -> ToolResponse:
    try:
        result = await service.start_session(request)
    except VibeLoggerError as e:
        raise to_http_exception(e) from e

    action = "Created new document" if result.is_new_document else "Continuing today's document"
    text = (
        f"✅ {_session_line(result.session)} started\n\n"
        f"**Objective:** {result.session.objective}\n"
        f"**Template:** {result.session.template.value}\n"
        f"**Document:** {result.document.title}\n"
        f"{action}: {document_url(result.document.id)}"
    )
    if result.session.previous_session_id:
        text += f"\n**Previous session:** `{result.session.previous_session_id}`"

    return ToolResponse(
        text=text,
        session=result.session,
        document=result.document,
        is_new_document=result.is_new_document,
    )


@router.post("/continue_session", response_model=ToolResponse)
async def continue_session(
    request: ContinueSessionRequest,
    service: VibeLoggerService = Depends(get_ready_service),
) -> ToolResponse:
    try:
        result = await service.continue_session(request)
    except VibeLoggerError as e:
        raise to_http_exception(e) from e

    if result is None:
        target = f"project '{request.project}'" if request.project else "any project"
        return ToolResponse(
            text=(
                f"No session found today for {target}. "
                "Use 'start_session' to begin a new session."
            )
        )

    document: DocumentInfo = result.document
    return ToolResponse(
        text=(
            f"🔄 {_session_line(result.session)} resumed\n\n"
            f"**Objective:** {result.session.objective}\n"
            f"**Document:** {document_url(document.id)}"
        ),
        session=result.session,
        document=document,
    )


@router.post("/end_session", response_model=ToolResponse)
async def end_session(
    request: EndSessionRequest,
    service: VibeLoggerService = Depends(get_ready_service),
) -> ToolResponse:
    try:
        result = await service.end_session(request)
    except VibeLoggerError as e:
        raise to_http_exception(e) from e

    text = f"🏁 {_session_line(result.session)} ended\n\n**Summary:** {result.summary}"
    if request.next_steps:
        text += "\n**Next steps:**\n" + "\n".join(f"- {step}" for step in request.next_steps)

    return ToolResponse(text=text, session=result.session, summary=result.summary)


@router.post("/log_decision", response_model=ToolResponse)
async def log_decision(
    request: LogDecisionRequest,
    service: VibeLoggerService = Depends(get_ready_service),
) -> ToolResponse:
    try:
        session = await service.log_decision(request)
    except VibeLoggerError as e:
        raise to_http_exception(e) from e

    return ToolResponse(
        text=f"📝 Decision logged to {document_url(session.document_id)}\n\n{request.decision}",
        session=session,
    )


@router.post("/log_activity", response_model=ToolResponse)
async def log_activity(
    request: LogActivityRequest,
    service: VibeLoggerService = Depends(get_ready_service),
) -> ToolResponse:
    try:
        session = await service.log_activity(request)
    except VibeLoggerError as e:
        raise to_http_exception(e) from e

    return ToolResponse(
        text=(
            f"✅ {request.category.value.title()} activity logged to "
            f"{document_url(session.document_id)}"
        ),
        session=session,
    )


@router.post("/save_conversation", response_model=ToolResponse)
async def save_conversation(
    request: SaveConversationRequest,
    service: VibeLoggerService = Depends(get_ready_service),
) -> ToolResponse:
    try:
        session = await service.save_conversation(request)
    except VibeLoggerError as e:
        raise to_http_exception(e) from e

    return ToolResponse(
        text=(
            f"💬 Conversation about '{request.topic}' saved to "
            f"{document_url(session.document_id)}"
        ),
        session=session,
    )
