"""Orchestrates session tracking and document writes for each tool."""

import asyncio
import logging
from typing import Any

from ..models import (
    ContinueSessionRequest,
    ContinueSessionResult,
    DocumentInfo,
    EndSessionRequest,
    EndSessionResult,
    LogActivityRequest,
    LogDecisionRequest,
    SaveConversationRequest,
    Session,
    StartSessionRequest,
    StartSessionResult,
)
from ..storage.docs_client import GoogleDocsClient
from . import templates
from .clock import Clock, utcnow
from .credential_store import CredentialStore
from .errors import DocumentError, StateError, StateErrorKind
from .operator import resolve_operator_identity
from .session_registry import SessionRegistry
from .token_manager import TokenLifecycleManager

logger = logging.getLogger(__name__)


class VibeLoggerService:
    """Coordinates the session registry and the document store.

    Tool operations are serialized with a lock: the registry has one active
    slot and documents are appended at their current end, so interleaving two
    operations would corrupt both.
    """

    def __init__(
        self,
        token_manager: TokenLifecycleManager,
        docs_client: GoogleDocsClient,
        registry: SessionRegistry | None = None,
        now: Clock | None = None,
    ):
        self._now = now or utcnow
        self.token_manager = token_manager
        self.docs_client = docs_client
        self.registry = registry or SessionRegistry(now=self._now)
        self._lock = asyncio.Lock()
        self._initialized = False

    async def initialize(self) -> None:
        """Load credentials (refreshing stale tokens) and resolve the operator name.

        Raises:
            ConfigError: If the credential file is missing or malformed
            AuthError: If stored tokens are expired and cannot be refreshed
        """
        if self._initialized:
            return
        await self.token_manager.initialize()
        self.registry.operator = await resolve_operator_identity()
        self._initialized = True

    async def aclose(self) -> None:
        await self.docs_client.aclose()
        await self.token_manager.aclose()

    # ----- Session lifecycle -----

    async def start_session(self, request: StartSessionRequest) -> StartSessionResult:
        """Start a session, reusing today's document for the project if there is one.

        A failure leaves the registry as it was before the call. A document
        created before the failure stays correlated, so a retry reuses it.

        Raises:
            DocumentError: If today's document no longer exists (the correlation
                is forgotten, so a retry creates a new document) or cannot be
                created
            AuthError: If no valid access token can be obtained
        """
        async with self._lock:
            previous = self.registry.current_session
            start = self.registry.start(request.project, request.objective, request.template)
            session = start.session
            verified = False

            try:
                if start.is_new_document:
                    document = await self._create_session_document(session)
                else:
                    document = await self._verify_document(session)
                verified = True
                self.registry.attach_document(session.id, document.id)
                await self.docs_client.append_content(
                    document.id,
                    templates.session_header(session, self._timestamp(), start.is_new_document),
                )
            except Exception:
                if (
                    not verified
                    and not start.is_new_document
                    and previous is not None
                    and previous.document_id == session.document_id
                ):
                    # The previous session writes to the document that just failed
                    previous = None
                self.registry.rollback_start(start, previous)
                raise

            logger.info(f"Session {session.id} writing to document {document.id}")

        return StartSessionResult(
            session=session, document=document, is_new_document=start.is_new_document
        )

    async def continue_session(
        self, request: ContinueSessionRequest
    ) -> ContinueSessionResult | None:
        """Resume today's session and mark the resumption in its document.

        Returns:
            None if there is no session to resume today

        Raises:
            DocumentError: If the session's document no longer exists
        """
        async with self._lock:
            session = self.registry.continue_session(request.project)
            if session is None:
                return None

            document = await self._verify_document(session)
            await self.docs_client.append_content(
                document.id, templates.continuation_marker(session, self._timestamp())
            )

        return ContinueSessionResult(session=session, document=document)

    async def end_session(self, request: EndSessionRequest) -> EndSessionResult:
        """Write the closing block and end the active session.

        The session stays active if the write fails.

        Raises:
            StateError: NO_ACTIVE_SESSION if nothing is active
        """
        async with self._lock:
            session = self.registry.current_session
            if session is None:
                raise StateError(
                    StateErrorKind.NO_ACTIVE_SESSION,
                    "No active session to end",
                    remediation="Use 'start_session' to begin a new session first.",
                )

            summary = request.summary or templates.default_summary(session, self._now())
            await self.docs_client.append_content(
                session.document_id,
                templates.session_end(summary, self._timestamp(), request.next_steps),
            )
            self.registry.end()
            logger.info(f"Session {session.id} ended")

        return EndSessionResult(session=session, summary=summary)

    # ----- Logging -----

    async def log_decision(self, request: LogDecisionRequest) -> Session:
        return await self._append_entry(templates.decision_entry(request, self._timestamp()))

    async def log_activity(self, request: LogActivityRequest) -> Session:
        return await self._append_entry(templates.activity_entry(request, self._timestamp()))

    async def save_conversation(self, request: SaveConversationRequest) -> Session:
        return await self._append_entry(templates.conversation_entry(request, self._timestamp()))

    def status(self) -> dict[str, Any]:
        """Current session and authentication status."""
        session = self.registry.current_session
        return {
            "has_active_session": session is not None,
            "session": session,
            "auth_state": self.token_manager.state.value,
        }

    # ----- Internals -----

    async def _append_entry(self, content: str) -> Session:
        async with self._lock:
            session = self.registry.require_active()
            await self.docs_client.append_content(session.document_id, content)
        return session

    async def _create_session_document(self, session: Session) -> DocumentInfo:
        document = await self.docs_client.create_document(session.document_name)
        # Correlate before writing so a failed write cannot orphan the document
        self.registry.attach_document(session.id, document.id)
        await self.docs_client.append_content(
            document.id, templates.document_body(session, self._timestamp())
        )
        return document

    async def _verify_document(self, session: Session) -> DocumentInfo:
        """Fetch the session's document; invalidate the session if it is gone."""
        if not session.document_id:
            self.registry.invalidate_active()
            raise DocumentError(
                f"Session {session.id} has no document attached",
                remediation="Use 'start_session' to create today's document.",
            )

        try:
            return await self.docs_client.get_document(session.document_id)
        except DocumentError as e:
            self.registry.invalidate_active()
            logger.warning(
                f"Document {session.document_id} for {session.id} unavailable: {e.message}"
            )
            if e.not_found:
                self.registry.index.forget(session.project_name)
            problem = "no longer exists" if e.not_found else "could not be read"
            raise DocumentError(
                f"Session document {problem}: {e.message}",
                document_id=session.document_id,
                status_code=e.status_code,
                remediation="Use 'start_session' to create a new document for today.",
            ) from e

    def _timestamp(self) -> str:
        return templates.format_timestamp(self._now())


# Process-wide service instance
_service: VibeLoggerService | None = None


def create_service() -> VibeLoggerService:
    """Build a service wired to the configured credential and token files."""
    token_manager = TokenLifecycleManager(CredentialStore())
    return VibeLoggerService(token_manager, GoogleDocsClient(token_manager))


async def init_service() -> VibeLoggerService:
    """Create (if needed) and initialize the global service instance."""
    global _service
    if _service is None:
        _service = create_service()
    await _service.initialize()
    return _service


async def get_service() -> VibeLoggerService:
    """Get the service instance (dependency injection).

    Does not initialize it, so auth endpoints work before tokens exist.
    """
    global _service
    if _service is None:
        _service = create_service()
    return _service


async def shutdown_service() -> None:
    """Close HTTP clients and drop the global service instance."""
    global _service
    if _service is not None:
        await _service.aclose()
        _service = None
