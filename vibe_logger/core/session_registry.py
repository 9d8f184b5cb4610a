"""In-process registry of work sessions and their document correlation."""

import logging
import secrets
import string

from ..models import Session, SessionStart, SessionTemplate
from .clock import Clock, calendar_day, is_same_day, utcnow
from .document_index import ProjectDocumentIndex, deterministic_document_name
from .errors import StateError, StateErrorKind

logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


class SessionRegistry:
    """Owns the single active session and the per-project session history.

    At most one session is active at any time. History is append-only and
    ordered by start time; a secondary index maps session ids to sessions.
    Methods never suspend, so callers on one event loop see them as atomic.
    """

    def __init__(
        self,
        index: ProjectDocumentIndex | None = None,
        operator: str = "developer",
        now: Clock | None = None,
    ):
        """Initialize the registry.

        Args:
            index: Document correlation index (a fresh one sharing ``now`` if omitted)
            operator: Operator name used in document titles
            now: Clock returning an aware UTC datetime
        """
        self._now = now or utcnow
        self.index = index or ProjectDocumentIndex(now=self._now)
        self.operator = operator
        self._active: Session | None = None
        self._history: dict[str, list[Session]] = {}
        self._by_id: dict[str, Session] = {}

    @property
    def current_session(self) -> Session | None:
        return self._active

    def project_sessions(self, project: str) -> list[Session]:
        return list(self._history.get(project, []))

    def projects(self) -> list[str]:
        return list(self._history)

    def generate_session_id(self) -> str:
        """Timestamp plus random suffix, e.g. ``session-2025-01-15T09-30-00-k3x9qa``."""
        timestamp = self._now().strftime("%Y-%m-%dT%H-%M-%S")
        suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
        return f"session-{timestamp}-{suffix}"

    def start(
        self,
        project: str,
        objective: str,
        template: SessionTemplate = SessionTemplate.PROJECT_LOG,
    ) -> SessionStart:
        """Start a session, deactivating whatever session was active.

        Returns:
            The new session and whether the caller must still create its document
        """
        self._deactivate_current()

        started_at = self._now()
        document_id = self.index.document_id_for_today(project)
        history = self._history.setdefault(project, [])

        session = Session(
            id=self.generate_session_id(),
            project_name=project,
            document_id=document_id or "",
            document_name=deterministic_document_name(
                project, self.operator, calendar_day(started_at)
            ),
            start_time=started_at,
            objective=objective,
            template=template,
            previous_session_id=history[-1].id if history else None,
            is_active=True,
        )

        history.append(session)
        self._by_id[session.id] = session
        self._active = session

        logger.info(
            f"Started session {session.id} for project '{project}' "
            f"({'new document' if document_id is None else 'existing document'})"
        )
        return SessionStart(session=session, is_new_document=document_id is None)

    def rollback_start(self, start: SessionStart, previous: Session | None = None) -> None:
        """Undo a ``start`` whose document could not be opened.

        The new session is dropped from history and the id index, and
        ``previous`` becomes the active session again. A document already
        attached stays in the correlation index.
        """
        session = start.session
        if self._active is session:
            self._deactivate_current()
        session.is_active = False

        project = session.project_name
        history = [s for s in self._history.get(project, []) if s is not session]
        if history:
            self._history[project] = history
        else:
            self._history.pop(project, None)
        self._by_id.pop(session.id, None)

        if previous is not None:
            self._deactivate_current()
            previous.is_active = True
            self._active = previous
        logger.info(f"Rolled back session {session.id} for project '{project}'")

    def continue_session(self, project: str | None = None) -> Session | None:
        """Resume today's session.

        With ``project``, reactivates that project's latest session if it started
        today. Without it, keeps the active session if it started today and
        deactivates it otherwise.

        Returns:
            The resumed session, or None if a fresh ``start`` is required
        """
        today = calendar_day(self._now())

        if project is not None:
            history = self._history.get(project)
            if not history:
                return None
            latest = history[-1]
            if not is_same_day(latest.start_time, today):
                logger.info(f"Latest session for '{project}' is from an earlier day")
                return None
            if latest is not self._active:
                self._deactivate_current()
            latest.is_active = True
            self._active = latest
            return latest

        active = self._active
        if active is None:
            return None
        if not is_same_day(active.start_time, today):
            logger.info(f"Clearing stale active session {active.id}")
            self._deactivate_current()
            return None
        return active

    def end(self) -> Session:
        """Deactivate the active session and return it. History is unchanged.

        Raises:
            StateError: NO_ACTIVE_SESSION if nothing is active
        """
        session = self._active
        if session is None:
            raise StateError(
                StateErrorKind.NO_ACTIVE_SESSION,
                "No active session to end",
                remediation="Use 'start_session' to begin a new session first.",
            )
        self._deactivate_current()
        logger.info(f"Ended session {session.id}")
        return session

    def require_active(self) -> Session:
        """Return the active session if it started today.

        Raises:
            StateError: NO_ACTIVE_SESSION if nothing is active, STALE_SESSION if
                the active session started on an earlier day (it is deactivated)
        """
        session = self._active
        if session is None:
            raise StateError(
                StateErrorKind.NO_ACTIVE_SESSION,
                "No active session. Start a session first.",
                remediation="Use 'start_session' before logging.",
            )
        if not is_same_day(session.start_time, self._now()):
            self._deactivate_current()
            raise StateError(
                StateErrorKind.STALE_SESSION,
                f"Session {session.id} started on an earlier day and has been closed.",
                remediation="Use 'start_session' to open today's document.",
            )
        return session

    def attach_document(self, session_id: str, document_id: str) -> Session:
        """Set a session's document and record it as that project's document.

        Idempotent for a repeated ``(session_id, document_id)`` pair.

        Raises:
            StateError: UNKNOWN_SESSION if no session has that id
        """
        session = self._by_id.get(session_id)
        if session is None:
            raise StateError(StateErrorKind.UNKNOWN_SESSION, f"Unknown session: {session_id}")

        session.document_id = document_id
        self.index.record_document(
            session.project_name, document_id, recorded_on=calendar_day(session.start_time)
        )
        return session

    def invalidate_active(self) -> Session | None:
        """Deactivate the active session, e.g. after its document disappeared."""
        session = self._active
        if session is not None:
            logger.warning(f"Invalidating active session {session.id}")
            self._deactivate_current()
        return session

    def _deactivate_current(self) -> None:
        if self._active is not None:
            self._active.is_active = False
            self._active = None
