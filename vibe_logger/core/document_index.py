"""Project -> today's document correlation and deterministic document names."""

import logging
import re
from datetime import date

from .clock import Clock, calendar_day, is_same_day, utcnow

logger = logging.getLogger(__name__)

MAX_DOCUMENT_NAME_LENGTH = 50
MAX_OPERATOR_LENGTH = 20
DOCUMENT_NAME_PREFIX = "session"

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def sanitize_name_part(value: str) -> str:
    """Lower-case, strip characters outside ``[a-z0-9-]``, hyphenate whitespace."""
    value = _DISALLOWED.sub("", value.lower())
    value = _WHITESPACE.sub("-", value)
    value = _HYPHENS.sub("-", value)
    return value.strip("-")


def deterministic_document_name(project: str, operator: str, day: date) -> str:
    """Build the title of the document backing ``project`` on ``day``.

    The result is ``session-<project>-<YYYY-MM-DD>-<operator>``, contains only
    ``[a-z0-9-]`` and is at most 50 characters. Long project names are cut
    first so the date and operator always survive.
    """
    operator_part = sanitize_name_part(operator)[:MAX_OPERATOR_LENGTH].strip("-") or "developer"
    date_part = day.isoformat()

    # Three joining hyphens between the four parts
    fixed_length = len(DOCUMENT_NAME_PREFIX) + len(date_part) + len(operator_part) + 3
    budget = MAX_DOCUMENT_NAME_LENGTH - fixed_length
    project_part = sanitize_name_part(project)[:budget].strip("-") or "untitled"

    return f"{DOCUMENT_NAME_PREFIX}-{project_part}-{date_part}-{operator_part}"


class ProjectDocumentIndex:
    """Maps a project name to the document recorded for it today.

    Entries are never expired eagerly: each remembers the calendar day of the
    session that produced it and is ignored once that day has passed.
    """

    def __init__(self, now: Clock | None = None):
        self._now = now or utcnow
        self._entries: dict[str, tuple[str, date]] = {}

    def today(self) -> date:
        return calendar_day(self._now())

    def document_id_for_today(self, project: str) -> str | None:
        """Return the document id recorded for ``project`` today, else None."""
        entry = self._entries.get(project)
        if entry is None:
            return None
        document_id, recorded_on = entry
        if not is_same_day(recorded_on, self.today()):
            logger.debug(f"Ignoring stale document for {project} recorded on {recorded_on}")
            return None
        return document_id

    def record_document(
        self, project: str, document_id: str, recorded_on: date | None = None
    ) -> None:
        """Record ``document_id`` for ``project``; last writer wins.

        Args:
            project: Project name
            document_id: Backing document id
            recorded_on: Day the producing session started (defaults to today)
        """
        self._entries[project] = (document_id, recorded_on or self.today())

    def forget(self, project: str) -> None:
        """Drop the entry for ``project`` if there is one."""
        self._entries.pop(project, None)

    def __len__(self) -> int:
        return len(self._entries)
