"""Markdown written into session documents."""

from datetime import datetime

from ..models import (
    LogActivityRequest,
    LogDecisionRequest,
    SaveConversationRequest,
    Session,
    SessionTemplate,
)


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def document_body(session: Session, timestamp: str) -> str:
    """Initial content of a freshly created document."""
    project = session.project_name
    match session.template:
        case SessionTemplate.ADR:
            return (
                f"# Architecture Decision Record: {project}\n\n"
                f"**Date:** {timestamp}\n"
                "**Status:** Proposed\n\n"
                "## Context\n\n"
                "## Decision\n\n"
                "## Rationale\n\n"
                "## Consequences\n\n"
            )
        case SessionTemplate.FEATURE_SPEC:
            return (
                f"# Feature Specification: {project}\n\n"
                f"**Created:** {timestamp}\n"
                f"**Objective:** {session.objective}\n\n"
                "## Overview\n\n"
                "## Requirements\n\n"
                "## Technical Approach\n\n"
                "## Implementation Notes\n\n"
            )
        case SessionTemplate.TROUBLESHOOTING:
            return (
                f"# Troubleshooting Log: {project}\n\n"
                f"**Started:** {timestamp}\n"
                f"**Issue:** {session.objective}\n\n"
                "## Problem Description\n\n"
                "## Investigation Steps\n\n"
                "## Solutions Attempted\n\n"
                "## Resolution\n\n"
            )
        case SessionTemplate.RETROSPECTIVE:
            return (
                f"# Retrospective: {project}\n\n"
                f"**Date:** {timestamp}\n"
                f"**Focus:** {session.objective}\n\n"
                "## What Went Well\n\n"
                "## What Could Be Improved\n\n"
                "## Action Items\n\n"
            )
        case _:
            return (
                f"# Development Log: {project}\n\n"
                f"**Started:** {timestamp}\n"
                f"**Session Objective:** {session.objective}\n\n"
                "## Development Notes\n\n"
            )


def session_header(session: Session, timestamp: str, is_new_document: bool) -> str:
    title = "🚀 Session Started" if is_new_document else "🔄 Session Continued"
    return f"\n\n## {title}\n**Time:** {timestamp}\n**Objective:** {session.objective}\n\n"


def continuation_marker(session: Session, timestamp: str) -> str:
    return (
        f"\n\n---\n## 🔄 Session Resumed\n**Time:** {timestamp}\n"
        f"**Continuing work on:** {session.objective}\n\n"
    )


def session_end(summary: str, timestamp: str, next_steps: list[str] | None = None) -> str:
    content = f"\n\n---\n## ✅ Session Ended\n**Time:** {timestamp}\n**Summary:** {summary}\n"
    if next_steps:
        content += f"\n**Next Steps:**\n{_bullets(next_steps)}\n"
    return content + "\n---\n\n"


def decision_entry(request: LogDecisionRequest, timestamp: str) -> str:
    content = f"\n### 📋 Decision: {request.decision}\n"
    content += f"**Time:** {timestamp}\n"
    content += f"**Rationale:** {request.rationale}\n"
    if request.alternatives:
        content += f"**Alternatives Considered:**\n{_bullets(request.alternatives)}\n"
    if request.impact:
        content += f"**Impact Level:** {request.impact.value}\n"
    return content + "\n"


def activity_entry(request: LogActivityRequest, timestamp: str) -> str:
    content = f"\n### ⚡ Activity: {request.activity}\n"
    content += f"**Time:** {timestamp}\n"
    content += f"**Category:** {request.category.value}\n"
    if request.outcome:
        content += f"**Outcome:** {request.outcome}\n"
    return content + "\n"


def conversation_entry(request: SaveConversationRequest, timestamp: str) -> str:
    content = f"\n### 💬 Conversation: {request.topic}\n"
    content += f"**Time:** {timestamp}\n"
    if request.include_full_text:
        content += "**Note:** Full conversation text requested for this topic.\n"
    else:
        content += f"**Key Points:** Summary of important discussion points about {request.topic}\n"
    return content + "\n"


def default_summary(session: Session, now: datetime) -> str:
    """Summary used when ``end_session`` is called without one."""
    minutes = round((now - session.start_time).total_seconds() / 60)
    return f"Session completed after {minutes} minutes. Worked on: {session.objective}"


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
