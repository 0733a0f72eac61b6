"""Class session scheduling on top of recurrence expansion."""

from .session_models import SessionDraft, SessionRecord, SessionStatus, SessionTemplate
from .session_scheduler import (
    ScheduleResult,
    build_session_drafts,
    materialize_sessions,
    schedule_recurring_sessions,
)
from .session_store import InMemorySessionStore, SessionStore

__all__ = [
    "InMemorySessionStore",
    "ScheduleResult",
    "SessionDraft",
    "SessionRecord",
    "SessionStatus",
    "SessionStore",
    "SessionTemplate",
    "build_session_drafts",
    "materialize_sessions",
    "schedule_recurring_sessions",
]
