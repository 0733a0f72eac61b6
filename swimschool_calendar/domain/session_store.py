"""Session persistence boundary and an in-memory implementation."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import UTC, datetime
from typing import Protocol

from .session_models import SessionDraft, SessionRecord

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Protocol for the sessions table of the backing store."""

    def create_session(self, draft: SessionDraft) -> SessionRecord:
        """Insert one session row.

        Args:
            draft: Session to insert

        Returns:
            The persisted record with its generated id
        """
        ...

    def delete_session(self, session_id: str) -> None:
        """Delete one session row.

        Args:
            session_id: Identifier returned by create_session
        """
        ...

    def list_sessions(self, start: datetime, end: datetime) -> list[SessionRecord]:
        """List sessions whose start falls in [start, end).

        Args:
            start: Inclusive lower bound
            end: Exclusive upper bound

        Returns:
            Matching records ordered by start
        """
        ...


def as_utc(dt: datetime) -> datetime:
    """Normalize a datetime for comparison; naive values are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


class InMemorySessionStore:
    """Thread-safe in-memory session store.

    Used by tests and the CLI dry runs. ``create_sessions_batch`` is atomic:
    either every draft is stored or none is.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[str, SessionRecord] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _new_record(self, draft: SessionDraft) -> SessionRecord:
        return SessionRecord.from_draft(draft, uuid.uuid4().hex)

    def create_session(self, draft: SessionDraft) -> SessionRecord:
        record = self._new_record(draft)
        with self._lock:
            self._sessions[record.id] = record
        logger.debug("Created session %s at %s", record.id, record.session_date.isoformat())
        return record

    def create_sessions_batch(self, drafts: list[SessionDraft]) -> list[SessionRecord]:
        """Insert all drafts under one lock acquisition."""
        records = [self._new_record(draft) for draft in drafts]
        with self._lock:
            for record in records:
                self._sessions[record.id] = record
        logger.debug("Created %d sessions in one batch", len(records))
        return records

    def delete_session(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise KeyError(f"Unknown session id: {session_id}")
        logger.debug("Deleted session %s", session_id)

    def get_session(self, session_id: str) -> SessionRecord | None:
        with self._lock:
            return self._sessions.get(session_id)

    def list_sessions(self, start: datetime, end: datetime) -> list[SessionRecord]:
        lower, upper = as_utc(start), as_utc(end)
        with self._lock:
            matches = [
                record
                for record in self._sessions.values()
                if lower <= as_utc(record.session_date) < upper
            ]
        return sorted(matches, key=lambda record: as_utc(record.session_date))
