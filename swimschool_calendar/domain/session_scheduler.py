"""Turn recurrence occurrences into persisted class sessions.

The batch of inserts for one recurring event is one logical unit of work:
stores that offer ``create_sessions_batch`` are trusted to apply it atomically;
otherwise rows are inserted one by one and removed again if a later insert
fails.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..calendar.recurrence_expander import RecurrenceExpander
from ..calendar.recurrence_models import Occurrence, OccurrenceAnchor, RecurrenceRule
from ..core.config_manager import ALL_DAY_SESSION_DURATION_MINUTES, ExpansionSettings
from ..exceptions import PartialMaterializationError, SessionMaterializationError
from .session_models import SessionDraft, SessionRecord, SessionTemplate
from .session_store import SessionStore, as_utc

logger = logging.getLogger(__name__)


class ScheduleResult(BaseModel):
    """Outcome of scheduling a recurring event."""

    occurrences: list[Occurrence] = Field(default_factory=list)
    created: list[SessionRecord] = Field(default_factory=list)
    skipped: list[SessionDraft] = Field(
        default_factory=list, description="Drafts already present in the store"
    )


def build_session_drafts(
    occurrences: list[Occurrence],
    template: SessionTemplate,
    settings: Any = None,
) -> list[SessionDraft]:
    """Build one session draft per occurrence.

    All-day occurrences get a full-day duration unless the template sets one.
    """
    config = ExpansionSettings.from_settings(settings)
    capacity = template.capacity or config.default_capacity

    drafts = []
    for occurrence in occurrences:
        if template.duration_minutes is not None:
            duration = template.duration_minutes
        elif occurrence.is_all_day:
            duration = ALL_DAY_SESSION_DURATION_MINUTES
        else:
            duration = config.default_duration_minutes

        drafts.append(
            SessionDraft(
                class_id=template.class_id,
                session_date=occurrence.starts_at,
                duration_minutes=duration,
                max_participants=capacity,
                notes=template.notes,
                instructor_id=template.instructor_id,
                session_type=template.session_type,
            )
        )
    return drafts


def _compensate(store: SessionStore, created: list[SessionRecord]) -> list[str]:
    """Delete already-created records, newest first.

    Returns:
        Ids of records that could not be deleted, in creation order
    """
    leftover = []
    for record in reversed(created):
        try:
            store.delete_session(record.id)
        except Exception:
            logger.warning("Failed to roll back session %s", record.id, exc_info=True)
            leftover.append(record.id)
    leftover.reverse()
    return leftover


def materialize_sessions(
    store: SessionStore,
    drafts: list[SessionDraft],
    use_batch: bool = True,
) -> list[SessionRecord]:
    """Insert drafts as one unit of work.

    Args:
        store: Session store
        drafts: Sessions to insert
        use_batch: Use the store's atomic batch insert when it offers one

    Returns:
        Created records in draft order

    Raises:
        SessionMaterializationError: Insert failed and nothing was left behind
        PartialMaterializationError: Insert failed and rollback left records behind
    """
    if not drafts:
        return []

    batch_insert = getattr(store, "create_sessions_batch", None) if use_batch else None
    if callable(batch_insert):
        try:
            records = batch_insert(drafts)
        except Exception as e:
            logger.warning("Batch insert of %d sessions failed: %s", len(drafts), e)
            raise SessionMaterializationError(
                f"Failed to create {len(drafts)} sessions; no sessions were created"
            ) from e
        logger.info("Created %d sessions", len(records))
        return list(records)

    created: list[SessionRecord] = []
    for index, draft in enumerate(drafts):
        try:
            created.append(store.create_session(draft))
        except Exception as e:
            logger.warning(
                "Session insert %d/%d failed, rolling back %d created sessions: %s",
                index + 1,
                len(drafts),
                len(created),
                e,
            )
            leftover = _compensate(store, created)
            if leftover:
                raise PartialMaterializationError(
                    f"Failed to create session {index + 1} of {len(drafts)}; "
                    f"{len(leftover)} sessions could not be removed",
                    leftover_ids=leftover,
                    failed_index=index,
                ) from e
            raise SessionMaterializationError(
                f"Failed to create session {index + 1} of {len(drafts)}; no sessions were created",
                failed_index=index,
            ) from e

    logger.info("Created %d sessions", len(created))
    return created


def _existing_keys(store: SessionStore, drafts: list[SessionDraft]) -> set[tuple[str, datetime]]:
    starts = [as_utc(draft.session_date) for draft in drafts]
    existing = store.list_sessions(min(starts), max(starts) + timedelta(minutes=1))
    return {(record.class_id, as_utc(record.session_date)) for record in existing}


def schedule_recurring_sessions(
    rule: RecurrenceRule,
    anchor: OccurrenceAnchor,
    template: SessionTemplate,
    store: SessionStore,
    hard_cap: Optional[int] = None,
    skip_existing: bool = True,
    settings: Any = None,
) -> ScheduleResult:
    """Expand a recurring event and create its sessions.

    Args:
        rule: Recurrence rule from the create-event form
        anchor: First occurrence date and time
        template: Fields shared by every session
        store: Session store
        hard_cap: Occurrence limit; defaults to the configured hard cap
        skip_existing: Leave out sessions already stored for the same class and start
        settings: Optional settings for defaults

    Returns:
        ScheduleResult with occurrences, created and skipped sessions

    Raises:
        ExpansionError: If the rule is invalid or exceeds the hard cap
        SessionMaterializationError: If inserting the sessions failed
    """
    expander = RecurrenceExpander(settings)
    if anchor.time_zone is None and anchor.time_of_day is not None and expander.config.default_timezone:
        anchor = anchor.model_copy(update={"time_zone": expander.config.default_timezone})

    occurrences = expander.expand(rule, anchor, hard_cap)
    drafts = build_session_drafts(occurrences, template, expander.config)

    skipped: list[SessionDraft] = []
    if skip_existing and drafts:
        existing = _existing_keys(store, drafts)
        pending = []
        for draft in drafts:
            if (draft.class_id, as_utc(draft.session_date)) in existing:
                skipped.append(draft)
            else:
                pending.append(draft)
        if skipped:
            logger.info("Skipping %d sessions that already exist for class %s", len(skipped), template.class_id)
        drafts = pending

    created = materialize_sessions(store, drafts)
    return ScheduleResult(occurrences=occurrences, created=created, skipped=skipped)
