"""
Tests for swimschool_calendar.domain.session_scheduler.

Covers draft building, all-or-nothing materialization (batch and sequential
with rollback), partial-failure reporting, and end-to-end scheduling.
"""
from datetime import date, datetime, time

import pytest

from swimschool_calendar.calendar.recurrence_models import (
    EndAfterCount,
    Occurrence,
    OccurrenceAnchor,
    RecurrenceFrequency,
    RecurrenceRule,
)
from swimschool_calendar.core.config_manager import ExpansionSettings
from swimschool_calendar.domain.session_models import SessionDraft, SessionTemplate
from swimschool_calendar.domain.session_scheduler import (
    build_session_drafts,
    materialize_sessions,
    schedule_recurring_sessions,
)
from swimschool_calendar.domain.session_store import InMemorySessionStore
from swimschool_calendar.exceptions import (
    CapExceededError,
    InvalidRuleError,
    PartialMaterializationError,
    SessionMaterializationError,
)

pytestmark = pytest.mark.unit


class FailingInsertStore(InMemorySessionStore):
    """Store without batch support whose Nth insert fails."""

    create_sessions_batch = None

    def __init__(self, fail_at: int):
        super().__init__()
        self.fail_at = fail_at
        self.insert_calls = 0

    def create_session(self, draft):
        self.insert_calls += 1
        if self.insert_calls == self.fail_at:
            raise ConnectionError("backend unavailable")
        return super().create_session(draft)


class FailingInsertAndDeleteStore(FailingInsertStore):
    """Store whose rollback deletes fail for selected ids."""

    def __init__(self, fail_at: int, undeletable: int):
        super().__init__(fail_at)
        self.undeletable = undeletable
        self.created_ids = []

    def create_session(self, draft):
        record = super().create_session(draft)
        self.created_ids.append(record.id)
        return record

    def delete_session(self, session_id):
        if session_id in self.created_ids[: self.undeletable]:
            raise ConnectionError("delete rejected")
        super().delete_session(session_id)


class FailingBatchStore(InMemorySessionStore):
    def create_sessions_batch(self, drafts):
        raise RuntimeError("transaction aborted")


def _drafts(count: int) -> list[SessionDraft]:
    return [
        SessionDraft(
            class_id="class-1",
            session_date=datetime(2024, 1, day + 1, 9, 0),
            duration_minutes=45,
            max_participants=8,
        )
        for day in range(count)
    ]


class TestBuildSessionDrafts:
    def test_timed_occurrences_use_default_duration(self, session_template, expansion_settings):
        occurrences = [
            Occurrence(occurrence_date=date(2024, 1, 1), start=datetime(2024, 1, 1, 9, 30)),
            Occurrence(occurrence_date=date(2024, 1, 8), start=datetime(2024, 1, 8, 9, 30)),
        ]
        drafts = build_session_drafts(occurrences, session_template, expansion_settings)
        assert [draft.session_date for draft in drafts] == [o.start for o in occurrences]
        assert all(draft.duration_minutes == 45 for draft in drafts)
        assert all(draft.max_participants == 6 for draft in drafts)
        assert all(draft.notes == "Bring goggles" for draft in drafts)
        assert all(draft.status == "scheduled" for draft in drafts)

    def test_all_day_occurrences_last_a_day(self, expansion_settings):
        template = SessionTemplate(class_id="gala")
        drafts = build_session_drafts([Occurrence(occurrence_date=date(2024, 6, 1))], template, expansion_settings)
        assert drafts[0].session_date == datetime(2024, 6, 1, 0, 0)
        assert drafts[0].duration_minutes == 1440
        assert drafts[0].max_participants == 8

    def test_template_duration_wins(self):
        template = SessionTemplate(class_id="c", duration_minutes=90, instructor_id="coach-7")
        drafts = build_session_drafts([Occurrence(occurrence_date=date(2024, 6, 1))], template)
        assert drafts[0].duration_minutes == 90
        assert drafts[0].instructor_id == "coach-7"

    def test_default_settings(self):
        drafts = build_session_drafts(
            [Occurrence(occurrence_date=date(2024, 6, 1), start=datetime(2024, 6, 1, 10, 0))],
            SessionTemplate(class_id="c"),
        )
        assert drafts[0].duration_minutes == 60
        assert drafts[0].max_participants == 10


class TestMaterializeSessions:
    def test_empty_batch(self, memory_store):
        assert materialize_sessions(memory_store, []) == []
        assert len(memory_store) == 0

    def test_uses_batch_insert(self, memory_store):
        records = materialize_sessions(memory_store, _drafts(3))
        assert len(records) == 3
        assert len(memory_store) == 3

    def test_sequential_when_batch_disabled(self, memory_store):
        records = materialize_sessions(memory_store, _drafts(3), use_batch=False)
        assert [r.session_date.day for r in records] == [1, 2, 3]
        assert len(memory_store) == 3

    def test_failed_batch_raises_materialization_error(self):
        store = FailingBatchStore()
        with pytest.raises(SessionMaterializationError) as exc_info:
            materialize_sessions(store, _drafts(2))
        assert not isinstance(exc_info.value, PartialMaterializationError)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert len(store) == 0

    def test_sequential_failure_rolls_back(self):
        store = FailingInsertStore(fail_at=3)
        with pytest.raises(SessionMaterializationError) as exc_info:
            materialize_sessions(store, _drafts(5))
        error = exc_info.value
        assert not isinstance(error, PartialMaterializationError)
        assert error.failed_index == 2
        assert isinstance(error.__cause__, ConnectionError)
        assert len(store) == 0

    def test_failed_rollback_reports_leftovers(self):
        store = FailingInsertAndDeleteStore(fail_at=4, undeletable=2)
        with pytest.raises(PartialMaterializationError) as exc_info:
            materialize_sessions(store, _drafts(5))
        error = exc_info.value
        assert error.failed_index == 3
        assert error.leftover_ids == store.created_ids[:2]
        assert len(store) == 2


class TestScheduleRecurringSessions:
    def test_creates_one_session_per_occurrence(self, memory_store, session_template, expansion_settings):
        rule = RecurrenceRule(
            frequency=RecurrenceFrequency.WEEKLY, days_of_week=[1, 3, 5], end_condition=EndAfterCount(count=6)
        )
        anchor = OccurrenceAnchor(start_date=date(2024, 1, 1), time_of_day=time(17, 0))
        result = schedule_recurring_sessions(
            rule, anchor, session_template, memory_store, settings=expansion_settings
        )
        assert len(result.occurrences) == 6
        assert len(result.created) == 6
        assert result.skipped == []
        assert len(memory_store) == 6
        assert all(record.session_date.time() == time(17, 0) for record in result.created)

    def test_rerun_skips_existing_sessions(self, memory_store, session_template, expansion_settings):
        rule = RecurrenceRule(frequency=RecurrenceFrequency.DAILY, end_condition=EndAfterCount(count=3))
        anchor = OccurrenceAnchor(start_date=date(2024, 1, 1), time_of_day=time(9, 0))
        schedule_recurring_sessions(rule, anchor, session_template, memory_store, settings=expansion_settings)

        longer = rule.model_copy(update={"end_condition": EndAfterCount(count=5)})
        result = schedule_recurring_sessions(
            longer, anchor, session_template, memory_store, settings=expansion_settings
        )
        assert len(result.skipped) == 3
        assert len(result.created) == 2
        assert len(memory_store) == 5

    def test_other_class_at_same_time_is_not_skipped(self, memory_store, expansion_settings):
        rule = RecurrenceRule(frequency=RecurrenceFrequency.DAILY, end_condition=EndAfterCount(count=2))
        anchor = OccurrenceAnchor(start_date=date(2024, 1, 1), time_of_day=time(9, 0))
        schedule_recurring_sessions(
            rule, anchor, SessionTemplate(class_id="a"), memory_store, settings=expansion_settings
        )
        result = schedule_recurring_sessions(
            rule, anchor, SessionTemplate(class_id="b"), memory_store, settings=expansion_settings
        )
        assert len(result.created) == 2
        assert len(memory_store) == 4

    def test_default_timezone_applied(self, memory_store, session_template):
        settings = ExpansionSettings(default_timezone="Europe/Paris")
        anchor = OccurrenceAnchor(start_date=date(2024, 7, 1), time_of_day=time(9, 0))
        result = schedule_recurring_sessions(RecurrenceRule(), anchor, session_template, memory_store, settings=settings)
        assert result.created[0].model_dump(mode="json")["session_date"] == "2024-07-01T07:00:00Z"

    def test_invalid_rule_creates_nothing(self, memory_store, session_template):
        rule = RecurrenceRule(frequency=RecurrenceFrequency.CUSTOM_WEEKDAYS)
        with pytest.raises(InvalidRuleError):
            schedule_recurring_sessions(
                rule, OccurrenceAnchor(start_date=date(2024, 1, 1)), session_template, memory_store
            )
        assert len(memory_store) == 0

    def test_cap_exceeded_creates_nothing(self, memory_store, session_template):
        rule = RecurrenceRule(frequency=RecurrenceFrequency.DAILY, end_condition=EndAfterCount(count=20))
        with pytest.raises(CapExceededError):
            schedule_recurring_sessions(
                rule, OccurrenceAnchor(start_date=date(2024, 1, 1)), session_template, memory_store, hard_cap=10
            )
        assert len(memory_store) == 0
