"""Data models for class session records created from recurrence occurrences."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..calendar.date_utils import serialize_datetime_utc


class SessionStatus(str, Enum):
    """Lifecycle status of a class session."""

    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class SessionTemplate(BaseModel):
    """Fields shared by every session generated from one recurring event."""

    class_id: str = Field(..., description="Class/event definition the sessions belong to")
    duration_minutes: Optional[int] = Field(
        default=None, ge=1, description="Session length; None uses the configured default"
    )
    capacity: Optional[int] = Field(
        default=None, ge=1, description="Max participants; None uses the configured default"
    )
    notes: Optional[str] = Field(default=None, description="Free-form notes")
    instructor_id: Optional[str] = Field(default=None, description="Assigned instructor")
    session_type: str = Field(default="class", description="Session type")

    @field_validator("notes")
    @classmethod
    def empty_notes_to_none(cls, value: Optional[str]) -> Optional[str]:
        """Store blank notes as None."""
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None


class SessionDraft(BaseModel):
    """A session row ready to be inserted."""

    class_id: str = Field(..., description="Class/event definition foreign key")
    session_date: datetime = Field(..., description="Start timestamp")
    duration_minutes: int = Field(..., ge=1, description="Session length in minutes")
    max_participants: int = Field(..., ge=1, description="Capacity")
    status: SessionStatus = Field(default=SessionStatus.SCHEDULED, description="Session status")
    notes: Optional[str] = Field(default=None, description="Free-form notes")
    instructor_id: Optional[str] = Field(default=None, description="Assigned instructor")
    session_type: str = Field(default="class", description="Session type")

    model_config = ConfigDict(use_enum_values=True)

    @property
    def ends_at(self) -> datetime:
        return self.session_date + timedelta(minutes=self.duration_minutes)

    @field_serializer("session_date")
    def serialize_session_date(self, dt: datetime) -> str:
        """Serialize the start as ISO 8601 UTC."""
        return serialize_datetime_utc(dt)


class SessionRecord(SessionDraft):
    """A persisted session row."""

    id: str = Field(..., description="Generated session identifier")

    @classmethod
    def from_draft(cls, draft: SessionDraft, session_id: str) -> "SessionRecord":
        # model_dump would turn session_date into a UTC string
        fields = {name: getattr(draft, name) for name in SessionDraft.model_fields}
        return cls(id=session_id, **fields)
