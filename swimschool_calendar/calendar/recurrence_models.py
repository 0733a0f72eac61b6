"""Data models for recurring class sessions."""

from datetime import date, datetime, time
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from dateutil.parser import isoparse
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..exceptions import InvalidRuleError
from .date_utils import resolve_timezone


class RecurrenceFrequency(str, Enum):
    """How often a recurring event repeats."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM_INTERVAL = "custom_interval"
    CUSTOM_WEEKDAYS = "custom_weekdays"


# Frequencies whose step size comes from RecurrenceRule.interval
INTERVAL_FREQUENCIES = frozenset(
    {
        RecurrenceFrequency.DAILY,
        RecurrenceFrequency.WEEKLY,
        RecurrenceFrequency.MONTHLY,
        RecurrenceFrequency.YEARLY,
        RecurrenceFrequency.CUSTOM_INTERVAL,
    }
)


class NeverEnds(BaseModel):
    """Repeat until the caller's hard cap is reached."""

    kind: Literal["never"] = "never"

    model_config = ConfigDict(frozen=True)


class EndAfterCount(BaseModel):
    """Stop after a fixed number of occurrences."""

    kind: Literal["count"] = "count"
    count: int = Field(..., description="Total number of occurrences, anchor included")

    model_config = ConfigDict(frozen=True)


class EndOnDate(BaseModel):
    """Stop after the last occurrence falling on or before a date."""

    kind: Literal["date"] = "date"
    end_date: date = Field(..., description="Last date an occurrence may fall on")

    model_config = ConfigDict(frozen=True)


EndCondition = Annotated[Union[NeverEnds, EndAfterCount, EndOnDate], Field(discriminator="kind")]


class RecurrenceRule(BaseModel):
    """User-specified repeat pattern for a single event.

    Range checks (interval, count, weekdays) are done by
    ``recurrence_expander.validate_rule``, which raises ``InvalidRuleError``
    instead of a pydantic ``ValidationError``.
    """

    frequency: RecurrenceFrequency = Field(default=RecurrenceFrequency.NONE)
    interval: int = Field(default=1, description="Step count in the frequency's unit")
    days_of_week: list[int] = Field(
        default_factory=list, description="Weekdays, Sunday=0 ... Saturday=6"
    )
    end_condition: EndCondition = Field(default_factory=NeverEnds)

    model_config = ConfigDict(frozen=True)

    @field_validator("days_of_week")
    @classmethod
    def normalize_days_of_week(cls, value: list[int]) -> list[int]:
        """Store weekdays sorted and without duplicates."""
        return sorted(set(value))

    @property
    def uses_interval(self) -> bool:
        """Whether ``interval`` affects stepping for this frequency."""
        return self.frequency in INTERVAL_FREQUENCIES

    @property
    def uses_weekdays(self) -> bool:
        """Whether stepping walks day by day to the selected weekdays."""
        if self.frequency == RecurrenceFrequency.CUSTOM_WEEKDAYS:
            return True
        return self.frequency == RecurrenceFrequency.WEEKLY and bool(self.days_of_week)

    @classmethod
    def from_form_payload(cls, payload: dict[str, Any]) -> "RecurrenceRule":
        """Build a rule from the create-event form payload.

        Accepts the form's camelCase keys (``weekDays`` or ``daysOfWeek``,
        ``endType``, ``endCount``, ``endDate``) as well as the snake_case
        field names. The form's ``custom`` frequency maps to custom weekdays
        when weekdays are selected and to a custom day interval otherwise.

        ``endDate`` is a calendar date: a ``YYYY-MM-DD`` string, a ``date``,
        or a naive datetime. Values carrying a UTC offset (such as a JS
        ``Date.toISOString()``) are rejected.

        Raises:
            InvalidRuleError: If the payload cannot be mapped to a rule
        """
        days = payload.get("daysOfWeek")
        if days is None:
            days = payload.get("weekDays")
        if days is None:
            days = payload.get("days_of_week")
        try:
            days_of_week = [int(day) for day in (days or [])]
        except (TypeError, ValueError) as e:
            raise InvalidRuleError(f"Invalid weekday selection: {days!r}") from e

        raw_frequency = str(payload.get("frequency") or "none").strip().lower().replace("-", "_")
        if raw_frequency == "custom":
            frequency = (
                RecurrenceFrequency.CUSTOM_WEEKDAYS
                if days_of_week
                else RecurrenceFrequency.CUSTOM_INTERVAL
            )
        else:
            try:
                frequency = RecurrenceFrequency(raw_frequency)
            except ValueError as e:
                raise InvalidRuleError(f"Unknown recurrence frequency: {raw_frequency!r}") from e

        raw_interval = payload.get("interval")
        try:
            interval = 1 if raw_interval in (None, "") else int(raw_interval)
        except (TypeError, ValueError) as e:
            raise InvalidRuleError(f"Invalid interval: {raw_interval!r}") from e

        return cls(
            frequency=frequency,
            interval=interval,
            days_of_week=days_of_week,
            end_condition=_end_condition_from_payload(payload),
        )


def _end_condition_from_payload(payload: dict[str, Any]) -> Union[NeverEnds, EndAfterCount, EndOnDate]:
    end_type = str(payload.get("endType") or payload.get("end_type") or "never").strip().lower()

    if end_type == "never":
        return NeverEnds()

    if end_type == "count":
        raw_count = payload.get("endCount", payload.get("end_count"))
        if raw_count in (None, ""):
            raise InvalidRuleError("endCount is required when endType is 'count'")
        try:
            return EndAfterCount(count=int(raw_count))
        except (TypeError, ValueError) as e:
            raise InvalidRuleError(f"Invalid endCount: {raw_count!r}") from e

    if end_type == "date":
        raw_date = payload.get("endDate", payload.get("end_date"))
        if raw_date in (None, ""):
            raise InvalidRuleError("endDate is required when endType is 'date'")
        if isinstance(raw_date, date) and not isinstance(raw_date, datetime):
            return EndOnDate(end_date=raw_date)
        if isinstance(raw_date, datetime):
            parsed = raw_date
        else:
            try:
                parsed = isoparse(str(raw_date))
            except ValueError as e:
                raise InvalidRuleError(f"Invalid endDate: {raw_date!r}") from e
        # An instant with an offset has no single calendar date
        if parsed.tzinfo is not None:
            raise InvalidRuleError(
                f"endDate must be a calendar date (YYYY-MM-DD) without a UTC offset, got {raw_date!r}"
            )
        return EndOnDate(end_date=parsed.date())

    raise InvalidRuleError(f"Unknown endType: {end_type!r}")


class OccurrenceAnchor(BaseModel):
    """First date (and optional time of day) from which occurrences are computed."""

    start_date: date = Field(..., description="Date of the first occurrence")
    time_of_day: Optional[time] = Field(
        default=None, description="Start time applied to every occurrence; None for all-day"
    )
    time_zone: Optional[str] = Field(default=None, description="IANA timezone for start times")

    model_config = ConfigDict(frozen=True)

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, value: Optional[str]) -> Optional[str]:
        """Reject unknown IANA timezone names."""
        resolve_timezone(value)
        return value

    @property
    def is_all_day(self) -> bool:
        return self.time_of_day is None


class Occurrence(BaseModel):
    """One concrete instance produced by expanding a recurrence rule."""

    occurrence_date: date = Field(..., description="Calendar date of the occurrence")
    start: Optional[datetime] = Field(default=None, description="Start time; None for all-day")

    model_config = ConfigDict(frozen=True)

    @property
    def is_all_day(self) -> bool:
        return self.start is None

    @property
    def starts_at(self) -> datetime:
        """Start as a datetime; all-day occurrences start at midnight."""
        if self.start is not None:
            return self.start
        return datetime.combine(self.occurrence_date, time.min)

    @field_serializer("start", when_used="unless-none")
    def serialize_start(self, dt: datetime) -> str:
        """Serialize start to ISO format."""
        return dt.isoformat()
