"""Recurrence expansion for class sessions.

Turns a ``RecurrenceRule`` and an ``OccurrenceAnchor`` into the ordered list of
concrete occurrences to persist as session records. Expansion is pure: no I/O,
no shared state. It either returns the complete list or raises an
``ExpansionError``; it never truncates silently.
"""

import itertools
import logging
from collections.abc import Iterator
from datetime import date, timedelta
from typing import Any, Optional

from ..core.config_manager import ExpansionSettings
from ..exceptions import CapExceededError, InvalidRuleError
from .date_utils import WEEKDAY_NAMES, add_months, add_years, combine_date_and_time, sunday_based_weekday
from .recurrence_models import (
    EndAfterCount,
    EndOnDate,
    NeverEnds,
    Occurrence,
    OccurrenceAnchor,
    RecurrenceFrequency,
    RecurrenceRule,
)

logger = logging.getLogger(__name__)

BIWEEKLY_STEP_DAYS = 14


def validate_rule(rule: RecurrenceRule, start_date: Optional[date] = None) -> None:
    """Check a rule before expansion.

    Args:
        rule: Rule to validate
        start_date: Anchor date; when given, an end date before it is rejected

    Raises:
        InvalidRuleError: If the rule cannot be expanded
    """
    invalid_days = [day for day in rule.days_of_week if day < 0 or day > 6]
    if invalid_days:
        raise InvalidRuleError(
            f"Weekdays must be between 0 (Sunday) and 6 (Saturday), got {invalid_days}"
        )

    if rule.frequency == RecurrenceFrequency.CUSTOM_WEEKDAYS and not rule.days_of_week:
        raise InvalidRuleError("custom_weekdays recurrence requires at least one weekday")

    if rule.uses_interval and rule.interval < 1:
        raise InvalidRuleError(f"Interval must be at least 1, got {rule.interval}")

    end = rule.end_condition
    if isinstance(end, EndAfterCount) and end.count < 1:
        raise InvalidRuleError(f"Occurrence count must be at least 1, got {end.count}")

    if (
        isinstance(end, EndOnDate)
        and start_date is not None
        and rule.frequency != RecurrenceFrequency.NONE
        and end.end_date < start_date
    ):
        raise InvalidRuleError(
            f"End date {end.end_date.isoformat()} is before start date {start_date.isoformat()}"
        )


def iter_rule_dates(rule: RecurrenceRule, start_date: date) -> Iterator[date]:
    """Yield the stepped dates of a rule, starting with the anchor date.

    The iterator applies no end condition. For ``none`` it yields only the
    anchor. It stops once the next date would fall after ``date.max``.
    Callers are expected to have validated the rule.
    """
    yield start_date

    if rule.frequency == RecurrenceFrequency.NONE:
        return

    if rule.uses_weekdays:
        # interval only spaces weeks apart for weekly rules
        week_interval = rule.interval if rule.frequency == RecurrenceFrequency.WEEKLY else 1
        current = start_date
        while True:
            try:
                current = _next_selected_weekday(current, start_date, rule.days_of_week, week_interval)
            except OverflowError:
                logger.debug("Weekday walk from %s ran past %s", start_date.isoformat(), date.max.isoformat())
                return
            yield current

    for step in itertools.count(1):
        try:
            current = _step_from_anchor(rule, start_date, step)
        except (OverflowError, ValueError):
            # timedelta overflows; relativedelta raises ValueError past year 9999
            logger.debug("Recurrence from %s ran past %s", start_date.isoformat(), date.max.isoformat())
            return
        yield current


def _step_from_anchor(rule: RecurrenceRule, start_date: date, step: int) -> date:
    frequency = rule.frequency
    if frequency in (RecurrenceFrequency.DAILY, RecurrenceFrequency.CUSTOM_INTERVAL):
        return start_date + timedelta(days=step * rule.interval)
    if frequency == RecurrenceFrequency.WEEKLY:
        return start_date + timedelta(weeks=step * rule.interval)
    if frequency == RecurrenceFrequency.BIWEEKLY:
        return start_date + timedelta(days=step * BIWEEKLY_STEP_DAYS)
    # Month and year steps are taken from the anchor so a clamped
    # month end (Jan 31 -> Feb 29) does not carry into later months.
    if frequency == RecurrenceFrequency.MONTHLY:
        return add_months(start_date, step * rule.interval)
    if frequency == RecurrenceFrequency.YEARLY:
        return add_years(start_date, step * rule.interval)
    raise InvalidRuleError(f"Unsupported recurrence frequency: {frequency.value}")


def _next_selected_weekday(
    current: date, start_date: date, days_of_week: list[int], week_interval: int
) -> date:
    """Walk forward one day at a time to the next selected weekday.

    Weeks start on Sunday. With ``week_interval`` > 1 only every Nth week,
    counted from the anchor's week, is eligible.
    """
    selected = set(days_of_week)
    anchor_week_start = start_date - timedelta(days=sunday_based_weekday(start_date))
    candidate = current
    while True:
        candidate += timedelta(days=1)
        if sunday_based_weekday(candidate) not in selected:
            continue
        week_index = (candidate - anchor_week_start).days // 7
        if week_index % week_interval == 0:
            return candidate


def expand_dates(rule: RecurrenceRule, start_date: date, hard_cap: int) -> list[date]:
    """Expand a rule into occurrence dates.

    Args:
        rule: Recurrence rule
        start_date: Anchor date (always the first occurrence)
        hard_cap: Maximum number of occurrences to generate

    Returns:
        Strictly increasing list of dates satisfying the end condition

    Raises:
        ValueError: If hard_cap is below 1
        InvalidRuleError: If the rule is invalid, or a count cannot be reached before date.max
        CapExceededError: If the hard cap is reached before the end condition
    """
    if hard_cap < 1:
        raise ValueError(f"hard_cap must be at least 1, got {hard_cap}")

    validate_rule(rule, start_date)

    if rule.frequency == RecurrenceFrequency.NONE:
        return [start_date]

    end = rule.end_condition
    if isinstance(end, EndAfterCount) and end.count > hard_cap:
        raise CapExceededError(
            f"Requested {end.count} occurrences but the limit is {hard_cap}; "
            "reduce the number of occurrences",
            hard_cap=hard_cap,
        )

    dates: list[date] = []
    for current in iter_rule_dates(rule, start_date):
        if isinstance(end, EndOnDate) and current > end.end_date:
            break

        if len(dates) >= hard_cap:
            if isinstance(end, NeverEnds):
                logger.debug("Open-ended recurrence stopped at hard cap %d", hard_cap)
                break
            raise CapExceededError(
                f"Recurrence produces more than {hard_cap} occurrences before "
                f"{end.end_date.isoformat()}; reduce the frequency or pick an earlier end date",
                hard_cap=hard_cap,
            )

        dates.append(current)

        if isinstance(end, EndAfterCount) and len(dates) >= end.count:
            break

    if isinstance(end, EndAfterCount) and len(dates) < end.count:
        raise InvalidRuleError(
            f"Only {len(dates)} of {end.count} occurrences fall on or before "
            f"{date.max.isoformat()}; reduce the number of occurrences"
        )

    return dates


def expand(rule: RecurrenceRule, anchor: OccurrenceAnchor, hard_cap: int) -> list[Occurrence]:
    """Expand a rule from an anchor into concrete occurrences.

    The anchor's time of day (if any) is applied unchanged to every date.

    Args:
        rule: Recurrence rule
        anchor: Start date, optional time of day and timezone
        hard_cap: Maximum number of occurrences to generate

    Returns:
        Ordered, duplicate-free list of occurrences

    Raises:
        ValueError: If hard_cap is below 1
        InvalidRuleError: If the rule is invalid, or a count cannot be reached before date.max
        CapExceededError: If the hard cap is reached before the end condition
    """
    dates = expand_dates(rule, anchor.start_date, hard_cap)

    if anchor.time_of_day is None:
        occurrences = [Occurrence(occurrence_date=d) for d in dates]
    else:
        occurrences = [
            Occurrence(
                occurrence_date=d,
                start=combine_date_and_time(d, anchor.time_of_day, anchor.time_zone),
            )
            for d in dates
        ]

    logger.debug(
        "Expanded %s recurrence from %s into %d occurrences (weekdays=%s)",
        rule.frequency.value,
        anchor.start_date.isoformat(),
        len(occurrences),
        ",".join(WEEKDAY_NAMES[day] for day in rule.days_of_week) or "-",
    )
    return occurrences


class RecurrenceExpander:
    """Recurrence expander bound to configuration settings.

    Supplies the configured default hard cap for callers (such as the CLI and
    the session scheduler) that do not pass one explicitly.
    """

    def __init__(self, settings: Any = None):
        """Initialize expander with settings.

        Args:
            settings: ExpansionSettings, a dict, or any object with matching attributes
        """
        self.config = ExpansionSettings.from_settings(settings)
        self.default_hard_cap = self.config.hard_cap

    def resolve_hard_cap(self, hard_cap: Optional[int] = None) -> int:
        return self.default_hard_cap if hard_cap is None else hard_cap

    def expand(
        self,
        rule: RecurrenceRule,
        anchor: OccurrenceAnchor,
        hard_cap: Optional[int] = None,
    ) -> list[Occurrence]:
        """Expand using the configured hard cap unless one is given."""
        return expand(rule, anchor, self.resolve_hard_cap(hard_cap))

    def validate(self, rule: RecurrenceRule, anchor: Optional[OccurrenceAnchor] = None) -> None:
        """Validate a rule, e.g. before enabling a form's save action."""
        validate_rule(rule, anchor.start_date if anchor is not None else None)
