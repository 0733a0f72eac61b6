"""Recurrence rules and their expansion into concrete occurrences."""

from .recurrence_expander import RecurrenceExpander, expand, expand_dates, iter_rule_dates, validate_rule
from .recurrence_models import (
    EndAfterCount,
    EndOnDate,
    NeverEnds,
    Occurrence,
    OccurrenceAnchor,
    RecurrenceFrequency,
    RecurrenceRule,
)

__all__ = [
    "EndAfterCount",
    "EndOnDate",
    "NeverEnds",
    "Occurrence",
    "OccurrenceAnchor",
    "RecurrenceExpander",
    "RecurrenceFrequency",
    "RecurrenceRule",
    "expand",
    "expand_dates",
    "iter_rule_dates",
    "validate_rule",
]
