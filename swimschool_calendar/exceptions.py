"""Exception hierarchy for swimschool_calendar.

Expansion errors are raised synchronously by the recurrence expander and are
never worth retrying: the caller must fix the rule or bound it. Materialization
errors come from the session store collaborator and distinguish a clean
rollback from a batch that left records behind.
"""

from typing import Optional


class SwimSchoolCalendarError(Exception):
    """Base exception for all swimschool_calendar errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ExpansionError(SwimSchoolCalendarError):
    """Base exception for recurrence expansion errors."""


class InvalidRuleError(ExpansionError):
    """The recurrence rule is malformed.

    Raised when:
    - custom_weekdays has no weekdays selected
    - a weekday is outside 0-6 (Sunday=0)
    - AfterCount has a count below 1
    - interval is below 1 for a frequency that uses it
    - OnDate ends before the anchor date
    """


class CapExceededError(ExpansionError):
    """Generation hit the hard cap before the end condition was satisfied.

    Signals a rule that is unbounded or too dense for the requested range.
    """

    def __init__(self, message: str, hard_cap: int):
        super().__init__(message)
        self.hard_cap = hard_cap


class SessionMaterializationError(SwimSchoolCalendarError):
    """A batch of session inserts failed and was rolled back completely."""

    def __init__(self, message: str, failed_index: Optional[int] = None):
        super().__init__(message)
        self.failed_index = failed_index


class PartialMaterializationError(SessionMaterializationError):
    """A batch of session inserts failed and some records could not be removed."""

    def __init__(
        self,
        message: str,
        leftover_ids: list[str],
        failed_index: Optional[int] = None,
    ):
        super().__init__(message, failed_index=failed_index)
        self.leftover_ids = list(leftover_ids)
