"""swimschool_calendar - recurring class sessions for the swimming-school portal.

Expands recurrence rules from the create-event form into concrete occurrences
and materializes them as class session records.
"""

__version__ = "0.1.0"

from typing import Optional

from .exceptions import (
    CapExceededError,
    ExpansionError,
    InvalidRuleError,
    PartialMaterializationError,
    SessionMaterializationError,
    SwimSchoolCalendarError,
)

__all__ = [
    "CapExceededError",
    "ExpansionError",
    "InvalidRuleError",
    "PartialMaterializationError",
    "SessionMaterializationError",
    "SwimSchoolCalendarError",
    "__version__",
]


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream colorized output to the console.

    Honors the SWIMSCHOOL_DEBUG environment variable (truthy values: "1",
    "true", "yes", "on"), which forces DEBUG verbosity.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("SWIMSCHOOL_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure a handler if none are present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message, only the level is colorized
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        candidate = getattr(logging, level_name.upper(), logging.INFO)
        if isinstance(candidate, int):
            level = candidate
    root.setLevel(level)
    logging.getLogger(__name__).debug("Logging initialized at level %s", logging.getLevelName(level))
