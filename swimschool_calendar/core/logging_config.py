"""
Central logging configuration for swimschool_calendar.

Sets package logger levels and honours environment overrides so that expansion
and scheduling diagnostics can be switched on without code changes.
"""

import logging
import os
from typing import Optional

PACKAGE_LOGGERS = [
    "swimschool_calendar",
    "swimschool_calendar.calendar.recurrence_expander",
    "swimschool_calendar.domain.session_scheduler",
    "swimschool_calendar.domain.session_store",
    "swimschool_calendar.core.config_manager",
]


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for swimschool_calendar.

    Args:
        debug_mode: Whether to enable debug logging for swimschool_calendar modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        SWIMSCHOOL_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        SWIMSCHOOL_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("SWIMSCHOOL_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("SWIMSCHOOL_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Only add a handler if none exist (preserve the colorized setup from __init__.py)
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s"))
        root_logger.addHandler(handler)

    package_level = logging.DEBUG if final_debug else logging.INFO
    for logger_name in PACKAGE_LOGGERS:
        logging.getLogger(logger_name).setLevel(package_level)

    if final_debug:
        root_logger.debug("Debug logging enabled for swimschool_calendar modules")
    else:
        root_logger.debug("Production logging configuration applied")


def reset_logging_to_debug() -> None:
    """Reset root and package loggers to DEBUG level for troubleshooting."""
    logging.getLogger().setLevel(logging.DEBUG)
    for logger_name in PACKAGE_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.DEBUG)

    logging.getLogger().info("All loggers reset to DEBUG level for troubleshooting")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in PACKAGE_LOGGERS:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
