"""Configuration management for swimschool_calendar."""

from __future__ import annotations

import logging
import os
import zoneinfo
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Defaults used when neither the caller nor the environment provides a value
DEFAULT_HARD_CAP = 1000
DEFAULT_SESSION_DURATION_MINUTES = 60
ALL_DAY_SESSION_DURATION_MINUTES = 1440
DEFAULT_SESSION_CAPACITY = 10
DEFAULT_TIMEZONE = "Europe/Paris"


@dataclass
class ExpansionSettings:
    """Settings for recurrence expansion and session scheduling.

    Consolidates the tunables with explicit defaults.
    """

    hard_cap: int = DEFAULT_HARD_CAP
    default_duration_minutes: int = DEFAULT_SESSION_DURATION_MINUTES
    default_capacity: int = DEFAULT_SESSION_CAPACITY
    default_timezone: str | None = None

    @classmethod
    def from_settings(cls, settings: Any) -> ExpansionSettings:
        """Extract expansion settings from a settings object or dict.

        Args:
            settings: ExpansionSettings, dict, attribute object, or None

        Returns:
            ExpansionSettings with values from settings or defaults
        """
        if isinstance(settings, cls):
            return settings
        if settings is None:
            return cls()
        return cls(
            hard_cap=get_config_value(settings, "hard_cap", DEFAULT_HARD_CAP),
            default_duration_minutes=get_config_value(
                settings, "default_duration_minutes", DEFAULT_SESSION_DURATION_MINUTES
            ),
            default_capacity=get_config_value(settings, "default_capacity", DEFAULT_SESSION_CAPACITY),
            default_timezone=get_config_value(settings, "default_timezone", None),
        )


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []

        try:
            content = self.env_file_path.read_text(encoding="utf-8")
        except OSError:
            logger.debug(
                "Failed to read .env file for defaults (continuing): %s",
                str(self.env_file_path),
                exc_info=True,
            )
            return []

        for raw_line in content.splitlines():
            line = raw_line.strip()

            # Skip empty lines and comments
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, val = line.split("=", 1)
            key = key.strip()
            val = val.strip().strip('"').strip("'")

            if key and key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - SWIMSCHOOL_HARD_CAP -> 'hard_cap' (int)
        - SWIMSCHOOL_DEFAULT_DURATION_MINUTES -> 'default_duration_minutes' (int)
        - SWIMSCHOOL_DEFAULT_CAPACITY -> 'default_capacity' (int)
        - SWIMSCHOOL_DEFAULT_TIMEZONE -> 'default_timezone'
        - SWIMSCHOOL_LOG_LEVEL -> 'log_level'

        Returns:
            Configuration dictionary compatible with ExpansionSettings.from_settings
        """
        cfg: dict[str, Any] = {}

        int_keys = {
            "SWIMSCHOOL_HARD_CAP": "hard_cap",
            "SWIMSCHOOL_DEFAULT_DURATION_MINUTES": "default_duration_minutes",
            "SWIMSCHOOL_DEFAULT_CAPACITY": "default_capacity",
        }
        for env_key, cfg_key in int_keys.items():
            raw = os.environ.get(env_key)
            if not raw:
                continue
            try:
                value = int(raw)
            except ValueError:
                logger.warning("Invalid %s=%r; ignoring", env_key, raw)
                continue
            if value < 1:
                logger.warning("Invalid %s=%r (must be positive); ignoring", env_key, raw)
                continue
            cfg[cfg_key] = value

        if os.environ.get("SWIMSCHOOL_DEFAULT_TIMEZONE"):
            # An invalid name leaves the default timezone unset
            default_timezone = get_default_timezone(fallback=None)
            if default_timezone is not None:
                cfg["default_timezone"] = default_timezone

        log_level = os.environ.get("SWIMSCHOOL_LOG_LEVEL")
        if log_level:
            cfg["log_level"] = log_level.upper()

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration from environment.

        This is the main entry point for loading configuration.
        """
        self.load_env_file()
        return self.build_config_from_env()

    def load_settings(self) -> ExpansionSettings:
        """Load configuration and convert it to ExpansionSettings."""
        return ExpansionSettings.from_settings(self.load_full_config())


def get_default_timezone(fallback: str | None = DEFAULT_TIMEZONE) -> str | None:
    """Get default timezone from environment with validation.

    Args:
        fallback: Timezone used when not configured or invalid; may be None

    Returns:
        Valid IANA timezone string, or the fallback
    """
    timezone = os.environ.get("SWIMSCHOOL_DEFAULT_TIMEZONE") or fallback
    if timezone is None:
        return None

    try:
        zoneinfo.ZoneInfo(timezone)
        return timezone
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        logger.warning("Invalid timezone %r, falling back to %r", timezone, fallback, exc_info=True)
        return fallback


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Get configuration value supporting both dict and dataclass-like objects.

    Args:
        config: Configuration object (dict or object with attributes)
        key: Configuration key to retrieve
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)
