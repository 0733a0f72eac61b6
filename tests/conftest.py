"""Shared fixtures for swimschool_calendar tests."""

from collections.abc import Generator
from datetime import date
from typing import Any

import pytest

from swimschool_calendar.core.config_manager import ExpansionSettings
from swimschool_calendar.domain.session_models import SessionTemplate
from swimschool_calendar.domain.session_store import InMemorySessionStore

SWIMSCHOOL_ENV_KEYS = [
    "SWIMSCHOOL_HARD_CAP",
    "SWIMSCHOOL_DEFAULT_TIMEZONE",
    "SWIMSCHOOL_DEFAULT_DURATION_MINUTES",
    "SWIMSCHOOL_DEFAULT_CAPACITY",
    "SWIMSCHOOL_LOG_LEVEL",
    "SWIMSCHOOL_DEBUG",
]


def pytest_configure(config: Any) -> None:
    """Register markers used across the suite."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "critical_path: Core functionality tests")


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Clear SWIMSCHOOL_* variables so the host environment cannot leak into tests."""
    for key in SWIMSCHOOL_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def hard_cap() -> int:
    """Hard cap used by expansion tests unless a test needs a smaller one."""
    return 1000


@pytest.fixture
def monday() -> date:
    """2024-01-01, a Monday."""
    return date(2024, 1, 1)


@pytest.fixture
def expansion_settings() -> ExpansionSettings:
    """Deterministic settings without a default timezone."""
    return ExpansionSettings(hard_cap=1000, default_duration_minutes=45, default_capacity=8)


@pytest.fixture
def session_template() -> SessionTemplate:
    """Template for an existing beginner class."""
    return SessionTemplate(class_id="class-beginners", capacity=6, notes="Bring goggles")


@pytest.fixture
def memory_store() -> InMemorySessionStore:
    """Fresh in-memory session store."""
    return InMemorySessionStore()
