"""
Shared pytest fixtures and configuration for timespine tests.

This module provides:
- Throwaway reports databases (full, core-only, boundary-crossing)
- Connection factories and wired services over those databases
- Logging/settings resets for test isolation

Usage:
    Fixtures are auto-discovered by pytest:

    async def test_something(full_services):
        rows = await full_services.usage.get_daily_app_usage("2025-01-15", "2025-01-16")
"""

import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog

# Ensure timespine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from _support.fixture_database import FixtureDatabase  # noqa: E402

from timespine.core.connection import SqliteConnectionFactory  # noqa: E402
from timespine.core.logging import clear_context  # noqa: E402
from timespine.core.retry import BusyRetryPolicy  # noqa: E402
from timespine.core.settings import reset_settings  # noqa: E402
from timespine.services import (  # noqa: E402
    DatabaseServices,
    create_database_services,
    initialize_capabilities,
)


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_collection_modifyitems(config, items):
    """Mark tests that touch a database file as integration tests."""
    database_fixtures = {"fixture_db", "full_db", "core_db", "boundary_db", "full_services", "core_services"}
    for item in items:
        if database_fixtures.intersection(getattr(item, "fixturenames", ())):
            item.add_marker(pytest.mark.integration)
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_observability() -> Generator[None, None, None]:
    """Restore structlog defaults and drop cached settings around each test."""
    structlog.reset_defaults()
    clear_context()
    reset_settings()
    yield
    structlog.reset_defaults()
    clear_context()
    reset_settings()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def fixture_db(tmp_path: Path) -> FixtureDatabase:
    """An empty database file; call ``create_*`` and ``seed_*`` on it."""
    return FixtureDatabase(tmp_path / "ManicTimeReports.db")


@pytest.fixture
def full_db(fixture_db: FixtureDatabase) -> Path:
    """Every manifest table, seeded with activities and matching rollups."""
    return fixture_db.create_full().seed_standard().seed_rollups().path


@pytest.fixture
def core_db(fixture_db: FixtureDatabase) -> Path:
    """Core tables only, seeded with the same activities as ``full_db``."""
    return fixture_db.create_core_only().seed_standard().path


@pytest.fixture
def boundary_db(fixture_db: FixtureDatabase) -> Path:
    """Core tables with midnight- and hour-crossing activities."""
    return fixture_db.create_core_only().seed_boundaries().path


class RecordingSleep:
    """Awaitable stand-in for ``asyncio.sleep`` that records each delay."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def no_wait_retry(recording_sleep: RecordingSleep) -> BusyRetryPolicy:
    """Default busy schedule, recording delays instead of sleeping."""
    return BusyRetryPolicy(max_attempts=3, delays=(0.05, 0.2), sleep=recording_sleep)


@pytest.fixture
def make_services() -> Callable[[Path], DatabaseServices]:
    """Build and validate services over a database path."""

    def _make(path: Path) -> DatabaseServices:
        services = create_database_services(factory=SqliteConnectionFactory(path))
        initialize_capabilities(services)
        return services

    return _make


@pytest.fixture
def full_services(full_db: Path, make_services) -> DatabaseServices:
    return make_services(full_db)


@pytest.fixture
def core_services(core_db: Path, make_services) -> DatabaseServices:
    return make_services(core_db)
