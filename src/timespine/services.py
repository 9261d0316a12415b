"""Service wiring: one factory, one capability matrix, all repositories.

Startup validation runs once per process (and again on an external
re-validation trigger). It must never crash the host: when the database
cannot be opened the matrix stays fully degraded and every query takes
its fallback path.

Usage::

    services = create_database_services()
    result = initialize_capabilities(services)
    rows = await services.usage.get_daily_app_usage("2025-01-15", "2025-01-16")
"""

from __future__ import annotations

from dataclasses import dataclass

from timespine.core.capabilities import QueryCapabilityMatrix
from timespine.core.connection import ConnectionFactory, SqliteConnectionFactory
from timespine.core.errors import DatabaseUnavailableError
from timespine.core.logging import get_logger
from timespine.core.models import SchemaValidationResult
from timespine.core.retry import BusyRetryPolicy
from timespine.core.settings import TimespineSettings, get_settings
from timespine.core.validator import SchemaValidator
from timespine.repositories import (
    ActivityRepository,
    CorrelationRepository,
    EnvironmentRepository,
    TimelineRepository,
    UsageRepository,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class DatabaseServices:
    """Everything a transport layer needs, sharing one capability matrix."""

    factory: ConnectionFactory
    validator: SchemaValidator
    capabilities: QueryCapabilityMatrix
    timelines: TimelineRepository
    activities: ActivityRepository
    usage: UsageRepository
    correlation: CorrelationRepository
    environment: EnvironmentRepository

    def revalidate(self) -> SchemaValidationResult:
        """Validate again and repopulate the shared matrix."""
        return initialize_capabilities(self)


def create_database_services(
    settings: TimespineSettings | None = None,
    *,
    factory: ConnectionFactory | None = None,
    retry_policy: BusyRetryPolicy | None = None,
) -> DatabaseServices:
    """Build the repositories around one factory and one matrix.

    Args:
        settings: Source of the database path (default: ``get_settings()``)
        factory: Use this factory instead of one built from settings

    Raises:
        ConfigError: no factory given and no database path configured
    """
    if factory is None:
        settings = settings or get_settings()
        factory = SqliteConnectionFactory(
            settings.require_database_path(),
            busy_timeout_s=settings.busy_timeout_s,
        )

    capabilities = QueryCapabilityMatrix()
    kwargs = {"retry_policy": retry_policy}
    return DatabaseServices(
        factory=factory,
        validator=SchemaValidator(),
        capabilities=capabilities,
        timelines=TimelineRepository(factory, capabilities, **kwargs),
        activities=ActivityRepository(factory, capabilities, **kwargs),
        usage=UsageRepository(factory, capabilities, **kwargs),
        correlation=CorrelationRepository(factory, capabilities, **kwargs),
        environment=EnvironmentRepository(factory, capabilities, **kwargs),
    )


def initialize_capabilities(services: DatabaseServices) -> SchemaValidationResult:
    """Validate the database and populate the shared capability matrix.

    Returns a ``NOT_CHECKED`` result, leaving the matrix fully degraded,
    when the database cannot be opened or its schema cannot be read.
    """
    try:
        result = services.validator.validate_database(services.factory)
    except DatabaseUnavailableError as e:
        logger.error(
            "startup_validation_failed",
            database_path=services.factory.database_path,
            error=e.message,
        )
        services.capabilities.populate(())
        return SchemaValidationResult.not_checked()

    services.capabilities.populate(result.validated_tables)
    return result


__all__ = [
    "DatabaseServices",
    "create_database_services",
    "initialize_capabilities",
]
