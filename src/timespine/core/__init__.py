"""Timespine Core -- schema resilience primitives for the reports database.

Manifesto:
    Installations of the time tracker ship different schemas. The core
    layer knows which tables *could* exist (manifest), checks which *do*
    (validator), turns that into routing flags (capability matrix), and
    supplies the pieces every query needs: read-only connections, busy
    retry, row limits and temporal splitting.

    - **Never hard-fail on optional tables:** missing supplemental tables
      become warnings and fallback paths
    - **Sync primitives, async edges:** core modules are synchronous;
      repositories run them in worker threads
    - **Schema issues are data:** only "cannot open" and "still locked"
      are raised

Architecture::

    Layer 1 -- Types & Errors
        errors.py          TimespineError hierarchy (Unavailable, Busy, Config)
        enums.py           TableTier, ValidationSeverity, status and issue codes
        models.py          ValidationIssue, SchemaValidationResult, CapabilityStatus
        rows.py            Typed row shapes shared by primary and fallback paths

    Layer 2 -- Schema
        manifest.py        Static table manifest + tier policy lookup
        validator.py       SchemaValidator (tables, columns, status)
        capabilities.py    QueryCapabilityMatrix (copy-on-write snapshot)

    Layer 3 -- Query support
        connection.py      Read-only SQLite connection factory
        retry.py           Bounded SQLITE_BUSY retry
        limits.py          Per-family default and hard-cap row limits
        temporal.py        Day/hour splitting and aggregation

    Ambient
        logging.py         structlog configuration
        settings.py        TimespineSettings (pydantic-settings)
"""

from timespine.core.capabilities import CAPABILITY_TABLES, QueryCapabilityMatrix
from timespine.core.connection import ConnectionFactory, SqliteConnectionFactory, open_read_only
from timespine.core.enums import (
    IssueCode,
    SchemaValidationStatus,
    TableTier,
    UsageCategory,
    ValidationSeverity,
)
from timespine.core.errors import (
    ConfigError,
    DatabaseBusyError,
    DatabaseError,
    DatabaseUnavailableError,
    ErrorCategory,
    ErrorContext,
    TimespineError,
)
from timespine.core.limits import clamp_limit
from timespine.core.manifest import (
    TABLE_MANIFEST,
    TIER_POLICIES,
    TableDefinition,
    TierPolicy,
    get_table_definition,
    tables_by_tier,
)
from timespine.core.models import CapabilityStatus, SchemaValidationResult, ValidationIssue
from timespine.core.retry import BusyRetryPolicy, is_busy_error, run_with_busy_retry
from timespine.core.validator import SchemaValidator

__all__ = [
    # capabilities
    "CAPABILITY_TABLES",
    "QueryCapabilityMatrix",
    # connection
    "ConnectionFactory",
    "SqliteConnectionFactory",
    "open_read_only",
    # enums
    "IssueCode",
    "SchemaValidationStatus",
    "TableTier",
    "UsageCategory",
    "ValidationSeverity",
    # errors
    "ConfigError",
    "DatabaseBusyError",
    "DatabaseError",
    "DatabaseUnavailableError",
    "ErrorCategory",
    "ErrorContext",
    "TimespineError",
    # limits
    "clamp_limit",
    # manifest
    "TABLE_MANIFEST",
    "TIER_POLICIES",
    "TableDefinition",
    "TierPolicy",
    "get_table_definition",
    "tables_by_tier",
    # models
    "CapabilityStatus",
    "SchemaValidationResult",
    "ValidationIssue",
    # retry
    "BusyRetryPolicy",
    "is_busy_error",
    "run_with_busy_retry",
    # validator
    "SchemaValidator",
]
