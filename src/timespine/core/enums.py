"""
Shared enums for schema validation and capability routing.

STDLIB ONLY - NO PYDANTIC.
"""

from enum import Enum


class TableTier(str, Enum):
    """
    Criticality tier of a manifest table.

    The tier alone decides the severity, issue code and remediation text of
    every issue raised against the table (see ``TIER_POLICIES``).
    """

    # Without these no query can run
    CORE = "core"

    # Rollups, name resolution, tags; missing means a fallback path
    SUPPLEMENTAL = "supplemental"

    # Cosmetic reference data; missing means absent enrichment only
    INFORMATIONAL = "informational"


class ValidationSeverity(str, Enum):
    """Severity of a single validation issue."""

    FATAL = "fatal"
    WARNING = "warning"


class SchemaValidationStatus(str, Enum):
    """Overall outcome of a validation pass."""

    VALID = "valid"
    VALID_WITH_WARNINGS = "valid_with_warnings"
    INVALID = "invalid"

    # Startup could not open the database; nothing was inspected
    NOT_CHECKED = "not_checked"


class IssueCode(str, Enum):
    """Machine-readable issue codes, one per tier."""

    SCHEMA_VALIDATION_FAILED = "SCHEMA_VALIDATION_FAILED"
    SUPPLEMENTAL_TABLE_DEGRADED = "SUPPLEMENTAL_TABLE_DEGRADED"
    INFORMATIONAL_TABLE_DEGRADED = "INFORMATIONAL_TABLE_DEGRADED"


class UsageCategory(str, Enum):
    """Raw-data subset a usage aggregate is computed over."""

    APPLICATIONS = "app"
    WEB = "web"
    DOCUMENTS = "doc"
