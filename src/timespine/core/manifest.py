"""
Schema manifest: every table the query core may read, with its tier.

The manifest is the static half of schema resilience. It declares which
tables exist in a fully featured reports database, which columns each query
path reads from them, and how bad it is when one is missing.

Manifesto:
    Installations of the time tracker differ. Some databases only carry the
    three raw tables; others also carry precomputed rollups, tag tables and
    reference data. Rather than discovering that at query time with a
    ``no such table`` error, every table is declared up front:

    - **Core:** timelines, raw activities, groups. Missing means nothing works
    - **Supplemental:** rollups, name resolution, tags. Missing means fallback
    - **Informational:** reference data. Missing means absent enrichment

    Required columns are the columns the query paths actually read, so a
    table that passes validation can serve every statement routed to it.

Architecture:
    ::

        TABLE_MANIFEST (MappingProxyType, key = casefolded name)
        ┌───────────────────────────┬───────────────┬─────────────────────┐
        │ Ar_Timeline               │ CORE          │ ReportId, ...       │
        │ Ar_Activity               │ CORE          │ StartLocalTime, ... │
        │ Ar_Group                  │ CORE          │ GroupType, ...      │
        │ Ar_CommonGroup            │ SUPPLEMENTAL  │ Name, Color, Key    │
        │ Ar_*ByDay / Ar_*ByYear    │ SUPPLEMENTAL  │ Day, TotalSeconds   │
        │ ...                       │               │                     │
        │ Ar_Category               │ INFORMATIONAL │ CategoryId, Name    │
        └───────────────────────────┴───────────────┴─────────────────────┘

        TIER_POLICIES: tier → (severity, issue code, remediation texts)

Examples:
    >>> get_table_definition("ar_activity").tier
    <TableTier.CORE: 'core'>
    >>> get_table_definition("AR_ACTIVITY").has_column("starttime")
    False
    >>> TIER_POLICIES[TableTier.SUPPLEMENTAL].severity
    <ValidationSeverity.WARNING: 'warning'>

Tags:
    schema, manifest, tiers, sqlite, timespine

Doc-Types:
    - API Reference
    - Schema Documentation
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from timespine.core.enums import IssueCode, TableTier, ValidationSeverity


@dataclass(frozen=True, slots=True)
class TableDefinition:
    """A table the query core may read.

    Table and column identity are case-insensitive, matching SQLite.
    """

    name: str
    required_columns: frozenset[str]
    tier: TableTier

    @property
    def key(self) -> str:
        """Case-insensitive identity of the table."""
        return self.name.casefold()

    def has_column(self, column: str) -> bool:
        folded = column.casefold()
        return any(c.casefold() == folded for c in self.required_columns)

    def missing_columns(self, actual: Iterable[str]) -> list[str]:
        """Required columns absent from ``actual``, in sorted order."""
        present = {c.casefold() for c in actual}
        return sorted(c for c in self.required_columns if c.casefold() not in present)


@dataclass(frozen=True, slots=True)
class TierPolicy:
    """How issues against a tier are classified and explained."""

    label: str
    severity: ValidationSeverity
    issue_code: IssueCode
    missing_table_remediation: str
    missing_column_remediation: str


# ── Tier lookup ──────────────────────────────────────────────────────────

TIER_POLICIES: Mapping[TableTier, TierPolicy] = MappingProxyType(
    {
        TableTier.CORE: TierPolicy(
            label="Required",
            severity=ValidationSeverity.FATAL,
            issue_code=IssueCode.SCHEMA_VALIDATION_FAILED,
            missing_table_remediation=(
                "This may indicate an incompatible ManicTime version. "
                "Verify ManicTime is installed and has been run at least once."
            ),
            missing_column_remediation=(
                "This may indicate schema drift from a ManicTime update. "
                "Check ManicTime version compatibility."
            ),
        ),
        TableTier.SUPPLEMENTAL: TierPolicy(
            label="Supplemental",
            severity=ValidationSeverity.WARNING,
            issue_code=IssueCode.SUPPLEMENTAL_TABLE_DEGRADED,
            missing_table_remediation=(
                "Queries that use this table fall back to computing results "
                "from raw activities, which is slower."
            ),
            missing_column_remediation=(
                "The table is treated as absent and dependent queries use "
                "their fallback path."
            ),
        ),
        TableTier.INFORMATIONAL: TierPolicy(
            label="Informational",
            severity=ValidationSeverity.WARNING,
            issue_code=IssueCode.INFORMATIONAL_TABLE_DEGRADED,
            missing_table_remediation=(
                "Reference data from this table will be omitted from results."
            ),
            missing_column_remediation=(
                "The table is ignored and its reference data omitted from results."
            ),
        ),
    }
)


def _table(name: str, tier: TableTier, *columns: str) -> TableDefinition:
    return TableDefinition(name=name, required_columns=frozenset(columns), tier=tier)


_ROLLUP_COLUMNS = ("Day", "CommonGroupId", "TotalSeconds")

# Required columns are the ones some statement reads. Ar_Activity.Notes,
# IsActive, StartUtcTime, EndUtcTime and Ar_Group.CommonId exist in the
# tracker's schema but are never selected, so they are not required.
_DEFINITIONS: tuple[TableDefinition, ...] = (
    # Core
    _table("Ar_Timeline", TableTier.CORE, "ReportId", "SchemaName", "BaseSchemaName"),
    _table(
        "Ar_Activity",
        TableTier.CORE,
        "ActivityId",
        "ReportId",
        "StartLocalTime",
        "EndLocalTime",
        "Name",
        "GroupId",
        "CommonGroupId",
    ),
    _table(
        "Ar_Group",
        TableTier.CORE,
        "GroupId",
        "ReportId",
        "Name",
        "Color",
        "Key",
        "GroupType",
    ),
    # Supplemental
    _table("Ar_CommonGroup", TableTier.SUPPLEMENTAL, "CommonGroupId", "Name", "Color", "Key"),
    _table("Ar_ApplicationByDay", TableTier.SUPPLEMENTAL, *_ROLLUP_COLUMNS),
    _table("Ar_WebSiteByDay", TableTier.SUPPLEMENTAL, *_ROLLUP_COLUMNS),
    _table("Ar_DocumentByDay", TableTier.SUPPLEMENTAL, *_ROLLUP_COLUMNS),
    _table("Ar_ApplicationByYear", TableTier.SUPPLEMENTAL, *_ROLLUP_COLUMNS),
    _table("Ar_WebSiteByYear", TableTier.SUPPLEMENTAL, *_ROLLUP_COLUMNS),
    _table("Ar_DocumentByYear", TableTier.SUPPLEMENTAL, *_ROLLUP_COLUMNS),
    _table(
        "Ar_ActivityByHour",
        TableTier.SUPPLEMENTAL,
        "Day",
        "Hour",
        "CommonGroupId",
        "TotalSeconds",
    ),
    _table(
        "Ar_TimelineSummary",
        TableTier.SUPPLEMENTAL,
        "ReportId",
        "StartLocalTime",
        "EndLocalTime",
    ),
    _table("Ar_Environment", TableTier.SUPPLEMENTAL, "EnvironmentId", "DeviceName"),
    _table("Ar_Folder", TableTier.SUPPLEMENTAL, "FolderId", "Name"),
    _table("Ar_Tag", TableTier.SUPPLEMENTAL, "TagId", "Name"),
    _table("Ar_ActivityTag", TableTier.SUPPLEMENTAL, "ActivityId", "TagId"),
    # Informational
    _table("Ar_Category", TableTier.INFORMATIONAL, "CategoryId", "Name"),
    _table("Ar_CategoryGroup", TableTier.INFORMATIONAL, "CategoryGroupId", "Name"),
)

TABLE_MANIFEST: Mapping[str, TableDefinition] = MappingProxyType(
    {d.key: d for d in _DEFINITIONS}
)


def get_table_definition(name: str) -> TableDefinition | None:
    """Look up a manifest table by name, ignoring case."""
    return TABLE_MANIFEST.get(name.casefold())


def tables_by_tier(tier: TableTier) -> list[TableDefinition]:
    """Manifest tables of one tier, in declaration order."""
    return [d for d in TABLE_MANIFEST.values() if d.tier == tier]


__all__ = [
    "TableDefinition",
    "TierPolicy",
    "TIER_POLICIES",
    "TABLE_MANIFEST",
    "get_table_definition",
    "tables_by_tier",
]
