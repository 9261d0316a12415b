"""
Capability matrix: which query paths the current database supports.

Maps every non-core manifest table to "validated and usable", and derives a
fixed set of named capabilities from it. Each capability is the AND of the
presence of specific tables; repositories read one capability per call to
choose between the primary (rollup) statement and its fallback.

Manifesto:
    The matrix is the only shared mutable state in the query core. It is
    read on every query and written once per validation run, so it is held
    as an immutable snapshot behind a single reference. ``populate``
    builds a complete new snapshot and swaps the reference in one
    assignment: readers see the old map or the new map, never a mix.

    Before the first ``populate`` every capability is false. That is the
    safe default: if validation has not run, or the database could not be
    opened at startup, every query takes its fallback path.

Architecture:
    ::

        validated tables ──► populate() ──► MappingProxyType snapshot
                                              │ (single reference swap)
                                              ▼
        ┌───────────────────────┬────────────────────────────────────┐
        │ PreAggregatedAppUsage │ Ar_ApplicationByDay ∧ Ar_CommonGroup│
        │ PreAggregatedWebUsage │ Ar_WebSiteByDay ∧ Ar_CommonGroup    │
        │ PreAggregatedDocUsage │ Ar_DocumentByDay ∧ Ar_CommonGroup   │
        │ HourlyUsage           │ Ar_ActivityByHour ∧ Ar_CommonGroup  │
        │ YearlyUsage           │ Ar_ApplicationByYear ∧ Ar_CommonGroup│
        │ CommonGroup           │ Ar_CommonGroup                      │
        │ Tags                  │ Ar_Tag ∧ Ar_ActivityTag             │
        │ TimelineSummary       │ Ar_TimelineSummary                  │
        │ Environment           │ Ar_Environment                      │
        │ Folders               │ Ar_Folder                           │
        │ Categories            │ Ar_Category ∧ Ar_CategoryGroup      │
        └───────────────────────┴────────────────────────────────────┘

Examples:
    >>> matrix = QueryCapabilityMatrix()
    >>> matrix.has_common_group
    False
    >>> matrix.populate(["Ar_CommonGroup", "ar_applicationbyday"])
    >>> matrix.has_pre_aggregated_app_usage
    True
    >>> "HourlyUsage" in matrix.get_degraded_capabilities()
    True

Tags:
    capabilities, routing, copy-on-write, degradation, timespine
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from timespine.core.enums import TableTier
from timespine.core.logging import get_logger
from timespine.core.manifest import TABLE_MANIFEST
from timespine.core.models import CapabilityStatus

logger = get_logger(__name__)

# ── Capability names ─────────────────────────────────────────────────────

PRE_AGGREGATED_APP_USAGE = "PreAggregatedAppUsage"
PRE_AGGREGATED_WEB_USAGE = "PreAggregatedWebUsage"
PRE_AGGREGATED_DOC_USAGE = "PreAggregatedDocUsage"
HOURLY_USAGE = "HourlyUsage"
YEARLY_USAGE = "YearlyUsage"
COMMON_GROUP = "CommonGroup"
TAGS = "Tags"
TIMELINE_SUMMARY = "TimelineSummary"
ENVIRONMENT = "Environment"
FOLDERS = "Folders"
CATEGORIES = "Categories"

# Declaration order is the order of get_degraded_capabilities().
CAPABILITY_TABLES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        PRE_AGGREGATED_APP_USAGE: ("Ar_ApplicationByDay", "Ar_CommonGroup"),
        PRE_AGGREGATED_WEB_USAGE: ("Ar_WebSiteByDay", "Ar_CommonGroup"),
        PRE_AGGREGATED_DOC_USAGE: ("Ar_DocumentByDay", "Ar_CommonGroup"),
        HOURLY_USAGE: ("Ar_ActivityByHour", "Ar_CommonGroup"),
        YEARLY_USAGE: ("Ar_ApplicationByYear", "Ar_CommonGroup"),
        COMMON_GROUP: ("Ar_CommonGroup",),
        TAGS: ("Ar_Tag", "Ar_ActivityTag"),
        TIMELINE_SUMMARY: ("Ar_TimelineSummary",),
        ENVIRONMENT: ("Ar_Environment",),
        FOLDERS: ("Ar_Folder",),
        CATEGORIES: ("Ar_Category", "Ar_CategoryGroup"),
    }
)

# Capabilities whose absence only drops enrichment; everything else falls
# back to recomputation or returns nothing.
_NO_FALLBACK = frozenset({ENVIRONMENT, FOLDERS, CATEGORIES})


def _build_snapshot(validated_tables: Iterable[str]) -> Mapping[str, bool]:
    present = {name.casefold() for name in validated_tables}
    return MappingProxyType(
        {
            key: key in present
            for key, definition in TABLE_MANIFEST.items()
            if definition.tier != TableTier.CORE
        }
    )


class QueryCapabilityMatrix:
    """Copy-on-write view of which non-core tables are usable.

    Args:
        validated_tables: Initial validated set; empty means fully degraded
    """

    def __init__(self, validated_tables: Iterable[str] = ()):
        self._snapshot: Mapping[str, bool] = _build_snapshot(validated_tables)

    def populate(self, validated_tables: Iterable[str]) -> None:
        """Replace the whole snapshot with one built from ``validated_tables``."""
        snapshot = _build_snapshot(validated_tables)
        self._snapshot = snapshot
        logger.info(
            "capabilities_populated",
            validated_tables=sum(snapshot.values()),
            degraded=self.get_degraded_capabilities(),
        )

    @property
    def table_presence(self) -> Mapping[str, bool]:
        """Current snapshot, keyed by casefolded table name (read-only)."""
        return self._snapshot

    def has_table(self, table: str) -> bool:
        return self._snapshot.get(table.casefold(), False)

    def is_available(self, capability: str) -> bool:
        """Evaluate a named capability against one consistent snapshot.

        Raises:
            KeyError: unknown capability name
        """
        tables = CAPABILITY_TABLES[capability]
        snapshot = self._snapshot
        return all(snapshot.get(t.casefold(), False) for t in tables)

    # ── Named predicates ─────────────────────────────────────────────

    @property
    def has_pre_aggregated_app_usage(self) -> bool:
        return self.is_available(PRE_AGGREGATED_APP_USAGE)

    @property
    def has_pre_aggregated_web_usage(self) -> bool:
        return self.is_available(PRE_AGGREGATED_WEB_USAGE)

    @property
    def has_pre_aggregated_doc_usage(self) -> bool:
        return self.is_available(PRE_AGGREGATED_DOC_USAGE)

    @property
    def has_hourly_usage(self) -> bool:
        return self.is_available(HOURLY_USAGE)

    @property
    def has_yearly_usage(self) -> bool:
        return self.is_available(YEARLY_USAGE)

    @property
    def has_common_group(self) -> bool:
        return self.is_available(COMMON_GROUP)

    @property
    def has_tags(self) -> bool:
        return self.is_available(TAGS)

    @property
    def has_timeline_summary(self) -> bool:
        return self.is_available(TIMELINE_SUMMARY)

    @property
    def has_environment(self) -> bool:
        return self.is_available(ENVIRONMENT)

    @property
    def has_folders(self) -> bool:
        return self.is_available(FOLDERS)

    @property
    def has_categories(self) -> bool:
        return self.is_available(CATEGORIES)

    # ── Diagnostics ──────────────────────────────────────────────────

    def get_degraded_capabilities(self) -> list[str]:
        """Names of currently unavailable capabilities, in declaration order."""
        return [name for name in CAPABILITY_TABLES if not self.is_available(name)]

    def capability_statuses(self) -> list[CapabilityStatus]:
        statuses = []
        for name in CAPABILITY_TABLES:
            available = self.is_available(name)
            statuses.append(
                CapabilityStatus(
                    name=name,
                    available=available,
                    fallback_active=not available and name not in _NO_FALLBACK,
                )
            )
        return statuses

    def __repr__(self) -> str:
        present = sum(self._snapshot.values())
        return f"QueryCapabilityMatrix(present={present}/{len(self._snapshot)})"


__all__ = [
    "PRE_AGGREGATED_APP_USAGE",
    "PRE_AGGREGATED_WEB_USAGE",
    "PRE_AGGREGATED_DOC_USAGE",
    "HOURLY_USAGE",
    "YEARLY_USAGE",
    "COMMON_GROUP",
    "TAGS",
    "TIMELINE_SUMMARY",
    "ENVIRONMENT",
    "FOLDERS",
    "CATEGORIES",
    "CAPABILITY_TABLES",
    "QueryCapabilityMatrix",
]
