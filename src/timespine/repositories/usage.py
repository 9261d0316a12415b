"""
Usage aggregates with primary (rollup) and fallback (recomputed) paths.

Manifesto:
    Every usage question has two answers that must agree. The primary path
    reads a precomputed rollup (``Ar_ApplicationByDay``, ``Ar_ActivityByHour``
    ...) joined to ``Ar_CommonGroup`` for display names. When the capability
    matrix says the rollup is unusable, the fallback path reads raw
    ``Ar_Activity`` intervals for the right category of timelines and
    recomputes the same totals with day or hour splitting. Both paths
    return the same row type in the same order.

Architecture:
    ::

        get_daily_app_usage(start_day, end_day, limit)
            │
            ├─ capabilities.has_pre_aggregated_app_usage ─► primary
            │     Ar_ApplicationByDay ⋈ Ar_CommonGroup ── decode_daily_usage
            │
            └─ otherwise ─► fallback
                  Ar_Activity ⟕ Ar_Group  (Applications timelines, in range)
                    ── decode_intervals ── aggregate_daily ── [:limit]

        Category filters (disjoint raw subsets):
          APPLICATIONS  schema ManicTime/Applications
          WEB           schema Documents|BrowserUrls|WebSites, group type WebSites
          DOCUMENTS     schema ManicTime/Documents, group type Files

Examples:
    >>> repo = UsageRepository(factory, capabilities)
    >>> rows = await repo.get_daily_app_usage("2025-01-15", "2025-01-16")
    >>> rows[0]
    DailyUsageRow(day='2025-01-15', name='Visual Studio', color='#68217A', key='devenv', total_seconds=23400.0)

Tags:
    usage, rollups, fallback, temporal-splitting, repository, timespine
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from timespine.core import limits
from timespine.core.enums import UsageCategory
from timespine.core.rows import DailyUsageRow, DayOfWeekUsageRow, HourlyUsageRow, TimelineSummaryRow
from timespine.core.temporal import (
    Interval,
    aggregate_daily,
    aggregate_day_of_week,
    aggregate_hourly,
    to_day,
)
from timespine.repositories._base import QueryRepository, Statement, in_clause
from timespine.repositories.decoders import (
    UNKNOWN_NAME,
    decode_daily_usage,
    decode_day_of_week_usage,
    decode_hourly_usage,
    decode_intervals,
    decode_timeline_summary,
)

APPLICATIONS_SCHEMA = "ManicTime/Applications"
DOCUMENTS_SCHEMA = "ManicTime/Documents"
BROWSER_URLS_SCHEMA = "ManicTime/BrowserUrls"
WEBSITES_SCHEMA = "ManicTime/WebSites"

WEB_GROUP_TYPE = "ManicTime/WebSites"
FILES_GROUP_TYPE = "ManicTime/Files"


@dataclass(frozen=True, slots=True)
class CategoryFilter:
    """Which raw activities belong to a usage category."""

    schema_names: tuple[str, ...]
    group_type: str | None = None


CATEGORY_FILTERS: dict[UsageCategory, CategoryFilter] = {
    UsageCategory.APPLICATIONS: CategoryFilter((APPLICATIONS_SCHEMA,)),
    UsageCategory.WEB: CategoryFilter(
        (DOCUMENTS_SCHEMA, BROWSER_URLS_SCHEMA, WEBSITES_SCHEMA),
        group_type=WEB_GROUP_TYPE,
    ),
    UsageCategory.DOCUMENTS: CategoryFilter((DOCUMENTS_SCHEMA,), group_type=FILES_GROUP_TYPE),
}

DAILY_ROLLUP_TABLES: dict[UsageCategory, str] = {
    UsageCategory.APPLICATIONS: "Ar_ApplicationByDay",
    UsageCategory.WEB: "Ar_WebSiteByDay",
    UsageCategory.DOCUMENTS: "Ar_DocumentByDay",
}


def interval_statement(
    name: str, category_filter: CategoryFilter, start_day: str, end_day: str
) -> Statement:
    """Raw intervals of one category overlapping ``[start_day, end_day)``."""
    schema_list, params = in_clause("schema_", category_filter.schema_names)
    params.update({"start_day": start_day, "end_day": end_day})

    group_condition = ""
    if category_filter.group_type is not None:
        group_condition = "AND g.GroupType = :group_type"
        params["group_type"] = category_filter.group_type

    return Statement(
        name=name,
        sql=f"""
            SELECT a.StartLocalTime AS StartLocalTime, a.EndLocalTime AS EndLocalTime,
                   COALESCE(g.Name, a.Name, '{UNKNOWN_NAME}') AS Name,
                   g.Color AS Color, g.Key AS Key
            FROM Ar_Activity a
            LEFT JOIN Ar_Group g ON a.GroupId = g.GroupId AND a.ReportId = g.ReportId
            WHERE a.ReportId IN (
                SELECT ReportId FROM Ar_Timeline
                WHERE SchemaName IN {schema_list} OR BaseSchemaName IN {schema_list}
            )
              AND a.EndLocalTime > :start_day
              AND a.StartLocalTime < :end_day
              {group_condition}
        """,
        params=params,
        path="fallback",
    )


def _aggregating(
    aggregate: Callable[[list[Interval], date, date], list],
    start: date,
    end: date,
    limit: int,
) -> Callable[[list[sqlite3.Row]], list]:
    def transform(rows: list[sqlite3.Row]) -> list:
        intervals = decode_intervals(rows)
        return aggregate(intervals, start, end)[:limit]

    return transform


class UsageRepository(QueryRepository):
    """Daily, hourly, day-of-week usage and timeline coverage summaries."""

    # ── Daily ────────────────────────────────────────────────────────

    async def get_daily_app_usage(
        self, start_day: str | date, end_day: str | date, limit: int | None = None
    ) -> list[DailyUsageRow]:
        return await self.get_daily_usage(UsageCategory.APPLICATIONS, start_day, end_day, limit)

    async def get_daily_web_usage(
        self, start_day: str | date, end_day: str | date, limit: int | None = None
    ) -> list[DailyUsageRow]:
        return await self.get_daily_usage(UsageCategory.WEB, start_day, end_day, limit)

    async def get_daily_doc_usage(
        self, start_day: str | date, end_day: str | date, limit: int | None = None
    ) -> list[DailyUsageRow]:
        return await self.get_daily_usage(UsageCategory.DOCUMENTS, start_day, end_day, limit)

    async def get_daily_usage(
        self,
        category: UsageCategory,
        start_day: str | date,
        end_day: str | date,
        limit: int | None = None,
    ) -> list[DailyUsageRow]:
        """Total seconds per day and common group for ``[start_day, end_day)``."""
        start, end = to_day(start_day), to_day(end_day)
        effective_limit = limits.DAILY_USAGE.clamp(limit)
        name = f"get_daily_{category.value}_usage"

        if self._has_daily_rollup(category):
            table = DAILY_ROLLUP_TABLES[category]
            statement = Statement(
                name=name,
                sql=f"""
                    SELECT d.Day AS Day, cg.Name AS Name, cg.Color AS Color, cg.Key AS Key,
                           d.TotalSeconds AS TotalSeconds
                    FROM {table} d
                    JOIN Ar_CommonGroup cg ON d.CommonGroupId = cg.CommonGroupId
                    WHERE d.Day >= :start_day AND d.Day < :end_day
                    ORDER BY d.Day, d.TotalSeconds DESC, cg.Name
                    LIMIT :limit
                """,
                params={
                    "start_day": start.isoformat(),
                    "end_day": end.isoformat(),
                    "limit": effective_limit,
                },
                path="primary",
            )
            return await self._query(statement, decode_daily_usage)

        statement = interval_statement(
            name, CATEGORY_FILTERS[category], start.isoformat(), end.isoformat()
        )
        return await self._run(statement, _aggregating(aggregate_daily, start, end, effective_limit))

    def _has_daily_rollup(self, category: UsageCategory) -> bool:
        if category is UsageCategory.APPLICATIONS:
            return self.capabilities.has_pre_aggregated_app_usage
        if category is UsageCategory.WEB:
            return self.capabilities.has_pre_aggregated_web_usage
        return self.capabilities.has_pre_aggregated_doc_usage

    # ── Hourly ───────────────────────────────────────────────────────

    async def get_hourly_app_usage(
        self, start_day: str | date, end_day: str | date, limit: int | None = None
    ) -> list[HourlyUsageRow]:
        return await self.get_hourly_usage(UsageCategory.APPLICATIONS, start_day, end_day, limit)

    async def get_hourly_web_usage(
        self, start_day: str | date, end_day: str | date, limit: int | None = None
    ) -> list[HourlyUsageRow]:
        return await self.get_hourly_usage(UsageCategory.WEB, start_day, end_day, limit)

    async def get_hourly_usage(
        self,
        category: UsageCategory,
        start_day: str | date,
        end_day: str | date,
        limit: int | None = None,
    ) -> list[HourlyUsageRow]:
        """Total seconds per day, hour and common group.

        The hourly rollup is not split by category, so the primary path
        serves every category from ``Ar_ActivityByHour``.
        """
        if category is UsageCategory.DOCUMENTS:
            raise ValueError("Hourly usage is available for applications and web only")

        start, end = to_day(start_day), to_day(end_day)
        effective_limit = limits.HOURLY_USAGE.clamp(limit)
        name = f"get_hourly_{category.value}_usage"

        if self.capabilities.has_hourly_usage:
            statement = Statement(
                name=name,
                sql="""
                    SELECT h.Day AS Day, h.Hour AS Hour, cg.Name AS Name,
                           cg.Color AS Color, cg.Key AS Key, h.TotalSeconds AS TotalSeconds
                    FROM Ar_ActivityByHour h
                    JOIN Ar_CommonGroup cg ON h.CommonGroupId = cg.CommonGroupId
                    WHERE h.Day >= :start_day AND h.Day < :end_day
                    ORDER BY h.Day, h.Hour, h.TotalSeconds DESC, cg.Name
                    LIMIT :limit
                """,
                params={
                    "start_day": start.isoformat(),
                    "end_day": end.isoformat(),
                    "limit": effective_limit,
                },
                path="primary",
            )
            return await self._query(statement, decode_hourly_usage)

        statement = interval_statement(
            name, CATEGORY_FILTERS[category], start.isoformat(), end.isoformat()
        )
        return await self._run(statement, _aggregating(aggregate_hourly, start, end, effective_limit))

    # ── Day of week ──────────────────────────────────────────────────

    async def get_day_of_week_app_usage(
        self, start_day: str | date, end_day: str | date, limit: int | None = None
    ) -> list[DayOfWeekUsageRow]:
        """Application usage per weekday (0 = Sunday) over ``[start_day, end_day)``."""
        start, end = to_day(start_day), to_day(end_day)
        effective_limit = limits.DAILY_USAGE.clamp(limit)
        name = "get_day_of_week_app_usage"

        if self.capabilities.has_yearly_usage:
            statement = Statement(
                name=name,
                sql="""
                    SELECT cg.Name AS Name,
                           CAST(strftime('%w', y.Day) AS INTEGER) AS DayOfWeek,
                           SUM(y.TotalSeconds) AS TotalSeconds
                    FROM Ar_ApplicationByYear y
                    JOIN Ar_CommonGroup cg ON y.CommonGroupId = cg.CommonGroupId
                    WHERE y.Day >= :start_day AND y.Day < :end_day
                    GROUP BY cg.Name, DayOfWeek
                    ORDER BY cg.Name, DayOfWeek
                    LIMIT :limit
                """,
                params={
                    "start_day": start.isoformat(),
                    "end_day": end.isoformat(),
                    "limit": effective_limit,
                },
                path="primary",
            )
            return await self._query(statement, decode_day_of_week_usage)

        statement = interval_statement(
            name,
            CATEGORY_FILTERS[UsageCategory.APPLICATIONS],
            start.isoformat(),
            end.isoformat(),
        )
        return await self._run(
            statement, _aggregating(aggregate_day_of_week, start, end, effective_limit)
        )

    # ── Timeline coverage ────────────────────────────────────────────

    async def get_timeline_summaries(self) -> list[TimelineSummaryRow]:
        """First start and last end per timeline."""
        if self.capabilities.has_timeline_summary:
            statement = Statement(
                name="get_timeline_summaries",
                sql="""
                    SELECT ReportId, StartLocalTime, EndLocalTime
                    FROM Ar_TimelineSummary
                    ORDER BY ReportId
                    LIMIT :limit
                """,
                params={"limit": limits.MAX_TIMELINES},
                path="primary",
            )
        else:
            statement = Statement(
                name="get_timeline_summaries",
                sql="""
                    SELECT ReportId,
                           MIN(StartLocalTime) AS StartLocalTime,
                           MAX(EndLocalTime) AS EndLocalTime
                    FROM Ar_Activity
                    GROUP BY ReportId
                    ORDER BY ReportId
                    LIMIT :limit
                """,
                params={"limit": limits.MAX_TIMELINES},
                path="fallback",
            )
        return await self._query(statement, decode_timeline_summary)


__all__ = [
    "APPLICATIONS_SCHEMA",
    "DOCUMENTS_SCHEMA",
    "BROWSER_URLS_SCHEMA",
    "WEBSITES_SCHEMA",
    "WEB_GROUP_TYPE",
    "FILES_GROUP_TYPE",
    "CategoryFilter",
    "CATEGORY_FILTERS",
    "DAILY_ROLLUP_TABLES",
    "interval_statement",
    "UsageRepository",
]
