"""Tests for ``timespine.repositories.usage``: primary and fallback usage paths."""

from __future__ import annotations

import pytest

from timespine.core.capabilities import QueryCapabilityMatrix
from timespine.core.connection import SqliteConnectionFactory
from timespine.core.enums import UsageCategory
from timespine.core.rows import DailyUsageRow, DayOfWeekUsageRow, HourlyUsageRow, TimelineSummaryRow
from timespine.repositories.usage import UsageRepository, interval_statement, CATEGORY_FILTERS

DAY, NEXT_DAY = "2025-01-15", "2025-01-16"

VISUAL_STUDIO = DailyUsageRow(DAY, "Visual Studio", "#68217A", "devenv", 23400.0)
CHROME = DailyUsageRow(DAY, "Google Chrome", "#4285F4", "chrome", 3600.0)


def _fallback_repository(path) -> UsageRepository:
    """Repository that sees no validated tables, whatever the file contains."""
    return UsageRepository(SqliteConnectionFactory(path), QueryCapabilityMatrix())


class TestDailyUsagePrimary:
    @pytest.mark.asyncio
    async def test_app_usage(self, full_services):
        rows = await full_services.usage.get_daily_app_usage(DAY, NEXT_DAY)
        assert rows == [VISUAL_STUDIO, CHROME]

    @pytest.mark.asyncio
    async def test_web_usage(self, full_services):
        rows = await full_services.usage.get_daily_web_usage(DAY, NEXT_DAY)
        assert rows == [DailyUsageRow(DAY, "github.com", "#24292E", "github.com", 1800.0)]

    @pytest.mark.asyncio
    async def test_doc_usage(self, full_services):
        rows = await full_services.usage.get_daily_doc_usage(DAY, NEXT_DAY)
        assert rows == [DailyUsageRow(DAY, "Report.docx", "#2B579A", "Report.docx", 3600.0)]

    @pytest.mark.asyncio
    async def test_end_day_is_exclusive(self, full_services):
        assert await full_services.usage.get_daily_app_usage(DAY, DAY) == []
        assert await full_services.usage.get_daily_app_usage("2025-01-14", DAY) == []

    @pytest.mark.asyncio
    async def test_limit(self, full_services):
        rows = await full_services.usage.get_daily_app_usage(DAY, NEXT_DAY, limit=1)
        assert rows == [VISUAL_STUDIO]

    @pytest.mark.asyncio
    async def test_date_objects_accepted(self, full_services):
        from datetime import date

        rows = await full_services.usage.get_daily_app_usage(date(2025, 1, 15), date(2025, 1, 16))
        assert rows[0] == VISUAL_STUDIO


class TestDailyUsageFallback:
    @pytest.mark.asyncio
    async def test_app_usage_recomputed(self, core_services):
        assert not core_services.capabilities.has_pre_aggregated_app_usage
        rows = await core_services.usage.get_daily_app_usage(DAY, NEXT_DAY)
        assert rows == [VISUAL_STUDIO, CHROME]

    @pytest.mark.asyncio
    async def test_web_usage_only_web_site_groups(self, core_services):
        rows = await core_services.usage.get_daily_web_usage(DAY, NEXT_DAY)
        assert [r.name for r in rows] == ["github.com"]
        assert rows[0].total_seconds == 1800.0

    @pytest.mark.asyncio
    async def test_doc_usage_only_file_groups(self, core_services):
        rows = await core_services.usage.get_daily_doc_usage(DAY, NEXT_DAY)
        assert [(r.name, r.total_seconds) for r in rows] == [("Report.docx", 3600.0)]

    @pytest.mark.asyncio
    async def test_cross_midnight_split(self, boundary_db):
        repo = _fallback_repository(boundary_db)
        rows = await repo.get_daily_app_usage("2025-01-15", "2025-01-17")
        assert [(r.day, r.total_seconds) for r in rows] == [
            ("2025-01-15", 1800.0),
            ("2025-01-16", 1800.0),
        ]

    @pytest.mark.asyncio
    async def test_cross_midnight_partial_range(self, boundary_db):
        repo = _fallback_repository(boundary_db)
        rows = await repo.get_daily_app_usage("2025-01-16", "2025-01-17")
        assert [(r.day, r.total_seconds) for r in rows] == [("2025-01-16", 1800.0)]

    @pytest.mark.asyncio
    async def test_limit_applies_after_aggregation(self, core_services):
        rows = await core_services.usage.get_daily_app_usage(DAY, NEXT_DAY, limit=1)
        assert rows == [VISUAL_STUDIO]

    @pytest.mark.asyncio
    async def test_missing_group_uses_activity_name(self, fixture_db):
        fixture_db.create_core_only()
        with fixture_db.connect() as conn:
            conn.execute(
                "INSERT INTO Ar_Timeline VALUES (2, 'ManicTime/Applications', 'ManicTime/Applications')"
            )
            conn.execute(
                "INSERT INTO Ar_Activity (ActivityId, ReportId, StartLocalTime, EndLocalTime, Name, GroupId) "
                "VALUES (1, 2, '2025-01-15 08:00:00', '2025-01-15 08:30:00', 'notepad', 99)"
            )
            conn.execute(
                "INSERT INTO Ar_Activity (ActivityId, ReportId, StartLocalTime, EndLocalTime, Name, GroupId) "
                "VALUES (2, 2, '2025-01-15 09:00:00', '2025-01-15 09:10:00', NULL, NULL)"
            )
        rows = await _fallback_repository(fixture_db.path).get_daily_app_usage(DAY, NEXT_DAY)
        assert [(r.name, r.color) for r in rows] == [("notepad", None), ("(unknown)", None)]

    @pytest.mark.asyncio
    async def test_unparseable_interval_is_skipped(self, fixture_db):
        fixture_db.create_core_only()
        with fixture_db.connect() as conn:
            conn.execute(
                "INSERT INTO Ar_Timeline VALUES (2, 'ManicTime/Applications', 'ManicTime/Applications')"
            )
            conn.execute(
                "INSERT INTO Ar_Activity (ActivityId, ReportId, StartLocalTime, EndLocalTime, Name) "
                "VALUES (1, 2, '2025-01-15 10:00:00', '2025-01-15 11:00:00', 'ok')"
            )
            conn.execute(
                "INSERT INTO Ar_Activity (ActivityId, ReportId, StartLocalTime, EndLocalTime, Name) "
                "VALUES (2, 2, '2025-01-15 12:00:00', '2025-01-15 25:00:00', 'bad')"
            )
        repo = _fallback_repository(fixture_db.path)

        daily = await repo.get_daily_app_usage(DAY, NEXT_DAY)
        hourly = await repo.get_hourly_app_usage(DAY, NEXT_DAY)
        weekday = await repo.get_day_of_week_app_usage(DAY, NEXT_DAY)

        assert [(r.name, r.total_seconds) for r in daily] == [("ok", 3600.0)]
        assert [r.name for r in hourly] == ["ok"]
        assert [r.name for r in weekday] == ["ok"]


class TestDailyUsageReconciliation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("category", list(UsageCategory))
    async def test_primary_and_fallback_agree(self, full_db, make_services, category):
        primary = make_services(full_db).usage
        fallback = _fallback_repository(full_db)

        assert primary.capabilities.has_pre_aggregated_app_usage
        assert await primary.get_daily_usage(category, DAY, NEXT_DAY) == await fallback.get_daily_usage(
            category, DAY, NEXT_DAY
        )


class TestHourlyUsage:
    @pytest.mark.asyncio
    async def test_primary_reads_shared_hourly_rollup(self, full_services):
        rows = await full_services.usage.get_hourly_app_usage(DAY, NEXT_DAY)
        assert [(r.hour, r.name) for r in rows] == [
            (8, "Visual Studio"),
            (9, "Visual Studio"),
            (10, "Google Chrome"),
            (10, "github.com"),
            (13, "Visual Studio"),
            (14, "Report.docx"),
            (14, "Visual Studio"),
            (15, "Visual Studio"),
            (16, "Visual Studio"),
            (17, "Visual Studio"),
        ]
        assert rows[-1].total_seconds == 1800.0

    @pytest.mark.asyncio
    async def test_fallback_cross_hour_split(self, boundary_db):
        rows = await _fallback_repository(boundary_db).get_hourly_app_usage("2025-01-20", "2025-01-21")
        assert rows == [
            HourlyUsageRow("2025-01-20", 8, "Visual Studio", "#68217A", "devenv", 900.0),
            HourlyUsageRow("2025-01-20", 9, "Visual Studio", "#68217A", "devenv", 900.0),
        ]

    @pytest.mark.asyncio
    async def test_fallback_cross_midnight(self, boundary_db):
        rows = await _fallback_repository(boundary_db).get_hourly_app_usage("2025-01-15", "2025-01-17")
        assert [(r.day, r.hour, r.total_seconds) for r in rows] == [
            ("2025-01-15", 23, 1800.0),
            ("2025-01-16", 0, 1800.0),
        ]

    @pytest.mark.asyncio
    async def test_app_fallback_matches_app_rows_of_primary(self, full_db, make_services):
        primary = await make_services(full_db).usage.get_hourly_app_usage(DAY, NEXT_DAY)
        fallback = await _fallback_repository(full_db).get_hourly_app_usage(DAY, NEXT_DAY)
        app_names = {"Visual Studio", "Google Chrome"}
        assert fallback == [r for r in primary if r.name in app_names]

    @pytest.mark.asyncio
    async def test_web_fallback(self, core_services):
        rows = await core_services.usage.get_hourly_web_usage(DAY, NEXT_DAY)
        assert [(r.hour, r.name, r.total_seconds) for r in rows] == [(10, "github.com", 1800.0)]

    @pytest.mark.asyncio
    async def test_documents_not_supported(self, full_services):
        with pytest.raises(ValueError, match="applications and web"):
            await full_services.usage.get_hourly_usage(UsageCategory.DOCUMENTS, DAY, NEXT_DAY)


class TestDayOfWeekUsage:
    EXPECTED = [
        DayOfWeekUsageRow("Google Chrome", 3, 3600.0),
        DayOfWeekUsageRow("Visual Studio", 3, 23400.0),
    ]

    @pytest.mark.asyncio
    async def test_primary(self, full_services):
        assert full_services.capabilities.has_yearly_usage
        rows = await full_services.usage.get_day_of_week_app_usage("2025-01-01", "2025-02-01")
        assert rows == self.EXPECTED

    @pytest.mark.asyncio
    async def test_fallback(self, core_services):
        rows = await core_services.usage.get_day_of_week_app_usage("2025-01-01", "2025-02-01")
        assert rows == self.EXPECTED

    @pytest.mark.asyncio
    async def test_fallback_splits_cross_midnight(self, boundary_db):
        rows = await _fallback_repository(boundary_db).get_day_of_week_app_usage(
            "2025-01-13", "2025-01-20"
        )
        # Wednesday 23:30 to Thursday 00:30
        assert [(r.day_of_week, r.total_seconds) for r in rows] == [(3, 1800.0), (4, 1800.0)]


class TestTimelineSummaries:
    EXPECTED = [
        TimelineSummaryRow(1, f"{DAY} 07:55:00", f"{DAY} 18:00:00"),
        TimelineSummaryRow(2, f"{DAY} 08:00:00", f"{DAY} 17:30:00"),
        TimelineSummaryRow(3, f"{DAY} 10:15:00", f"{DAY} 15:00:00"),
    ]

    @pytest.mark.asyncio
    async def test_primary(self, full_services):
        assert await full_services.usage.get_timeline_summaries() == self.EXPECTED

    @pytest.mark.asyncio
    async def test_fallback(self, core_services):
        assert await core_services.usage.get_timeline_summaries() == self.EXPECTED


class TestIntervalStatement:
    def test_web_filter(self):
        statement = interval_statement("q", CATEGORY_FILTERS[UsageCategory.WEB], DAY, NEXT_DAY)
        assert statement.path == "fallback"
        assert statement.params["group_type"] == "ManicTime/WebSites"
        assert statement.params["schema_0"] == "ManicTime/Documents"
        assert "g.GroupType = :group_type" in statement.sql

    def test_app_filter_has_no_group_type(self):
        statement = interval_statement("q", CATEGORY_FILTERS[UsageCategory.APPLICATIONS], DAY, NEXT_DAY)
        assert "group_type" not in statement.params
        assert statement.params == {
            "schema_0": "ManicTime/Applications",
            "start_day": DAY,
            "end_day": NEXT_DAY,
        }
