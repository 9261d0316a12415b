"""Row decoders: one function per output row type.

Statements alias their columns to the names used here, so the primary and
fallback statements of a query family share one decoder.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable

from timespine.core.logging import get_logger
from timespine.core.rows import (
    ActivityRow,
    CorrelatedActivityRow,
    DailyUsageRow,
    DayOfWeekUsageRow,
    EnrichedActivityRow,
    EnvironmentRow,
    GroupRow,
    HourlyUsageRow,
    TimelineRow,
    TimelineSummaryRow,
)
from timespine.core.temporal import Interval

logger = get_logger(__name__)

# Separator used with group_concat for tag names
TAG_SEPARATOR = "\x1f"

UNKNOWN_NAME = "(unknown)"


def _opt_int(value: object) -> int | None:
    return None if value is None else int(value)  # type: ignore[call-overload]


def decode_timeline(row: sqlite3.Row) -> TimelineRow:
    return TimelineRow(
        report_id=int(row["ReportId"]),
        schema_name=row["SchemaName"],
        base_schema_name=row["BaseSchemaName"],
    )


def decode_activity(row: sqlite3.Row) -> ActivityRow:
    return ActivityRow(
        activity_id=int(row["ActivityId"]),
        report_id=int(row["ReportId"]),
        start_local_time=row["StartLocalTime"],
        end_local_time=row["EndLocalTime"],
        name=row["Name"],
        group_id=_opt_int(row["GroupId"]),
    )


def decode_tags(value: str | None, *, available: bool) -> tuple[str, ...] | None:
    """``None`` when tags are unavailable, else the (possibly empty) tag tuple."""
    if not available:
        return None
    if not value:
        return ()
    return tuple(sorted(value.split(TAG_SEPARATOR)))


def make_enriched_activity_decoder(*, tags_available: bool):
    """Decoder for enriched activities; tag decoding depends on availability."""

    def decode(row: sqlite3.Row) -> EnrichedActivityRow:
        return EnrichedActivityRow(
            activity_id=int(row["ActivityId"]),
            report_id=int(row["ReportId"]),
            start_local_time=row["StartLocalTime"],
            end_local_time=row["EndLocalTime"],
            name=row["Name"],
            group_id=_opt_int(row["GroupId"]),
            group_name=row["GroupName"],
            group_color=row["GroupColor"],
            group_key=row["GroupKey"],
            common_group_name=row["CommonGroupName"],
            tags=decode_tags(row["Tags"], available=tags_available),
        )

    return decode


def decode_group(row: sqlite3.Row) -> GroupRow:
    return GroupRow(
        group_id=int(row["GroupId"]),
        report_id=int(row["ReportId"]),
        name=row["Name"],
    )


def decode_correlated_activity(row: sqlite3.Row) -> CorrelatedActivityRow:
    return CorrelatedActivityRow(
        start_local_time=row["StartLocalTime"],
        end_local_time=row["EndLocalTime"],
        name=row["Name"],
        schema_name=row["SchemaName"],
        group_name=row["GroupName"],
        group_color=row["GroupColor"],
        common_group_name=row["CommonGroupName"],
    )


def decode_daily_usage(row: sqlite3.Row) -> DailyUsageRow:
    return DailyUsageRow(
        day=row["Day"],
        name=row["Name"],
        color=row["Color"],
        key=row["Key"],
        total_seconds=float(row["TotalSeconds"]),
    )


def decode_hourly_usage(row: sqlite3.Row) -> HourlyUsageRow:
    return HourlyUsageRow(
        day=row["Day"],
        hour=int(row["Hour"]),
        name=row["Name"],
        color=row["Color"],
        key=row["Key"],
        total_seconds=float(row["TotalSeconds"]),
    )


def decode_day_of_week_usage(row: sqlite3.Row) -> DayOfWeekUsageRow:
    return DayOfWeekUsageRow(
        name=row["Name"],
        day_of_week=int(row["DayOfWeek"]),
        total_seconds=float(row["TotalSeconds"]),
    )


def decode_timeline_summary(row: sqlite3.Row) -> TimelineSummaryRow:
    return TimelineSummaryRow(
        report_id=int(row["ReportId"]),
        start_local_time=row["StartLocalTime"],
        end_local_time=row["EndLocalTime"],
    )


def decode_environment(row: sqlite3.Row) -> EnvironmentRow:
    return EnvironmentRow(
        environment_id=int(row["EnvironmentId"]),
        device_name=row["DeviceName"],
    )


def decode_interval(row: sqlite3.Row) -> Interval:
    """Raw activity interval for fallback aggregation."""
    return Interval.from_local(
        row["StartLocalTime"],
        row["EndLocalTime"],
        row["Name"] or UNKNOWN_NAME,
        row["Color"],
        row["Key"],
    )


def decode_intervals(rows: Iterable[sqlite3.Row]) -> list[Interval]:
    """Decode raw intervals, skipping rows whose timestamps do not parse.

    Such rows carry no measurable duration, so they drop out of the
    aggregate instead of failing the whole query.
    """
    intervals: list[Interval] = []
    for row in rows:
        try:
            intervals.append(decode_interval(row))
        except ValueError as e:
            logger.warning(
                "activity_interval_skipped",
                start_local_time=row["StartLocalTime"],
                end_local_time=row["EndLocalTime"],
                name=row["Name"],
                error=str(e),
            )
    return intervals


__all__ = [
    "TAG_SEPARATOR",
    "UNKNOWN_NAME",
    "decode_timeline",
    "decode_activity",
    "decode_tags",
    "make_enriched_activity_decoder",
    "decode_group",
    "decode_correlated_activity",
    "decode_daily_usage",
    "decode_hourly_usage",
    "decode_day_of_week_usage",
    "decode_timeline_summary",
    "decode_environment",
    "decode_interval",
    "decode_intervals",
]
