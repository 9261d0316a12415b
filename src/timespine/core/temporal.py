"""
Temporal splitting and aggregation over raw activity intervals.

When a rollup table is unavailable, usage totals are recomputed from raw
intervals. Each interval is cut at bucket boundaries (midnight, or the top
of the hour) and every bucket receives only the duration that overlaps it.

Manifesto:
    An activity from 23:30 to 00:30 is thirty minutes of Monday and thirty
    minutes of Tuesday. Attributing the whole hour to Monday makes daily
    totals disagree with the precomputed rollups, and then the answer
    depends on which path happened to run. The splitting rules are
    therefore explicit:

    - **Start-inclusive, end-exclusive:** a segment ending exactly at a
      boundary belongs to the earlier bucket only
    - **Strictly positive:** zero-length segments are never yielded
    - **Same ordering as the rollup queries:** callers cannot tell which
      path produced a result

Architecture:
    ::

        Interval 23:30 ─────────────── 00:30 (next day)
                         │ midnight
        split_by_day →  [23:30, 00:00) day 1   1800 s
                        [00:00, 00:30) day 2   1800 s

        Interval 08:45 ──────── 09:15
                         │ 09:00
        split_by_hour → [08:45, 09:00) hour 8   900 s
                        [09:00, 09:15) hour 9   900 s

        aggregate_daily / aggregate_hourly / aggregate_day_of_week
            Σ seconds per bucket key → typed usage rows, filtered to
            [start_day, end_day), ordered like the rollup statements

Features:
    - **split_by_day:** at most two segments (intervals are assumed to span
      no more than two calendar days)
    - **split_by_hour:** one segment per hour touched, any length
    - **Weekday buckets:** 0 = Sunday ... 6 = Saturday, matching SQLite's
      ``strftime('%w')``
    - **Generators:** splitting is lazy; aggregation is a single pass

Examples:
    >>> start = parse_local_timestamp("2025-01-15 23:30:00")
    >>> end = parse_local_timestamp("2025-01-16 00:30:00")
    >>> [(s.day, s.seconds) for s in split_by_day(start, end)]
    [('2025-01-15', 1800.0), ('2025-01-16', 1800.0)]

Guardrails:
    ❌ DON'T: Attribute an interval to the day it started
    ✅ DO: Split at midnight and sum per bucket

    ❌ DON'T: Compare buckets with ``datetime.weekday()`` directly
    ✅ DO: Use ``Segment.weekday`` (Sunday-based, like the rollup path)

Tags:
    temporal, interval-splitting, aggregation, fallback, timespine

Doc-Types:
    - API Reference
    - Query Routing Guide
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from timespine.core.rows import DailyUsageRow, DayOfWeekUsageRow, HourlyUsageRow

LOCAL_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_ONE_DAY = timedelta(days=1)
_ONE_HOUR = timedelta(hours=1)


def parse_local_timestamp(value: str | datetime) -> datetime:
    """Parse a local-time timestamp as stored by the time tracker.

    Accepts ``YYYY-MM-DD HH:MM:SS[.ffffff]`` and the ISO ``T`` separator.
    Local timestamps are wall-clock times, so any offset is dropped.
    """
    if isinstance(value, datetime):
        parsed = value
    elif not isinstance(value, str):
        raise ValueError(f"Invalid local timestamp: {value!r}")
    else:
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise ValueError(f"Invalid local timestamp: {value!r}") from e
    return parsed.replace(tzinfo=None)


def format_local_timestamp(value: datetime) -> str:
    return value.strftime(LOCAL_TIMESTAMP_FORMAT)


def to_day(value: date | str) -> date:
    """Coerce an ISO day string (or a date/datetime) to a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip())


def sqlite_weekday(day: date) -> int:
    """Weekday number as SQLite's ``strftime('%w')``: 0 = Sunday."""
    return (day.weekday() + 1) % 7


@dataclass(frozen=True, slots=True)
class Segment:
    """Part of an interval falling inside one bucket.

    ``bucket`` is the start of the bucket (midnight or top of the hour).
    """

    bucket: datetime
    start: datetime
    end: datetime

    @property
    def seconds(self) -> float:
        return (self.end - self.start).total_seconds()

    @property
    def day(self) -> str:
        return self.bucket.date().isoformat()

    @property
    def hour(self) -> int:
        return self.bucket.hour

    @property
    def weekday(self) -> int:
        return sqlite_weekday(self.bucket.date())


def split_by_day(start: datetime, end: datetime) -> Iterator[Segment]:
    """Split ``[start, end)`` at the following midnight.

    Yields at most two segments: the part on the start day, then everything
    after midnight attributed to the next day.
    """
    if end <= start:
        return
    day_start = datetime.combine(start.date(), time.min)
    next_midnight = day_start + _ONE_DAY

    first_end = min(end, next_midnight)
    if first_end > start:
        yield Segment(day_start, start, first_end)
    if end > next_midnight:
        yield Segment(next_midnight, next_midnight, end)


def split_by_hour(start: datetime, end: datetime) -> Iterator[Segment]:
    """Split ``[start, end)`` into one segment per clock hour it touches."""
    cursor = start
    while cursor < end:
        bucket = cursor.replace(minute=0, second=0, microsecond=0)
        segment_end = min(end, bucket + _ONE_HOUR)
        yield Segment(bucket, cursor, segment_end)
        cursor = segment_end


@dataclass(frozen=True, slots=True)
class Interval:
    """A raw activity interval with its display attributes."""

    start: datetime
    end: datetime
    name: str
    color: str | None = None
    key: str | None = None

    @classmethod
    def from_local(
        cls,
        start: str | datetime,
        end: str | datetime,
        name: str,
        color: str | None = None,
        key: str | None = None,
    ) -> Interval:
        return cls(parse_local_timestamp(start), parse_local_timestamp(end), name, color, key)


# ── Aggregation ──────────────────────────────────────────────────────────


def _in_range(segment: Segment, start_day: date, end_day: date) -> bool:
    return start_day <= segment.bucket.date() < end_day and segment.seconds > 0


def aggregate_daily(
    intervals: Iterable[Interval], start_day: date, end_day: date
) -> list[DailyUsageRow]:
    """Total seconds per (day, name, color, key) inside ``[start_day, end_day)``.

    Ordered by day, then total descending.
    """
    totals: dict[tuple[str, str, str | None, str | None], float] = defaultdict(float)
    for interval in intervals:
        for segment in split_by_day(interval.start, interval.end):
            if _in_range(segment, start_day, end_day):
                totals[(segment.day, interval.name, interval.color, interval.key)] += segment.seconds

    rows = [
        DailyUsageRow(day=day, name=name, color=color, key=key, total_seconds=total)
        for (day, name, color, key), total in totals.items()
    ]
    rows.sort(key=lambda r: (r.day, -r.total_seconds, r.name))
    return rows


def aggregate_hourly(
    intervals: Iterable[Interval], start_day: date, end_day: date
) -> list[HourlyUsageRow]:
    """Total seconds per (day, hour, name, color, key) inside the day range.

    Ordered by day, hour, then total descending.
    """
    totals: dict[tuple[str, int, str, str | None, str | None], float] = defaultdict(float)
    for interval in intervals:
        for segment in split_by_hour(interval.start, interval.end):
            if _in_range(segment, start_day, end_day):
                bucket_key = (segment.day, segment.hour, interval.name, interval.color, interval.key)
                totals[bucket_key] += segment.seconds

    rows = [
        HourlyUsageRow(day=day, hour=hour, name=name, color=color, key=key, total_seconds=total)
        for (day, hour, name, color, key), total in totals.items()
    ]
    rows.sort(key=lambda r: (r.day, r.hour, -r.total_seconds, r.name))
    return rows


def aggregate_day_of_week(
    intervals: Iterable[Interval], start_day: date, end_day: date
) -> list[DayOfWeekUsageRow]:
    """Total seconds per (name, weekday) after splitting by day.

    Ordered by name, then weekday.
    """
    totals: dict[tuple[str, int], float] = defaultdict(float)
    for interval in intervals:
        for segment in split_by_day(interval.start, interval.end):
            if _in_range(segment, start_day, end_day):
                totals[(interval.name, segment.weekday)] += segment.seconds

    rows = [
        DayOfWeekUsageRow(name=name, day_of_week=weekday, total_seconds=total)
        for (name, weekday), total in totals.items()
    ]
    rows.sort(key=lambda r: (r.name, r.day_of_week))
    return rows


__all__ = [
    "LOCAL_TIMESTAMP_FORMAT",
    "parse_local_timestamp",
    "format_local_timestamp",
    "to_day",
    "sqlite_weekday",
    "Segment",
    "split_by_day",
    "split_by_hour",
    "Interval",
    "aggregate_daily",
    "aggregate_hourly",
    "aggregate_day_of_week",
]
