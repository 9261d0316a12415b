"""
Typed row shapes returned by the repositories.

Every query family has exactly one row type, and primary and fallback paths
build the same type, so callers cannot tell which path produced a result.
Timestamps stay in the database's local-time text form
(``YYYY-MM-DD HH:MM:SS``); days are ISO date strings.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


class _RowMixin:
    """``to_dict`` for JSON output."""

    __slots__ = ()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]


@dataclass(frozen=True, slots=True)
class TimelineRow(_RowMixin):
    report_id: int
    schema_name: str
    base_schema_name: str


@dataclass(frozen=True, slots=True)
class ActivityRow(_RowMixin):
    activity_id: int
    report_id: int
    start_local_time: str
    end_local_time: str
    name: str | None
    group_id: int | None


@dataclass(frozen=True, slots=True)
class EnrichedActivityRow(_RowMixin):
    """Activity with group metadata and optional enrichment.

    ``common_group_name`` and ``tags`` are ``None`` when the installation
    lacks the tables that provide them; ``tags`` is an empty tuple when the
    tables exist but the activity has no tags.
    """

    activity_id: int
    report_id: int
    start_local_time: str
    end_local_time: str
    name: str | None
    group_id: int | None
    group_name: str | None = None
    group_color: str | None = None
    group_key: str | None = None
    common_group_name: str | None = None
    tags: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class GroupRow(_RowMixin):
    group_id: int
    report_id: int
    name: str


@dataclass(frozen=True, slots=True)
class CorrelatedActivityRow(_RowMixin):
    """Activity from any timeline, for cross-timeline listings."""

    start_local_time: str
    end_local_time: str
    name: str | None
    schema_name: str
    group_name: str | None = None
    group_color: str | None = None
    common_group_name: str | None = None


@dataclass(frozen=True, slots=True)
class DailyUsageRow(_RowMixin):
    day: str
    name: str
    color: str | None
    key: str | None
    total_seconds: float


@dataclass(frozen=True, slots=True)
class HourlyUsageRow(_RowMixin):
    day: str
    hour: int
    name: str
    color: str | None
    key: str | None
    total_seconds: float


@dataclass(frozen=True, slots=True)
class DayOfWeekUsageRow(_RowMixin):
    """Usage per weekday; ``day_of_week`` is 0 = Sunday through 6 = Saturday."""

    name: str
    day_of_week: int
    total_seconds: float


@dataclass(frozen=True, slots=True)
class TimelineSummaryRow(_RowMixin):
    report_id: int
    start_local_time: str
    end_local_time: str


@dataclass(frozen=True, slots=True)
class EnvironmentRow(_RowMixin):
    environment_id: int
    device_name: str


__all__ = [
    "TimelineRow",
    "ActivityRow",
    "EnrichedActivityRow",
    "GroupRow",
    "CorrelatedActivityRow",
    "DailyUsageRow",
    "HourlyUsageRow",
    "DayOfWeekUsageRow",
    "TimelineSummaryRow",
    "EnvironmentRow",
]
