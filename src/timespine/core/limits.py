"""Row limits per query family.

Every query accepts an optional caller-requested limit. The effective limit
is ``min(requested or default, cap)``, so the hard cap can never be
exceeded whatever the caller asks for.
"""

from __future__ import annotations

from dataclasses import dataclass

# ── Hard caps ────────────────────────────────────────────────────────────

MAX_ACTIVITIES = 5000
MAX_TIMELINES = 200
MAX_GROUPS = 1000
MAX_HOURLY_USAGE_ROWS = 5000
MAX_DAILY_USAGE_ROWS = 2000

# ── Defaults ─────────────────────────────────────────────────────────────

DEFAULT_ACTIVITIES = 1000
DEFAULT_USAGE_ROWS = 1000


def clamp_limit(requested: int | None, default: int, cap: int) -> int:
    """Return the effective row limit.

    ``None`` selects ``default``. Negative requests are floored at 0 because
    SQLite treats a negative ``LIMIT`` as "no limit".

    >>> clamp_limit(None, 1000, 5000)
    1000
    >>> clamp_limit(99999, 1000, 5000)
    5000
    """
    effective = default if requested is None else requested
    return max(0, min(effective, cap))


@dataclass(frozen=True, slots=True)
class QueryLimit:
    """Default and hard cap for one query family."""

    default: int
    cap: int

    def clamp(self, requested: int | None) -> int:
        return clamp_limit(requested, self.default, self.cap)


ACTIVITIES = QueryLimit(DEFAULT_ACTIVITIES, MAX_ACTIVITIES)
GROUPS = QueryLimit(MAX_GROUPS, MAX_GROUPS)
TIMELINES = QueryLimit(MAX_TIMELINES, MAX_TIMELINES)
HOURLY_USAGE = QueryLimit(DEFAULT_USAGE_ROWS, MAX_HOURLY_USAGE_ROWS)
DAILY_USAGE = QueryLimit(DEFAULT_USAGE_ROWS, MAX_DAILY_USAGE_ROWS)


__all__ = [
    "MAX_ACTIVITIES",
    "MAX_TIMELINES",
    "MAX_GROUPS",
    "MAX_HOURLY_USAGE_ROWS",
    "MAX_DAILY_USAGE_ROWS",
    "DEFAULT_ACTIVITIES",
    "DEFAULT_USAGE_ROWS",
    "clamp_limit",
    "QueryLimit",
    "ACTIVITIES",
    "GROUPS",
    "TIMELINES",
    "HOURLY_USAGE",
    "DAILY_USAGE",
]
