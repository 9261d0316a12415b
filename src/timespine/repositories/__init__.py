"""Async query repositories over the reports database.

Each repository shares the process-wide capability matrix and picks a
primary or fallback statement per call; see :mod:`timespine.repositories._base`.
"""

from timespine.repositories._base import QueryRepository, Statement
from timespine.repositories.activities import ActivityRepository
from timespine.repositories.correlation import CorrelationRepository
from timespine.repositories.environment import EnvironmentRepository
from timespine.repositories.timelines import TimelineRepository
from timespine.repositories.usage import UsageRepository

__all__ = [
    "QueryRepository",
    "Statement",
    "ActivityRepository",
    "CorrelationRepository",
    "EnvironmentRepository",
    "TimelineRepository",
    "UsageRepository",
]
