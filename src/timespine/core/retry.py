"""Bounded retry for SQLite "database is locked".

The time tracker writes to its reports database while we read it, so a read
can occasionally hit ``SQLITE_BUSY``. That one condition is retried a fixed
number of times on a fixed delay schedule; every other error propagates
unmodified on the first attempt. All wrapped operations are read-only, so
retrying is always safe.

Example:
    >>> policy = BusyRetryPolicy(max_attempts=3, delays=(0.05, 0.2))
    >>> rows = await run_with_busy_retry(fetch_rows, policy=policy, query_name="daily_usage")
"""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from timespine.core.errors import DatabaseBusyError
from timespine.core.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)

# Primary result code; extended busy codes share the low byte.
SQLITE_BUSY = 5


def is_busy_error(error: BaseException) -> bool:
    """True if ``error`` is SQLite's transient "database is locked" signal."""
    if not isinstance(error, sqlite3.OperationalError):
        return False
    code = getattr(error, "sqlite_errorcode", None)
    if code is not None:
        return code & 0xFF == SQLITE_BUSY
    return "database is locked" in str(error).lower()


@dataclass(frozen=True)
class BusyRetryPolicy:
    """Attempt count and delay schedule for busy retries.

    Attributes:
        max_attempts: Total attempts, including the first
        delays: Delay in seconds before attempt ``n + 1`` is ``delays[n - 1]``;
            the last entry repeats if attempts outnumber delays
        sleep: Awaitable sleep, injectable for tests
    """

    max_attempts: int = 3
    delays: tuple[float, ...] = (0.05, 0.2)
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.max_attempts > 1 and not self.delays:
            raise ValueError("delays must not be empty when retries are allowed")

    def delay_for(self, attempt: int) -> float:
        """Delay to apply after failed ``attempt`` (1-based)."""
        return self.delays[min(attempt - 1, len(self.delays) - 1)]


DEFAULT_BUSY_RETRY = BusyRetryPolicy()


async def run_with_busy_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: BusyRetryPolicy | None = None,
    query_name: str | None = None,
) -> T:
    """Run ``operation``, retrying only while the database is busy.

    Args:
        operation: Zero-argument coroutine function performing one round-trip
        policy: Attempt/delay schedule (default: 3 attempts, 50 ms then 200 ms)
        query_name: Name used in log events and error context

    Returns:
        The result of the first successful attempt.

    Raises:
        DatabaseBusyError: still busy after ``policy.max_attempts`` attempts,
            chained from the last busy error
        asyncio.CancelledError: cancelled, including during a delay
    """
    policy = policy or DEFAULT_BUSY_RETRY
    attempt = 0

    while True:
        attempt += 1
        try:
            return await operation()
        except sqlite3.OperationalError as e:
            if not is_busy_error(e):
                raise
            if attempt >= policy.max_attempts:
                logger.warning(
                    "sqlite_busy_exhausted",
                    query=query_name,
                    attempts=attempt,
                )
                raise DatabaseBusyError(
                    f"Database still locked after {attempt} attempts",
                    attempts=attempt,
                    cause=e,
                ).with_context(query=query_name) from e

            delay = policy.delay_for(attempt)
            logger.warning(
                "sqlite_busy_retry",
                query=query_name,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                delay_s=delay,
            )
            await policy.sleep(delay)


__all__ = [
    "SQLITE_BUSY",
    "is_busy_error",
    "BusyRetryPolicy",
    "DEFAULT_BUSY_RETRY",
    "run_with_busy_retry",
]
