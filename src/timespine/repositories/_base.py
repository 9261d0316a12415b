"""Base query repository: one statement, one decoder, one round-trip.

Every repository method follows the same shape:

1. pick a :class:`Statement` (primary or fallback, chosen from the
   capability matrix),
2. hand it to :meth:`QueryRepository._run` together with a transform that
   turns fetched rows into typed rows.

``_run`` owns everything else: the cancellation checkpoint before I/O, a
fresh read-only connection per attempt (opened and closed inside a worker
thread), the busy retry, and the ``query_executed`` record.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                       QueryRepository                              │
    │                                                                    │
    │   factory: ConnectionFactory      ← read-only handles              │
    │   capabilities: QueryCapabilityMatrix  (shared, snapshot-swapped)  │
    │   retry_policy: BusyRetryPolicy                                    │
    │                                                                    │
    │   _run(statement, transform)   → list[T]   (retry + thread + log)  │
    │   _query(statement, decoder)   → list[T]   (one row → one T)       │
    └────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Literal, TypeVar

from timespine.core.capabilities import QueryCapabilityMatrix
from timespine.core.connection import ConnectionFactory, open_read_only
from timespine.core.logging import get_logger
from timespine.core.retry import BusyRetryPolicy, run_with_busy_retry
from timespine.core.temporal import format_local_timestamp

T = TypeVar("T")

QueryPath = Literal["primary", "fallback", "direct"]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Statement:
    """Which SQL to run: text, bound parameters, and the path it serves."""

    name: str
    sql: str
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    path: QueryPath = "direct"


def local_bound(value: str | datetime) -> str:
    """Local-time range bound as stored text (compared lexicographically)."""
    if isinstance(value, datetime):
        return format_local_timestamp(value)
    return value.strip()


def in_clause(prefix: str, values: Sequence[str]) -> tuple[str, dict[str, str]]:
    """Build ``(:p0, :p1, ...)`` and its parameter dict for an ``IN`` filter."""
    params = {f"{prefix}{i}": value for i, value in enumerate(values)}
    placeholders = ", ".join(f":{name}" for name in params)
    return f"({placeholders})", params


class QueryRepository:
    """Base class for async, read-only repositories.

    Parameters:
        factory: Yields a new read-only connection per call.
        capabilities: Shared capability matrix consulted per call.
        retry_policy: Busy retry schedule (default: 3 attempts).
    """

    def __init__(
        self,
        factory: ConnectionFactory,
        capabilities: QueryCapabilityMatrix | None = None,
        *,
        retry_policy: BusyRetryPolicy | None = None,
    ) -> None:
        self.factory = factory
        self.capabilities = capabilities if capabilities is not None else QueryCapabilityMatrix()
        self.retry_policy = retry_policy

    # -- Execution ---------------------------------------------------------

    def _execute(
        self,
        statement: Statement,
        transform: Callable[[list[sqlite3.Row]], list[T]],
    ) -> list[T]:
        """Blocking part of one attempt; runs in a worker thread."""
        with open_read_only(self.factory) as conn:
            rows = conn.execute(statement.sql, dict(statement.params)).fetchall()
        return transform(rows)

    async def _run(
        self,
        statement: Statement,
        transform: Callable[[list[sqlite3.Row]], list[T]],
    ) -> list[T]:
        """Run ``statement`` with busy retry and return the transformed rows."""

        async def attempt() -> list[T]:
            # Observe a pending cancellation before any I/O is issued
            await asyncio.sleep(0)
            return await asyncio.to_thread(self._execute, statement, transform)

        try:
            result = await run_with_busy_retry(
                attempt,
                policy=self.retry_policy,
                query_name=statement.name,
            )
        except asyncio.CancelledError:
            logger.debug("query_cancelled", query=statement.name, path=statement.path)
            raise

        logger.debug(
            "query_executed",
            query=statement.name,
            path=statement.path,
            rows=len(result),
        )
        return result

    async def _query(self, statement: Statement, decoder: Callable[[sqlite3.Row], T]) -> list[T]:
        """Run ``statement`` and decode each row with ``decoder``."""
        return await self._run(statement, lambda rows: [decoder(row) for row in rows])


__all__ = [
    "Statement",
    "QueryPath",
    "local_bound",
    "in_clause",
    "QueryRepository",
]
