"""Timeline registry queries."""

from __future__ import annotations

from timespine.core import limits
from timespine.core.rows import TimelineRow
from timespine.repositories._base import QueryRepository, Statement
from timespine.repositories.decoders import decode_timeline


class TimelineRepository(QueryRepository):
    """Reads ``Ar_Timeline``. Core table, so there is no fallback."""

    async def get_timelines(self, limit: int | None = None) -> list[TimelineRow]:
        effective_limit = limits.TIMELINES.clamp(limit)
        statement = Statement(
            name="get_timelines",
            sql="""
                SELECT ReportId, SchemaName, BaseSchemaName
                FROM Ar_Timeline
                ORDER BY ReportId
                LIMIT :limit
            """,
            params={"limit": effective_limit},
        )
        return await self._query(statement, decode_timeline)


__all__ = ["TimelineRepository"]
