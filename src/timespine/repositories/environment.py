"""Device environment queries."""

from __future__ import annotations

from timespine.core.logging import get_logger
from timespine.core.rows import EnvironmentRow
from timespine.repositories._base import QueryRepository, Statement
from timespine.repositories.decoders import decode_environment

logger = get_logger(__name__)


class EnvironmentRepository(QueryRepository):
    """Reads ``Ar_Environment``; returns nothing when the table is unusable."""

    async def get_environments(self) -> list[EnvironmentRow]:
        if not self.capabilities.has_environment:
            logger.debug("query_skipped", query="get_environments", reason="capability_unavailable")
            return []

        statement = Statement(
            name="get_environments",
            sql="""
                SELECT EnvironmentId, DeviceName
                FROM Ar_Environment
                ORDER BY EnvironmentId
            """,
            path="primary",
        )
        return await self._query(statement, decode_environment)


__all__ = ["EnvironmentRepository"]
