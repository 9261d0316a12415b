"""Cross-timeline activity listing."""

from __future__ import annotations

from datetime import datetime

from timespine.core import limits
from timespine.core.rows import CorrelatedActivityRow
from timespine.repositories._base import QueryRepository, Statement, local_bound
from timespine.repositories.decoders import decode_correlated_activity


class CorrelationRepository(QueryRepository):
    """Activities from every timeline overlapping a range, with group names.

    The common-group name is an enrichment toggle: without a usable
    ``Ar_CommonGroup`` the join is dropped and the field is ``None``.
    """

    async def get_correlated_activities(
        self,
        start: str | datetime,
        end: str | datetime,
        limit: int | None = None,
    ) -> list[CorrelatedActivityRow]:
        has_common_group = self.capabilities.has_common_group
        common_group_join = (
            "LEFT JOIN Ar_CommonGroup cg ON a.CommonGroupId = cg.CommonGroupId"
            if has_common_group
            else ""
        )
        statement = Statement(
            name="get_correlated_activities",
            sql=f"""
                SELECT a.StartLocalTime AS StartLocalTime, a.EndLocalTime AS EndLocalTime,
                       a.Name AS Name, t.SchemaName AS SchemaName,
                       g.Name AS GroupName, g.Color AS GroupColor,
                       {"cg.Name" if has_common_group else "NULL"} AS CommonGroupName
                FROM Ar_Activity a
                JOIN Ar_Timeline t ON a.ReportId = t.ReportId
                LEFT JOIN Ar_Group g ON a.GroupId = g.GroupId AND a.ReportId = g.ReportId
                {common_group_join}
                WHERE a.StartLocalTime < :end AND a.EndLocalTime > :start
                ORDER BY a.StartLocalTime, t.SchemaName
                LIMIT :limit
            """,
            params={
                "start": local_bound(start),
                "end": local_bound(end),
                "limit": limits.ACTIVITIES.clamp(limit),
            },
            path="primary" if has_common_group else "fallback",
        )
        return await self._query(statement, decode_correlated_activity)


__all__ = ["CorrelationRepository"]
