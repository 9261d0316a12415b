"""Activity and group queries for a single timeline.

Enriched activities use the enrichment toggle: when the common-group or tag
tables are unusable, the statement keeps its shape and selects ``NULL`` in
place of the missing join, so the optional fields come back ``None``.
"""

from __future__ import annotations

from datetime import datetime

from timespine.core import limits
from timespine.core.rows import ActivityRow, EnrichedActivityRow, GroupRow
from timespine.repositories._base import QueryRepository, Statement, local_bound
from timespine.repositories.decoders import (
    TAG_SEPARATOR,
    decode_activity,
    decode_group,
    make_enriched_activity_decoder,
)

_COMMON_GROUP_JOIN = "LEFT JOIN Ar_CommonGroup cg ON a.CommonGroupId = cg.CommonGroupId"

_TAGS_SUBQUERY = """(
                    SELECT group_concat(tg.Name, :tag_separator)
                    FROM Ar_ActivityTag atg
                    JOIN Ar_Tag tg ON atg.TagId = tg.TagId
                    WHERE atg.ActivityId = a.ActivityId
                )"""


class ActivityRepository(QueryRepository):
    """Reads ``Ar_Activity`` and ``Ar_Group`` for one timeline."""

    async def get_activities(
        self,
        timeline_id: int,
        start: str | datetime,
        end: str | datetime,
        limit: int | None = None,
    ) -> list[ActivityRow]:
        """Activities of ``timeline_id`` overlapping ``[start, end)``, by start time."""
        statement = Statement(
            name="get_activities",
            sql="""
                SELECT ActivityId, ReportId, StartLocalTime, EndLocalTime, Name, GroupId
                FROM Ar_Activity
                WHERE ReportId = :report_id
                  AND StartLocalTime < :end
                  AND EndLocalTime > :start
                ORDER BY StartLocalTime
                LIMIT :limit
            """,
            params={
                "report_id": timeline_id,
                "start": local_bound(start),
                "end": local_bound(end),
                "limit": limits.ACTIVITIES.clamp(limit),
            },
        )
        return await self._query(statement, decode_activity)

    async def get_enriched_activities(
        self,
        timeline_id: int,
        start: str | datetime,
        end: str | datetime,
        limit: int | None = None,
    ) -> list[EnrichedActivityRow]:
        """Activities with group metadata, common-group name and tags."""
        has_common_group = self.capabilities.has_common_group
        has_tags = self.capabilities.has_tags

        params: dict[str, object] = {
            "report_id": timeline_id,
            "start": local_bound(start),
            "end": local_bound(end),
            "limit": limits.ACTIVITIES.clamp(limit),
        }
        if has_tags:
            params["tag_separator"] = TAG_SEPARATOR

        statement = Statement(
            name="get_enriched_activities",
            sql=f"""
                SELECT a.ActivityId AS ActivityId, a.ReportId AS ReportId,
                       a.StartLocalTime AS StartLocalTime, a.EndLocalTime AS EndLocalTime,
                       a.Name AS Name, a.GroupId AS GroupId,
                       g.Name AS GroupName, g.Color AS GroupColor, g.Key AS GroupKey,
                       {"cg.Name" if has_common_group else "NULL"} AS CommonGroupName,
                       {_TAGS_SUBQUERY if has_tags else "NULL"} AS Tags
                FROM Ar_Activity a
                LEFT JOIN Ar_Group g ON a.GroupId = g.GroupId AND a.ReportId = g.ReportId
                {_COMMON_GROUP_JOIN if has_common_group else ""}
                WHERE a.ReportId = :report_id
                  AND a.StartLocalTime < :end
                  AND a.EndLocalTime > :start
                ORDER BY a.StartLocalTime
                LIMIT :limit
            """,
            params=params,
            path="primary" if has_common_group and has_tags else "fallback",
        )
        return await self._query(statement, make_enriched_activity_decoder(tags_available=has_tags))

    async def get_groups(self, timeline_id: int, limit: int | None = None) -> list[GroupRow]:
        statement = Statement(
            name="get_groups",
            sql="""
                SELECT GroupId, ReportId, Name
                FROM Ar_Group
                WHERE ReportId = :report_id
                ORDER BY GroupId
                LIMIT :limit
            """,
            params={"report_id": timeline_id, "limit": limits.GROUPS.clamp(limit)},
        )
        return await self._query(statement, decode_group)


__all__ = ["ActivityRepository"]
