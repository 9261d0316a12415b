"""
CLI: ``timespine timelines``: timelines with their coverage ranges.
"""

from __future__ import annotations

import asyncio

import typer

from timespine.cli.utils import cli_errors, open_services, output_json, output_rows, run_async
from timespine.services import DatabaseServices


async def _load(services: DatabaseServices) -> tuple[list, list]:
    timelines, summaries = await asyncio.gather(
        services.timelines.get_timelines(),
        services.usage.get_timeline_summaries(),
    )
    return timelines, summaries


def timelines(
    database: str | None = typer.Option(None, "--database", "-d", help="Path to the reports database."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List timelines and the time range each one covers."""
    with cli_errors():
        services, _ = open_services(database)
        timeline_rows, summary_rows = run_async(_load(services))

    if json_out:
        output_json(
            {
                "timelines": [t.to_dict() for t in timeline_rows],
                "summaries": [s.to_dict() for s in summary_rows],
            }
        )
        return

    output_rows(timeline_rows, title="Timelines")
    output_rows(summary_rows, title="Coverage")
