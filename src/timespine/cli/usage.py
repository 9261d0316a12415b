"""
CLI: ``timespine usage``: daily, hourly and weekday usage totals.
"""

from __future__ import annotations

import typer

from timespine.cli.utils import (
    cli_errors,
    err_console,
    open_services,
    output_rows,
    run_async,
    validate_day,
)
from timespine.core.enums import UsageCategory

app = typer.Typer(no_args_is_help=True)

_DATABASE = typer.Option(None, "--database", "-d", help="Path to the reports database.")
_START = typer.Option(..., "--start", callback=validate_day, help="First day (inclusive), YYYY-MM-DD.")
_END = typer.Option(..., "--end", callback=validate_day, help="Last day (exclusive), YYYY-MM-DD.")
_LIMIT = typer.Option(None, "--limit", "-n", help="Maximum rows (capped per query).")


@app.command("daily")
def daily(
    start: str = _START,
    end: str = _END,
    category: UsageCategory = typer.Option(UsageCategory.APPLICATIONS, "--category", "-c"),
    limit: int | None = _LIMIT,
    database: str | None = _DATABASE,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Total seconds per day and application, site or document."""
    with cli_errors():
        services, _ = open_services(database)
        rows = run_async(services.usage.get_daily_usage(category, start, end, limit))
    output_rows(rows, as_json=json_out, title=f"Daily {category.value} usage")


@app.command("hourly")
def hourly(
    start: str = _START,
    end: str = _END,
    category: UsageCategory = typer.Option(UsageCategory.APPLICATIONS, "--category", "-c"),
    limit: int | None = _LIMIT,
    database: str | None = _DATABASE,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Total seconds per day, hour and application or site."""
    if category is UsageCategory.DOCUMENTS:
        err_console.print("[bold red]Error[/bold red]: hourly usage supports app and web only")
        raise typer.Exit(code=2)

    with cli_errors():
        services, _ = open_services(database)
        rows = run_async(services.usage.get_hourly_usage(category, start, end, limit))
    output_rows(rows, as_json=json_out, title=f"Hourly {category.value} usage")


@app.command("weekday")
def weekday(
    start: str = _START,
    end: str = _END,
    limit: int | None = _LIMIT,
    database: str | None = _DATABASE,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Application usage per weekday (0 = Sunday)."""
    with cli_errors():
        services, _ = open_services(database)
        rows = run_async(services.usage.get_day_of_week_app_usage(start, end, limit))
    output_rows(rows, as_json=json_out, title="Usage by weekday")
