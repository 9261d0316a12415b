"""
CLI: ``timespine schema``: schema validation and capability commands.
"""

from __future__ import annotations

import typer

from timespine.cli.utils import (
    cli_errors,
    console,
    make_services,
    open_services,
    output_json,
    output_rows,
    output_validation,
)
from timespine.core.enums import SchemaValidationStatus

app = typer.Typer(no_args_is_help=True)


@app.command("validate")
def validate(
    database: str | None = typer.Option(None, "--database", "-d", help="Path to the reports database."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Validate the database schema against the table manifest."""
    with cli_errors():
        services = make_services(database)
        result = services.validator.validate_database(services.factory)

    output_validation(result, as_json=json_out)
    if result.status == SchemaValidationStatus.INVALID:
        raise typer.Exit(code=1)


@app.command("capabilities")
def capabilities(
    database: str | None = typer.Option(None, "--database", "-d", help="Path to the reports database."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show which query capabilities are available and which fall back."""
    with cli_errors():
        services, result = open_services(database)

    statuses = services.capabilities.capability_statuses()
    if json_out:
        output_json(
            {
                "status": result.status.value,
                "capabilities": [s.model_dump() for s in statuses],
            }
        )
        return

    console.print(f"Schema status: {result.status.value}")
    output_rows(statuses, title="Capabilities")
