"""
CLI utility helpers: service setup, error reporting and output formatting.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine, Iterator
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from timespine.core.connection import SqliteConnectionFactory
from timespine.core.errors import TimespineError
from timespine.core.models import SchemaValidationResult
from timespine.core.settings import TimespineSettings
from timespine.core.temporal import to_day
from timespine.services import DatabaseServices, create_database_services, initialize_capabilities

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)


# ── Error handling ───────────────────────────────────────────────────────


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn timespine errors into a red message and exit code 1."""
    try:
        yield
    except TimespineError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {e.message}")
        raise typer.Exit(code=1) from e


def validate_day(value: str) -> str:
    """Typer callback: reject anything that is not a YYYY-MM-DD day."""
    try:
        to_day(value)
    except ValueError as e:
        raise typer.BadParameter(f"{value!r} is not a YYYY-MM-DD date") from e
    return value


# ── Service helpers ──────────────────────────────────────────────────────


def make_services(database: str | None = None) -> DatabaseServices:
    """Services for ``database`` or the configured path. Not yet validated."""
    if database is not None:
        return create_database_services(factory=SqliteConnectionFactory(database))
    return create_database_services(TimespineSettings())


def open_services(database: str | None = None) -> tuple[DatabaseServices, SchemaValidationResult]:
    """Services with the capability matrix populated from a validation pass."""
    services = make_services(database)
    return services, initialize_capabilities(services)


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def output_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def output_rows(rows: list, *, as_json: bool = False, title: str = "") -> None:
    """Render typed rows as JSON or a Rich table."""
    if as_json:
        output_json([_to_dict(r) for r in rows])
        return
    if not rows:
        console.print("[dim]No rows.[/dim]")
        return
    _print_table(rows, title=title)


def output_validation(result: SchemaValidationResult, *, as_json: bool = False) -> None:
    if as_json:
        output_json(_to_dict(result))
        return

    style = {
        "valid": "green",
        "valid_with_warnings": "yellow",
        "invalid": "bold red",
        "not_checked": "dim",
    }[result.status.value]
    console.print(f"Schema status: [{style}]{result.status.value}[/{style}]")
    if not result.issues:
        return

    table = Table(title="Issues", show_lines=False, pad_edge=False)
    for col in ("severity", "code", "message", "remediation"):
        table.add_column(col, overflow="fold")
    for issue in result.issues:
        table.add_row(issue.severity.value, issue.code.value, issue.message, issue.remediation)
    console.print(table)


# ── Private helpers ──────────────────────────────────────────────────────


def _print_table(items: list, *, title: str = "") -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        d = _to_dict(item)
        table.add_row(*("" if v is None else str(v) for v in d.values()))
    console.print(table)
