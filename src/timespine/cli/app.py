"""
Root Typer application for the timespine CLI.

Operators use it to inspect an installation's reports database without a
transport layer: schema status, capability flags, usage totals.
"""

from __future__ import annotations

import typer
from typer import Typer

from timespine.core.logging import configure_logging
from timespine.core.settings import TimespineSettings

app = Typer(
    name="timespine",
    help="Schema-resilient queries over time-tracking report databases.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("timespine")
        except PackageNotFoundError:
            from timespine import __version__ as v
        typer.echo(f"timespine {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override TIMESPINE_LOG_LEVEL."),
    log_json: bool | None = typer.Option(None, "--log-json/--log-console", help="Log format."),
) -> None:
    """Validate schemas, inspect capabilities, query usage."""
    settings = TimespineSettings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=log_json if log_json is not None else settings.log_json,
        service=settings.service_name,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from timespine.cli.schema import app as schema_app  # noqa: E402
from timespine.cli.timelines import timelines  # noqa: E402
from timespine.cli.usage import app as usage_app  # noqa: E402

app.add_typer(schema_app, name="schema", help="Schema validation and capabilities.")
app.add_typer(usage_app, name="usage", help="Usage totals (primary or fallback path).")
app.command("timelines")(timelines)
