"""
Schema validation against the table manifest.

Compares a live database with ``TABLE_MANIFEST`` and reports every missing
table and column as a ``ValidationIssue`` at its tier's severity.

Manifesto:
    One validation pass should describe every problem at once, so issues
    are returned as data and never raised. Only "could not read the
    database at all" is exceptional.

    A supplemental table that exists but lacks a required column is useless
    to the statements routed to it. It is reported once per missing column,
    never separately as missing, and left out of the validated set so
    routing treats it as absent.

Architecture:
    ::

        sqlite_master ──► existing tables (casefolded)
                             │
        for each manifest table:
            absent  ──► 1 issue (tier severity, missing-table remediation)
            present ──► PRAGMA table_info ──► 1 issue per missing column
                             │
        validated = existing − tables with column issues, non-core only
        status    = INVALID if any fatal
                    VALID_WITH_WARNINGS if any warning
                    VALID otherwise

Examples:
    >>> validator = SchemaValidator()
    >>> with open_read_only(factory) as conn:
    ...     result = validator.validate(conn)
    >>> result.status
    <SchemaValidationStatus.VALID_WITH_WARNINGS: 'valid_with_warnings'>

Tags:
    schema, validation, drift-detection, sqlite, timespine
"""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping

from timespine.core.connection import ConnectionFactory, open_read_only
from timespine.core.enums import SchemaValidationStatus, TableTier, ValidationSeverity
from timespine.core.errors import DatabaseUnavailableError
from timespine.core.logging import get_logger
from timespine.core.manifest import TABLE_MANIFEST, TIER_POLICIES, TableDefinition
from timespine.core.models import SchemaValidationResult, ValidationIssue

logger = get_logger(__name__)


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _table_names(conn: sqlite3.Connection) -> set[str]:
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    return {row[0].casefold() for row in cursor.fetchall()}


def _column_names(conn: sqlite3.Connection, table: str) -> list[str]:
    cursor = conn.execute(f"PRAGMA table_info({_quote_identifier(table)})")
    # Column 1 of table_info is the column name
    return [row[1] for row in cursor.fetchall()]


def derive_status(issues: list[ValidationIssue]) -> SchemaValidationStatus:
    if any(i.severity == ValidationSeverity.FATAL for i in issues):
        return SchemaValidationStatus.INVALID
    if issues:
        return SchemaValidationStatus.VALID_WITH_WARNINGS
    return SchemaValidationStatus.VALID


class SchemaValidator:
    """Validates a database against a table manifest.

    Stateless; one instance can validate any number of databases.
    """

    def __init__(self, manifest: Mapping[str, TableDefinition] | None = None):
        self._manifest = manifest if manifest is not None else TABLE_MANIFEST

    def validate(self, conn: sqlite3.Connection) -> SchemaValidationResult:
        """Validate the database behind ``conn``.

        Raises:
            sqlite3.Error: the table list could not be read
        """
        existing = _table_names(conn)
        issues: list[ValidationIssue] = []
        column_issue_tables: set[str] = set()

        for definition in self._manifest.values():
            policy = TIER_POLICIES[definition.tier]
            log = logger.error if policy.severity == ValidationSeverity.FATAL else logger.warning

            if definition.key not in existing:
                log("schema_table_missing", table=definition.name, tier=definition.tier.value)
                issues.append(
                    ValidationIssue(
                        code=policy.issue_code,
                        severity=policy.severity,
                        message=f"{policy.label} table '{definition.name}' is missing from the database.",
                        remediation=policy.missing_table_remediation,
                        table=definition.name,
                    )
                )
                continue

            for column in definition.missing_columns(_column_names(conn, definition.name)):
                log(
                    "schema_column_missing",
                    table=definition.name,
                    column=column,
                    tier=definition.tier.value,
                )
                issues.append(
                    ValidationIssue(
                        code=policy.issue_code,
                        severity=policy.severity,
                        message=(
                            f"Required column '{column}' is missing from "
                            f"{policy.label.lower()} table '{definition.name}'."
                        ),
                        remediation=policy.missing_column_remediation,
                        table=definition.name,
                        column=column,
                    )
                )
                column_issue_tables.add(definition.key)

        validated = frozenset(
            d.name
            for d in self._manifest.values()
            if d.tier != TableTier.CORE
            and d.key in existing
            and d.key not in column_issue_tables
        )
        status = derive_status(issues)

        logger.info(
            "schema_validation_completed",
            status=status.value,
            issues=len(issues),
            validated_tables=len(validated),
        )
        return SchemaValidationResult(status=status, issues=tuple(issues), validated_tables=validated)

    def validate_database(self, factory: ConnectionFactory) -> SchemaValidationResult:
        """Open a read-only handle from ``factory``, validate, and close it.

        Raises:
            DatabaseUnavailableError: the database could not be opened or its
                schema could not be read (not a database, locked, corrupt)
        """
        with open_read_only(factory) as conn:
            try:
                return self.validate(conn)
            except sqlite3.Error as e:
                raise DatabaseUnavailableError(
                    f"Failed to read database schema: {e}",
                    cause=e,
                ).with_context(database_path=factory.database_path) from e


__all__ = [
    "SchemaValidator",
    "derive_status",
]
