"""Tests for ``timespine.core.validator``: schema validation against the manifest."""

from __future__ import annotations

import sqlite3

import pytest

from timespine.core.connection import SqliteConnectionFactory
from timespine.core.enums import IssueCode, SchemaValidationStatus, ValidationSeverity
from timespine.core.errors import DatabaseUnavailableError
from timespine.core.models import SchemaValidationResult, ValidationIssue
from timespine.core.validator import SchemaValidator, derive_status


def _validate(db) -> SchemaValidationResult:
    return SchemaValidator().validate_database(SqliteConnectionFactory(db.path))


class TestDeriveStatus:
    def _issue(self, severity: ValidationSeverity) -> ValidationIssue:
        return ValidationIssue(
            code=IssueCode.SCHEMA_VALIDATION_FAILED,
            severity=severity,
            message="m",
            remediation="r",
            table="Ar_Activity",
        )

    def test_no_issues_is_valid(self):
        assert derive_status([]) == SchemaValidationStatus.VALID

    def test_warnings_only(self):
        issues = [self._issue(ValidationSeverity.WARNING)]
        assert derive_status(issues) == SchemaValidationStatus.VALID_WITH_WARNINGS

    def test_any_fatal_is_invalid(self):
        issues = [self._issue(ValidationSeverity.WARNING), self._issue(ValidationSeverity.FATAL)]
        assert derive_status(issues) == SchemaValidationStatus.INVALID


class TestFullSchema:
    def test_full_database_is_valid(self, fixture_db):
        result = _validate(fixture_db.create_full())
        assert result.status == SchemaValidationStatus.VALID
        assert result.issues == ()
        assert result.is_usable

    def test_validated_tables_exclude_core(self, fixture_db):
        result = _validate(fixture_db.create_full())
        assert "Ar_CommonGroup" in result.validated_tables
        assert "Ar_Category" in result.validated_tables
        assert "Ar_Activity" not in result.validated_tables
        assert len(result.validated_tables) == 15


class TestCoreOnlySchema:
    def test_missing_supplemental_tables_are_warnings(self, fixture_db):
        result = _validate(fixture_db.create_core_only())
        assert result.status == SchemaValidationStatus.VALID_WITH_WARNINGS
        assert result.fatal_issues == []
        assert len(result.warning_issues) == 15
        assert result.validated_tables == frozenset()

    def test_missing_table_issue_shape(self, fixture_db):
        result = _validate(fixture_db.create_core_only())
        issue = next(i for i in result.issues if i.table == "Ar_CommonGroup")
        assert issue.code == IssueCode.SUPPLEMENTAL_TABLE_DEGRADED
        assert issue.column is None
        assert issue.message == "Supplemental table 'Ar_CommonGroup' is missing from the database."
        assert issue.remediation

    def test_informational_code(self, fixture_db):
        result = _validate(fixture_db.create_core_only())
        issue = next(i for i in result.issues if i.table == "Ar_Category")
        assert issue.code == IssueCode.INFORMATIONAL_TABLE_DEGRADED
        assert issue.severity == ValidationSeverity.WARNING


class TestMissingCoreStructures:
    def test_missing_core_table_is_fatal(self, fixture_db):
        fixture_db.create_tables(["Ar_Timeline", "Ar_Group"])
        result = _validate(fixture_db)
        assert result.status == SchemaValidationStatus.INVALID
        assert not result.is_usable
        [issue] = result.fatal_issues
        assert issue.table == "Ar_Activity"
        assert issue.code == IssueCode.SCHEMA_VALIDATION_FAILED
        assert issue.message == "Required table 'Ar_Activity' is missing from the database."

    def test_missing_core_column_is_fatal(self, fixture_db):
        result = _validate(fixture_db.create_with_missing_column("Ar_Activity", "CommonGroupId"))
        assert result.status == SchemaValidationStatus.INVALID
        [issue] = result.fatal_issues
        assert issue.table == "Ar_Activity"
        assert issue.column == "CommonGroupId"
        assert issue.message == (
            "Required column 'CommonGroupId' is missing from required table 'Ar_Activity'."
        )

    def test_missing_start_time_is_single_fatal_issue(self, fixture_db):
        result = _validate(fixture_db.create_full_with_missing_column("Ar_Activity", "StartLocalTime"))
        assert result.status == SchemaValidationStatus.INVALID
        assert len(result.issues) == 1
        assert result.issues[0].severity == ValidationSeverity.FATAL
        assert result.issues[0].column == "StartLocalTime"

    def test_each_missing_column_reported(self, fixture_db):
        fixture_db.create_tables(["Ar_Timeline", "Ar_Activity"])
        with fixture_db.connect() as conn:
            conn.execute("CREATE TABLE Ar_Group (GroupId INTEGER, ReportId INTEGER, Name TEXT)")
        result = _validate(fixture_db)
        columns = sorted(i.column for i in result.fatal_issues)
        assert columns == ["Color", "GroupType", "Key"]


class TestSupplementalColumnDrift:
    def test_missing_column_excludes_table(self, fixture_db):
        result = _validate(fixture_db.create_full_with_missing_column("Ar_ApplicationByDay", "TotalSeconds"))
        assert result.status == SchemaValidationStatus.VALID_WITH_WARNINGS
        assert "Ar_ApplicationByDay" not in result.validated_tables
        assert "Ar_WebSiteByDay" in result.validated_tables
        [issue] = result.issues
        assert issue.column == "TotalSeconds"
        assert issue.message == (
            "Required column 'TotalSeconds' is missing from supplemental table 'Ar_ApplicationByDay'."
        )

    def test_partial_database(self, fixture_db):
        result = _validate(fixture_db.create_partial("Ar_CommonGroup", "Ar_ApplicationByDay"))
        assert result.validated_tables == frozenset({"Ar_CommonGroup", "Ar_ApplicationByDay"})


class TestCaseInsensitivity:
    def test_table_and_column_names_match_case_insensitively(self, fixture_db):
        fixture_db.create_core_only()
        with fixture_db.connect() as conn:
            conn.execute("CREATE TABLE AR_ENVIRONMENT (environmentid INTEGER, DEVICENAME TEXT)")
        result = _validate(fixture_db)
        assert "Ar_Environment" in result.validated_tables
        assert not any(i.table == "Ar_Environment" for i in result.issues)


class TestValidateDatabase:
    def test_missing_file_raises_unavailable(self, tmp_path):
        factory = SqliteConnectionFactory(tmp_path / "absent.db")
        with pytest.raises(DatabaseUnavailableError):
            SchemaValidator().validate_database(factory)

    def test_unreadable_schema_raises_unavailable(self, tmp_path):
        path = tmp_path / "reports.db"
        path.write_bytes(b"this is not a sqlite database" * 200)
        with pytest.raises(DatabaseUnavailableError) as exc_info:
            SchemaValidator().validate_database(SqliteConnectionFactory(path))
        assert isinstance(exc_info.value.__cause__, sqlite3.DatabaseError)

    def test_validate_on_open_connection(self, fixture_db):
        fixture_db.create_full()
        conn = sqlite3.connect(fixture_db.path)
        try:
            result = SchemaValidator().validate(conn)
        finally:
            conn.close()
        assert result.status == SchemaValidationStatus.VALID

    def test_custom_manifest(self, fixture_db):
        from timespine.core.manifest import get_table_definition

        fixture_db.create_core_only()
        manifest = {"ar_timeline": get_table_definition("Ar_Timeline")}
        result = SchemaValidator(manifest).validate_database(SqliteConnectionFactory(fixture_db.path))
        assert result.status == SchemaValidationStatus.VALID
