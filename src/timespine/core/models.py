"""Validation and capability models.

These are the payloads a health-reporting collaborator serializes, so they
are pydantic models (frozen, JSON-ready) rather than plain dataclasses.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from timespine.core.enums import IssueCode, SchemaValidationStatus, ValidationSeverity


class ValidationIssue(BaseModel):
    """A single schema problem found during a validation pass.

    Fields
    ──────
    code        : Tier issue code
    severity    : ``fatal`` | ``warning``
    message     : Human-readable description naming the table (and column)
    remediation : What an operator can do about it
    table       : Manifest table the issue concerns
    column      : Missing column, ``None`` when the whole table is missing
    """

    model_config = ConfigDict(frozen=True)

    code: IssueCode
    severity: ValidationSeverity
    message: str
    remediation: str
    table: str
    column: str | None = None


class SchemaValidationResult(BaseModel):
    """Outcome of one validation run: status, issues and the validated set."""

    model_config = ConfigDict(frozen=True)

    status: SchemaValidationStatus
    issues: tuple[ValidationIssue, ...] = ()
    validated_tables: frozenset[str] = Field(default_factory=frozenset)

    @property
    def fatal_issues(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.FATAL]

    @property
    def warning_issues(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    @property
    def is_usable(self) -> bool:
        """True unless a core table or column is missing."""
        return self.status in (
            SchemaValidationStatus.VALID,
            SchemaValidationStatus.VALID_WITH_WARNINGS,
        )

    @classmethod
    def not_checked(cls) -> SchemaValidationResult:
        """Result used when the database could not be opened at all."""
        return cls(status=SchemaValidationStatus.NOT_CHECKED)


class CapabilityStatus(BaseModel):
    """Diagnostic view of one named capability."""

    model_config = ConfigDict(frozen=True)

    name: str
    available: bool
    fallback_active: bool


__all__ = [
    "ValidationIssue",
    "SchemaValidationResult",
    "CapabilityStatus",
]
