# ============================================================================
# VALIDATION RESULT TYPES
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Domain model - Issues and results returned by validators
# PURPOSE: Structured, collect-everything error reporting for commit/import
# CREATED: 19 OCT 2026
# ============================================================================
"""
Validation Result Types

Validators never raise. They return result values that carry every issue
found, so a user can fix all of them in one pass.

Issue taxonomy:
    StructuralError           - malformed input or declared-type mismatch
    MissingRequiredError      - one missing field / group / group-item field
    GeometryError             - wrong point count for the draw mode
    SystemFieldMismatchError  - declared Type/Class/World disagrees (import)
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, List, Optional

from core.contracts import DrawMode, IssueKind, Operation


# ============================================================================
# MISSING ENTRIES
# ============================================================================

@dataclass(frozen=True)
class MissingEntry:
    """
    One missing required input.

    scope:
        "field"       - top-level field ``field_key``
        "group"       - group ``group_key`` has fewer than ``min_items`` items
        "group_field" - field ``field_key`` of item ``item_index`` in ``group_key``
    """
    scope: str
    label: str
    field_key: Optional[str] = None
    group_key: Optional[str] = None
    item_index: Optional[int] = None
    min_items: Optional[int] = None

    def describe(self) -> str:
        if self.scope == "group":
            return f"{self.label}: at least {self.min_items} item(s) required"
        if self.scope == "group_field":
            return f"{self.label} #{(self.item_index or 0) + 1}: {self.field_key} is required"
        return f"{self.label} ({self.field_key}) is required"


# ============================================================================
# ISSUES
# ============================================================================

@dataclass(frozen=True)
class ValidationIssue:
    """Base issue. ``item_index`` is set for bulk import items."""
    message: str
    item_index: Optional[int] = None

    kind: ClassVar[IssueKind] = IssueKind.STRUCTURAL


@dataclass(frozen=True)
class StructuralError(ValidationIssue):
    kind: ClassVar[IssueKind] = IssueKind.STRUCTURAL


@dataclass(frozen=True)
class MissingRequiredError(ValidationIssue):
    entry: Optional[MissingEntry] = None

    kind: ClassVar[IssueKind] = IssueKind.MISSING_REQUIRED

    @classmethod
    def from_entry(
        cls, entry: MissingEntry, item_index: Optional[int] = None
    ) -> "MissingRequiredError":
        return cls(message=entry.describe(), item_index=item_index, entry=entry)

    @property
    def field_key(self) -> Optional[str]:
        return self.entry.field_key if self.entry else None


@dataclass(frozen=True)
class GeometryError(ValidationIssue):
    mode: Optional[DrawMode] = None
    required: int = 0
    actual: int = 0

    kind: ClassVar[IssueKind] = IssueKind.GEOMETRY


@dataclass(frozen=True)
class SystemFieldMismatchError(ValidationIssue):
    field_name: str = ""
    declared: Any = None
    expected: Any = None

    kind: ClassVar[IssueKind] = IssueKind.SYSTEM_FIELD_MISMATCH


# ============================================================================
# RESULTS
# ============================================================================

@dataclass
class RequiredCheckResult:
    """Output of the shared required-field validator."""
    ok: bool
    missing: List[MissingEntry] = field(default_factory=list)

    def issues(self, item_index: Optional[int] = None) -> List[MissingRequiredError]:
        return [MissingRequiredError.from_entry(m, item_index) for m in self.missing]


@dataclass
class CommitResult:
    """
    Outcome of committing a draft session.

    On rejection the session stays open and ``issues`` lists everything
    that blocked the commit.
    """
    ok: bool
    record_id: Optional[int] = None
    operation: Optional[Operation] = None
    issues: List[ValidationIssue] = field(default_factory=list)

    @classmethod
    def rejected(cls, *issues: ValidationIssue) -> "CommitResult":
        return cls(ok=False, issues=list(issues))

    @property
    def missing(self) -> List[MissingEntry]:
        return [
            i.entry for i in self.issues
            if isinstance(i, MissingRequiredError) and i.entry is not None
        ]


@dataclass
class ImportItemFailure:
    """Every issue raised against one import item."""
    index: int
    class_code: Optional[str]
    issues: List[ValidationIssue] = field(default_factory=list)


@dataclass
class ImportResult:
    """
    Outcome of a bulk import.

    All-or-nothing: ``inserted_ids`` is empty whenever ``ok`` is False.
    """
    ok: bool
    total_items: int = 0
    inserted_ids: List[int] = field(default_factory=list)
    failures: List[ImportItemFailure] = field(default_factory=list)
    # Batch-level problems (unparseable text, no items)
    errors: List[ValidationIssue] = field(default_factory=list)

    @property
    def issues(self) -> List[ValidationIssue]:
        out = list(self.errors)
        for failure in self.failures:
            out.extend(failure.issues)
        return out


__all__ = [
    "MissingEntry",
    "ValidationIssue",
    "StructuralError",
    "MissingRequiredError",
    "GeometryError",
    "SystemFieldMismatchError",
    "RequiredCheckResult",
    "CommitResult",
    "ImportItemFailure",
    "ImportResult",
]
