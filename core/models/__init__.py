# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Model exports
# PURPOSE: Central export point for domain models and result types
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Pydantic models for points and records, dataclass result types for
validation.
"""

from core.models.geometry import WorldPoint
from core.models.record import Record
from core.models.validation import (
    MissingEntry,
    ValidationIssue,
    StructuralError,
    MissingRequiredError,
    GeometryError,
    SystemFieldMismatchError,
    RequiredCheckResult,
    CommitResult,
    ImportItemFailure,
    ImportResult,
)

__all__ = [
    # Geometry
    "WorldPoint",
    # Record
    "Record",
    # Validation
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
