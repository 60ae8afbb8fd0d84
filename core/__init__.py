# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Core module initialization
# PURPOSE: Export core contracts and models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from core.contracts import (
    DrawMode,
    FeatureKey,
    FieldType,
    GeometryType,
    GridSnapMode,
    IssueKind,
    Operation,
    SessionState,
)
from core.models import (
    WorldPoint,
    Record,
    MissingEntry,
    CommitResult,
    ImportResult,
    RequiredCheckResult,
)

__all__ = [
    # Enums
    "DrawMode",
    "FeatureKey",
    "FieldType",
    "GeometryType",
    "GridSnapMode",
    "IssueKind",
    "Operation",
    "SessionState",
    # Models
    "WorldPoint",
    "Record",
    "MissingEntry",
    "CommitResult",
    "ImportResult",
    "RequiredCheckResult",
]
