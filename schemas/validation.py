# ============================================================================
# REQUIRED-FIELD VALIDATION
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Schemas - The single required-field gate
# PURPOSE: Shared by draft commit and bulk import
# CREATED: 19 OCT 2026
# ============================================================================
"""
Required-Field Validation

    validate_required(schema, values, groups) -> RequiredCheckResult

Walks every declared field and every declared group:

  - a field is missing iff it is non-optional and blank (None, blank text,
    or NaN for numbers); optional fields are never flagged
  - a non-optional group is missing when it has fewer than ``min_items``
  - every present group item is walked field by field, plus any
    item-level rule the group declares (tags: a key of "other" needs a
    non-blank override)

Collects ALL missing entries. The default schema is always exempt.
"""

from typing import Any, Dict, List, Optional

from core.models.validation import MissingEntry, RequiredCheckResult
from schemas.base import SchemaClass


def validate_required(
    schema: SchemaClass,
    values: Optional[Dict[str, Any]],
    groups: Optional[Dict[str, List[Dict[str, Any]]]],
) -> RequiredCheckResult:
    """Check every required field, group and group-item field."""
    if schema.VALIDATION_EXEMPT:
        return RequiredCheckResult(ok=True)

    values = values or {}
    groups = groups or {}
    missing: List[MissingEntry] = []

    for f in schema.FIELDS:
        if not f.optional and f.is_blank(values.get(f.key)):
            missing.append(MissingEntry(
                scope="field",
                label=f.display_label,
                field_key=f.key,
            ))

    for group in schema.all_groups():
        items = groups.get(group.key) or []
        if not group.optional and len(items) < group.min_items:
            missing.append(MissingEntry(
                scope="group",
                label=group.display_label,
                group_key=group.key,
                min_items=group.min_items,
            ))

        for index, item in enumerate(items):
            item = item or {}
            for f in group.fields:
                if not f.optional and f.is_blank(item.get(f.key)):
                    missing.append(MissingEntry(
                        scope="group_field",
                        label=group.display_label,
                        field_key=f.key,
                        group_key=group.key,
                        item_index=index,
                    ))
            missing.extend(group.extra_missing(item, index))

    return RequiredCheckResult(ok=not missing, missing=missing)


def format_missing_entries(missing: List[MissingEntry]) -> List[str]:
    """One display line per missing entry, in report order."""
    return [f"- {entry.describe()}" for entry in missing]


__all__ = ["validate_required", "format_missing_entries"]
