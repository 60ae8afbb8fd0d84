# ============================================================================
# SYSTEM FIELDS
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Schemas - Audit / classification field stamping
# PURPOSE: Type, Class, World, Create*, Modifity* per operation kind
# CREATED: 19 OCT 2026
# ============================================================================
"""
System Fields

Stamped at the head of every non-default payload, in this order:

    Type, Class, World, CreateTime, CreateBy, ModifityTime, ModifityBy

Rules by operation:
    create  CreateTime = now, CreateBy = editor (if any); never Modifity*
    edit    Create* carried over from the previous payload;
            ModifityTime = now, ModifityBy = editor (if any)
    import  every audit field comes from the item when it has one;
            only a missing CreateTime is derived (now)

``check_declared_system_fields`` is the import-side consistency check:
a declared Type/Class/World that disagrees with what would be derived is
a hard error. Declared values are never corrected.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from core.contracts import DrawMode, Operation
from core.models.geometry import is_numeric
from core.models.validation import SystemFieldMismatchError

if TYPE_CHECKING:
    from schemas.base import BuildContext, SchemaClass

SYSTEM_FIELD_ORDER = (
    "Type",
    "Class",
    "World",
    "CreateTime",
    "CreateBy",
    "ModifityTime",
    "ModifityBy",
)

AUDIT_FIELDS = ("CreateTime", "CreateBy", "ModifityTime", "ModifityBy")


def _present(payload: Optional[Dict[str, Any]], key: str) -> Optional[Any]:
    """Prior value of ``key`` unless missing or blank."""
    if not payload:
        return None
    value = payload.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value


def _editor(ctx: "BuildContext") -> Optional[str]:
    editor = (ctx.editor_id or "").strip()
    return editor or None


def stamp_system_fields(
    op: Operation,
    mode: DrawMode,
    schema: "SchemaClass",
    ctx: "BuildContext",
) -> Dict[str, Any]:
    """System-field head of a payload for ``op``."""
    out: Dict[str, Any] = {
        "Type": mode.geometry_type().value,
        "Class": schema.CLASS_CODE,
        "World": ctx.world_code,
    }
    prev = ctx.previous_payload
    now = ctx.timestamp()
    editor = _editor(ctx)

    if op == Operation.CREATE:
        out["CreateTime"] = now
        if editor:
            out["CreateBy"] = editor

    elif op == Operation.EDIT:
        out["CreateTime"] = _present(prev, "CreateTime") or now
        create_by = _present(prev, "CreateBy")
        if create_by is not None:
            out["CreateBy"] = create_by
        out["ModifityTime"] = now
        if editor:
            out["ModifityBy"] = editor

    else:
        out["CreateTime"] = _present(prev, "CreateTime") or now
        for key in ("CreateBy", "ModifityTime", "ModifityBy"):
            value = _present(prev, key)
            if value is not None:
                out[key] = value

    return out


def check_declared_system_fields(
    item: Dict[str, Any],
    schema: "SchemaClass",
    world_code: int,
    item_index: Optional[int] = None,
) -> List[SystemFieldMismatchError]:
    """Compare declared Type/Class/World with the derived values."""
    errors: List[SystemFieldMismatchError] = []

    expected_type = schema.geometry_type().value
    if "Type" in item and item["Type"] != expected_type:
        errors.append(SystemFieldMismatchError(
            message=f"Type is {item['Type']!r}, expected {expected_type!r}",
            item_index=item_index,
            field_name="Type",
            declared=item["Type"],
            expected=expected_type,
        ))

    if "Class" in item and item["Class"] != schema.CLASS_CODE:
        errors.append(SystemFieldMismatchError(
            message=f"Class is {item['Class']!r}, expected {schema.CLASS_CODE!r}",
            item_index=item_index,
            field_name="Class",
            declared=item["Class"],
            expected=schema.CLASS_CODE,
        ))

    if "World" in item:
        declared = item["World"]
        if not (is_numeric(declared) and declared == world_code):
            errors.append(SystemFieldMismatchError(
                message=f"World is {declared!r}, expected {world_code}",
                item_index=item_index,
                field_name="World",
                declared=declared,
                expected=world_code,
            ))

    return errors


__all__ = [
    "SYSTEM_FIELD_ORDER",
    "AUDIT_FIELDS",
    "stamp_system_fields",
    "check_declared_system_fields",
]
