# ============================================================================
# BULK IMPORT PIPELINE
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Service - Lenient JSON ingestion of feature items
# PURPOSE: Parse, validate every item, insert all-or-nothing
# CREATED: 19 OCT 2026
# ============================================================================
"""
Bulk Import Pipeline

Input is pasted text. Accepted shapes, after parsing:

    [ {...}, {...} ]                 plain array
    {"items": [...]}                 wrapped
    {"features": [...]}              wrapped
    {"A": [...], "B": [...]}         object of arrays, concatenated in key order
    {...}                            single item
    {...},{...}   /   {...}\\n{...}   bare objects, repaired into an array

Per item (every issue of every item is collected):
    1. resolve the schema class by the item's ``Class`` code
    2. structural validation (geometry shape, field types, group shapes)
    3. point count for the class's draw mode
    4. declared Type / Class / World against the derived values
    5. required fields on the hydrated form

Any failure inserts nothing. On success each item is built with
``op=import`` (audit fields come from the item itself) and the batch is
inserted in one step with a random color per record.
"""

import json
import random
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from core.config import Defaults, get_defaults
from core.contracts import Operation
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.models.validation import (
    GeometryError,
    ImportItemFailure,
    ImportResult,
    StructuralError,
    ValidationIssue,
)
from schemas import (
    BuildContext,
    UnknownWorldError,
    check_declared_system_fields,
    find_by_class_code,
    validate_required,
)
from services.layer_store import LayerStore, NewRecord

logger = get_logger(__name__, ComponentType.IMPORT)


# ============================================================================
# PARSING
# ============================================================================

@dataclass
class ParseOutcome:
    """Result of lenient parsing. ``repaired`` is True when the bracket repair was needed."""
    ok: bool
    value: Any = None
    repaired: bool = False
    error: Optional[StructuralError] = None


_OBJECT_COMMA = re.compile(r"}\s*,\s*{")
_OBJECT_NEWLINE = re.compile(r"}\s*\n\s*{")
_TRAILING_COMMA = re.compile(r",\s*$")
_NEWLINES = re.compile(r"\n+")


def _repair_bare_objects(text: str) -> str:
    normalized = text.replace("\r\n", "\n")
    normalized = _NEWLINES.sub("\n", normalized)
    normalized = _OBJECT_COMMA.sub("},{", normalized)
    normalized = _OBJECT_NEWLINE.sub("},{", normalized)
    normalized = _TRAILING_COMMA.sub("", normalized.strip())
    return f"[{normalized}]"


def parse_lenient_json(text: Optional[str]) -> ParseOutcome:
    """
    Parse pasted JSON, tolerating several objects without an outer array.

    Not a general JSON repairer: only separators between top-level
    objects and one trailing comma are fixed up.
    """
    stripped = (text or "").strip()
    if not stripped:
        return ParseOutcome(ok=False, error=StructuralError("import text is empty"))

    try:
        return ParseOutcome(ok=True, value=json.loads(stripped))
    except json.JSONDecodeError:
        pass

    try:
        return ParseOutcome(ok=True, value=json.loads(_repair_bare_objects(stripped)), repaired=True)
    except json.JSONDecodeError as e:
        return ParseOutcome(
            ok=False,
            error=StructuralError(f"import text is not valid JSON: {e.msg} (line {e.lineno})"),
        )


def extract_items(root: Any) -> List[Any]:
    """Flatten a parsed document into the list of candidate items."""
    if isinstance(root, list):
        return list(root)
    if not isinstance(root, dict):
        return []

    for key in ("items", "features"):
        if isinstance(root.get(key), list):
            return list(root[key])

    # A bare feature object carries list values of its own (points, platforms).
    if "Class" in root or "Type" in root:
        return [root]

    out: List[Any] = []
    for value in root.values():
        if isinstance(value, list):
            out.extend(value)
    if out:
        return out

    return [root]


def random_color(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return "#{:02x}{:02x}{:02x}".format(rng.randrange(256), rng.randrange(256), rng.randrange(256))


# ============================================================================
# PIPELINE
# ============================================================================

@dataclass
class _Prepared:
    """An item that passed every check, ready to build."""
    index: int
    schema: Any
    item: dict
    coords: list
    values: dict
    groups: dict


class ImportPipeline:
    """Validate a batch of items against the schema registry and insert them."""

    def __init__(
        self,
        store: LayerStore,
        world_id: str,
        defaults: Optional[Defaults] = None,
        rng: Optional[random.Random] = None,
    ):
        self.defaults = defaults or get_defaults()
        world_code = self.defaults.worlds.code_for(world_id)
        if world_code is None:
            raise UnknownWorldError(world_id)
        self.store = store
        self.world_id = world_id
        self.world_code = world_code
        self.rng = rng

    def run(self, text: str, now: Optional[datetime] = None) -> ImportResult:
        with log_context(world_id=self.world_id, operation=Operation.IMPORT.value,
                         component=ComponentType.IMPORT.value):
            parsed = parse_lenient_json(text)
            if not parsed.ok:
                logger.warning(f"Import rejected: {parsed.error.message}")
                return ImportResult(ok=False, errors=[parsed.error])
            if parsed.repaired:
                logger.debug("Import text repaired into an array")

            items = extract_items(parsed.value)
            if not items:
                logger.warning("Import rejected: no items found")
                return ImportResult(ok=False, errors=[StructuralError("no importable items found")])

            failures: List[ImportItemFailure] = []
            prepared: List[_Prepared] = []
            for index, item in enumerate(items):
                outcome = self._check_item(index, item)
                if isinstance(outcome, ImportItemFailure):
                    failures.append(outcome)
                else:
                    prepared.append(outcome)

            if failures:
                logger.warning(f"Import rejected: {len(failures)} of {len(items)} item(s) failed")
                return ImportResult(ok=False, total_items=len(items), failures=failures)

            entries = [self._build(p, now) for p in prepared]
            records = self.store.insert_many(entries)

            inserted = [r.id for r in records]
            log_checkpoint("import_completed", {
                "items": len(items),
                "inserted_ids": inserted,
            })
            logger.info(f"Imported {len(records)} record(s)")
            return ImportResult(ok=True, total_items=len(items), inserted_ids=inserted)

    def _check_item(self, index: int, item: Any):
        class_code = item.get("Class") if isinstance(item, dict) else None
        code = class_code.strip() if isinstance(class_code, str) else None

        schema = find_by_class_code(code) if code else None
        if schema is None:
            reason = "missing Class" if not code else f"unknown Class {code!r}"
            return ImportItemFailure(
                index=index,
                class_code=code,
                issues=[StructuralError(f"item {index + 1}: {reason}", index)],
            )

        issues: List[ValidationIssue] = list(schema.validate_import(item, index))

        coords = schema.coords_from_payload(item)
        if not schema.MODE.accepts_point_count(len(coords)):
            issues.append(GeometryError(
                message=f"{schema.label}: {schema.MODE.value} needs "
                        f"{schema.MODE.min_points()} point(s), got {len(coords)}",
                item_index=index,
                mode=schema.MODE,
                required=schema.MODE.min_points(),
                actual=len(coords),
            ))

        issues.extend(check_declared_system_fields(item, schema, self.world_code, index))

        form = schema.hydrate(item)
        groups = schema.normalize_groups(form.groups)
        issues.extend(validate_required(schema, form.values, groups).issues(index))

        if issues:
            return ImportItemFailure(index=index, class_code=code, issues=issues)
        return _Prepared(index=index, schema=schema, item=item, coords=coords,
                         values=form.values, groups=groups)

    def _build(self, p: _Prepared, now: Optional[datetime]) -> NewRecord:
        ctx = BuildContext(
            world_id=self.world_id,
            previous_payload=p.item,
            now=now,
            worlds=self.defaults.worlds,
        )
        payload = p.schema.build(Operation.IMPORT, p.schema.MODE, p.coords, p.values, p.groups, ctx)
        return NewRecord(
            mode=p.schema.MODE,
            coords=p.coords,
            class_key=p.schema.KEY,
            payload=payload,
            color=random_color(self.rng),
        )


# ============================================================================
# SUMMARY
# ============================================================================

def format_import_summary(result: ImportResult, limit: Optional[int] = None) -> str:
    """
    Human summary of an import.

    Lists at most ``limit`` issues, followed by the total when truncated.
    """
    if result.ok:
        return f"Imported {len(result.inserted_ids)} item(s)."

    limit = limit if limit is not None else get_defaults().imports.summary_limit
    lines = []
    for issue in result.errors:
        lines.append(issue.message)
    for failure in result.failures:
        label = failure.class_code or "?"
        for issue in failure.issues:
            lines.append(f"#{failure.index + 1} [{label}] {issue.message}")

    shown = lines[:limit]
    if len(lines) > limit:
        shown.append(f"...(共 {len(lines)} 条错误)")
    return "Import failed:\n" + "\n".join(shown)


__all__ = [
    "ParseOutcome",
    "parse_lenient_json",
    "extract_items",
    "random_color",
    "ImportPipeline",
    "format_import_summary",
]
