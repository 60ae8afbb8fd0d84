# ============================================================================
# SCHEMA CLASS BASE
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Schemas - Base class for feature schema definitions
# PURPOSE: build / hydrate / structural validation shared by every class
# CREATED: 19 OCT 2026
# ============================================================================
"""
Schema Class Base

A schema class describes one feature type declaratively and provides the
two inverse transforms between form state and payload:

    build(op, mode, coords, values, groups, ctx) -> payload
    hydrate(payload) -> HydratedForm(values, groups)

Design:
  - Subclasses set ClassVars (KEY, CLASS_CODE, MODE, FIELDS, GROUPS,
    GEOMETRY_KEY, DEFAULT_Y) and rarely override anything.
  - Geometry shape follows the mode: point classes write one ``{x, z[, y]}``
    object, line/polygon classes write ``[x, y, z]`` triples.
  - validate_import() checks structure only and collects ALL problems.
    Required fields are checked by the shared validator, not here.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from core.config import WorldDefaults, get_defaults
from core.contracts import DrawMode, FeatureKey, GeometryType, Operation
from core.models.geometry import WorldPoint, is_point_object, is_point_triple
from core.models.validation import StructuralError
from schemas.fields import UNIVERSAL_GROUPS, BaseField, GroupDef, project_fields
from schemas.system_fields import stamp_system_fields

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class SchemaError(Exception):
    """Base exception for schema configuration errors."""
    pass


class UnknownWorldError(SchemaError):
    """Raised when a world id is not in the world table."""
    def __init__(self, world_id: str):
        self.world_id = world_id
        super().__init__(f"Unknown world: {world_id}")


# ============================================================================
# CONTEXT & FORM STATE
# ============================================================================

@dataclass
class BuildContext:
    """
    Caller-supplied context for ``build``.

    ``previous_payload`` is the record being edited (edit) or the raw item
    (import); it is where prior audit values come from.
    """
    world_id: str
    editor_id: str = ""
    previous_payload: Optional[Dict[str, Any]] = None
    now: Optional[datetime] = None
    worlds: WorldDefaults = field(default_factory=lambda: get_defaults().worlds)

    def __post_init__(self):
        code = self.worlds.code_for(self.world_id)
        if code is None:
            raise UnknownWorldError(self.world_id)
        self.world_code: int = code

    def timestamp(self) -> str:
        now = self.now or datetime.now(timezone.utc)
        return now.strftime(TIMESTAMP_FORMAT)


@dataclass
class HydratedForm:
    """Form state recovered from a payload."""
    values: Dict[str, Any] = field(default_factory=dict)
    groups: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)


# ============================================================================
# BASE SCHEMA
# ============================================================================

class SchemaClass(ABC):
    """
    Base feature schema.

    Subclasses declare ClassVars; the registry holds one instance per KEY.
    """

    KEY: ClassVar[FeatureKey]
    LABEL: ClassVar[str] = ""
    CLASS_CODE: ClassVar[Optional[str]] = None
    MODE: ClassVar[DrawMode] = DrawMode.POINT

    FIELDS: ClassVar[List[BaseField]] = []
    GROUPS: ClassVar[List[GroupDef]] = []

    GEOMETRY_KEY: ClassVar[str] = "coordinate"
    DEFAULT_Y: ClassVar[float] = 0.0

    PRIMARY_ID_FIELD: ClassVar[Optional[str]] = None
    PRIMARY_NAME_FIELD: ClassVar[Optional[str]] = None

    # The default class has no system fields, no universal groups and is
    # never validated
    VALIDATION_EXEMPT: ClassVar[bool] = False

    @property
    def key(self) -> FeatureKey:
        return self.KEY

    @property
    def label(self) -> str:
        return self.LABEL or self.KEY.value

    @property
    def modes(self) -> Tuple[DrawMode, ...]:
        return (self.MODE,)

    def supports_mode(self, mode: DrawMode) -> bool:
        return mode in self.modes

    def all_groups(self) -> List[GroupDef]:
        if self.VALIDATION_EXEMPT:
            return list(self.GROUPS)
        return list(self.GROUPS) + UNIVERSAL_GROUPS

    def get_group(self, key: str) -> Optional[GroupDef]:
        for group in self.all_groups():
            if group.key == key:
                return group
        return None

    def geometry_type(self, mode: Optional[DrawMode] = None) -> GeometryType:
        return (mode or self.MODE).geometry_type()

    # ------------------------------------------------------------------
    # Form state
    # ------------------------------------------------------------------

    def empty_form(self) -> HydratedForm:
        return HydratedForm(
            values={f.key: f.form_default() for f in self.FIELDS},
            groups={g.key: [] for g in self.all_groups()},
        )

    def normalize_groups(self, groups: Dict[str, List[Dict[str, Any]]]) -> Dict[str, List[Dict[str, Any]]]:
        """Apply each group's normalization; unknown group keys pass through."""
        out = dict(groups)
        for group in self.all_groups():
            if group.key in out:
                out[group.key] = group.normalize(list(out[group.key] or []))
        return out

    # ------------------------------------------------------------------
    # build / hydrate
    # ------------------------------------------------------------------

    def build(
        self,
        op: Operation,
        mode: DrawMode,
        coords: List[WorldPoint],
        values: Dict[str, Any],
        groups: Dict[str, List[Dict[str, Any]]],
        ctx: BuildContext,
    ) -> Dict[str, Any]:
        """Form state + geometry -> canonical payload."""
        payload: Dict[str, Any] = stamp_system_fields(op, mode, self, ctx)
        payload.update(project_fields(values, self.FIELDS))
        payload.update(self.serialize_geometry(mode, coords))
        payload.update(self.serialize_groups(groups))
        return payload

    def serialize_geometry(self, mode: DrawMode, coords: List[WorldPoint]) -> Dict[str, Any]:
        if mode == DrawMode.POINT:
            if not coords:
                return {}
            return {self.GEOMETRY_KEY: coords[0].to_object()}
        return {self.GEOMETRY_KEY: [p.to_triple(self.DEFAULT_Y) for p in coords]}

    def serialize_groups(self, groups: Dict[str, List[Dict[str, Any]]]) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for group in self.all_groups():
            serialized = group.serialize(list(groups.get(group.key) or []))
            if group.has_content(serialized):
                out[group.key] = serialized
        return out

    def hydrate(self, payload: Dict[str, Any]) -> HydratedForm:
        """Payload -> form state; inverse of the field/group parts of build."""
        payload = payload or {}
        return HydratedForm(
            values={f.key: f.hydrate(payload.get(f.key)) for f in self.FIELDS},
            groups={g.key: g.hydrate_items(payload.get(g.key)) for g in self.all_groups()},
        )

    def coords_from_payload(self, payload: Dict[str, Any]) -> List[WorldPoint]:
        """Geometry stored in a payload; malformed entries are skipped."""
        raw = (payload or {}).get(self.GEOMETRY_KEY)
        if self.MODE == DrawMode.POINT:
            return [WorldPoint.from_object(raw)] if is_point_object(raw) else []
        if not isinstance(raw, list):
            return []
        return [WorldPoint.from_triple(t) for t in raw if is_point_triple(t)]

    # ------------------------------------------------------------------
    # identity
    # ------------------------------------------------------------------

    def primary_id(self, payload: Dict[str, Any]) -> str:
        if not self.PRIMARY_ID_FIELD:
            return ""
        value = (payload or {}).get(self.PRIMARY_ID_FIELD)
        return "" if value is None else str(value).strip()

    def primary_name(self, payload: Dict[str, Any]) -> str:
        if not self.PRIMARY_NAME_FIELD:
            return ""
        value = (payload or {}).get(self.PRIMARY_NAME_FIELD)
        return "" if value is None else str(value).strip()

    # ------------------------------------------------------------------
    # structural validation (import)
    # ------------------------------------------------------------------

    def validate_import(self, item: Any, item_index: Optional[int] = None) -> List[StructuralError]:
        """
        Structure-only checks for one import item.

        Collects every problem. Point counts and required fields are
        checked elsewhere.
        """
        if not isinstance(item, dict):
            return [StructuralError("item is not an object", item_index)]

        errors: List[StructuralError] = []
        errors.extend(self._check_geometry_shape(item, item_index))

        for f in self.FIELDS:
            if f.key in item:
                message = f.type_error(item[f.key])
                if message:
                    errors.append(StructuralError(message, item_index))

        for group in self.all_groups():
            errors.extend(group.structural_errors(item.get(group.key), item_index))

        errors.extend(self._validate_class_specific(item, item_index))
        return errors

    def _check_geometry_shape(self, item: Dict[str, Any], item_index: Optional[int]) -> List[StructuralError]:
        raw = item.get(self.GEOMETRY_KEY)
        if self.MODE == DrawMode.POINT:
            if not is_point_object(raw):
                return [StructuralError(
                    f"{self.GEOMETRY_KEY} must be an object with numeric x and z", item_index
                )]
            return []
        if not isinstance(raw, list):
            return [StructuralError(f"{self.GEOMETRY_KEY} must be an array of [x, y, z]", item_index)]
        return [
            StructuralError(f"{self.GEOMETRY_KEY}[{i}] must be [x, y, z] numbers", item_index)
            for i, t in enumerate(raw)
            if not is_point_triple(t)
        ]

    def _validate_class_specific(self, item: Dict[str, Any], item_index: Optional[int]) -> List[StructuralError]:
        """Override for class-specific structure rules."""
        return []

    def describe(self) -> Dict[str, Any]:
        """Registry metadata for listing."""
        return {
            "key": self.KEY.value,
            "label": self.label,
            "class_code": self.CLASS_CODE,
            "modes": [m.value for m in self.modes],
            "fields": [f.key for f in self.FIELDS],
            "groups": [g.key for g in self.all_groups()],
            "geometry_key": self.GEOMETRY_KEY,
        }


__all__ = [
    "TIMESTAMP_FORMAT",
    "SchemaError",
    "UnknownWorldError",
    "BuildContext",
    "HydratedForm",
    "SchemaClass",
]
