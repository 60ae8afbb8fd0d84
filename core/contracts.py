# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Foundation - Core enums shared by every component
# PURPOSE: Draw modes, snap modes, operations, session states, feature keys
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: DrawMode, GeometryType, GridSnapMode, Operation, SessionState,
#          FeatureKey, FieldType, IssueKind
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the feature digitizing core.

These enums cross every boundary in the system:
- Pointer input -> snapping engine
- Draft session -> schema registry -> layer store
- Bulk import -> schema registry -> layer store

Feature classes are a closed enum so that registry lookups are keyed by
FeatureKey rather than by bare strings.
"""

from enum import Enum
from typing import Optional


# ============================================================================
# GEOMETRY ENUMS
# ============================================================================

class GeometryType(str, Enum):
    """Value written to the payload ``Type`` system field."""
    POINTS = "Points"
    POLYLINE = "Polyline"
    POLYGON = "Polygon"


class DrawMode(str, Enum):
    """
    Draft drawing modes.

    The mode fixes the minimum point count of a valid geometry:
        point -> 1, polyline -> 2, polygon -> 3
    """
    NONE = "none"
    POINT = "point"
    POLYLINE = "polyline"
    POLYGON = "polygon"

    def min_points(self) -> int:
        """Minimum number of points for a committable geometry."""
        return _MIN_POINTS[self]

    def geometry_type(self) -> Optional[GeometryType]:
        """Payload ``Type`` for this mode (None for ``none``)."""
        return _GEOMETRY_TYPES.get(self)

    def is_drawable(self) -> bool:
        return self is not DrawMode.NONE

    def accepts_point_count(self, count: int) -> bool:
        """Point features take exactly one point; lines and polygons a minimum."""
        if self is DrawMode.NONE:
            return False
        if self is DrawMode.POINT:
            return count == 1
        return count >= self.min_points()


_MIN_POINTS = {
    DrawMode.NONE: 0,
    DrawMode.POINT: 1,
    DrawMode.POLYLINE: 2,
    DrawMode.POLYGON: 3,
}

_GEOMETRY_TYPES = {
    DrawMode.POINT: GeometryType.POINTS,
    DrawMode.POLYLINE: GeometryType.POLYLINE,
    DrawMode.POLYGON: GeometryType.POLYGON,
}


class GridSnapMode(str, Enum):
    """
    Grid quantization policy.

        auto   -> nearest 0.5
        edge   -> nearest integer (block edge)
        center -> nearest k + 0.5 (block center)
    """
    AUTO = "auto"
    EDGE = "edge"
    CENTER = "center"


# ============================================================================
# SESSION / OPERATION ENUMS
# ============================================================================

class Operation(str, Enum):
    """Kind of write that produces a payload; drives system-field stamping."""
    CREATE = "create"
    EDIT = "edit"
    IMPORT = "import"


class SessionState(str, Enum):
    """
    Draft session states.

    State transitions:
        IDLE -> DRAWING (mode selected)
        IDLE -> EDITING (edit record)
        DRAWING | EDITING -> IDLE (commit or cancel)
    """
    IDLE = "idle"
    DRAWING = "drawing"
    EDITING = "editing"

    def is_open(self) -> bool:
        """True while a draft is being drawn or edited."""
        return self is not SessionState.IDLE


# ============================================================================
# SCHEMA ENUMS
# ============================================================================

class FeatureKey(str, Enum):
    """
    Closed set of feature schema classes.

    Values are the display keys of the feature catalogue.
    """
    DEFAULT = "默认"
    STATION = "车站"
    PLATFORM = "站台"
    RAILWAY = "铁路"
    STATION_BUILDING = "车站建筑"
    BUILDING = "建筑"
    LANDMARK_POINT = "地物点"
    LANDMARK_LINE = "地物线"
    AREA = "地物面"


class FieldType(str, Enum):
    """Form field variants."""
    TEXT = "text"
    NUMBER = "number"
    BOOL = "bool"
    SELECT = "select"


class IssueKind(str, Enum):
    """Validation issue taxonomy."""
    STRUCTURAL = "structural"
    MISSING_REQUIRED = "missing_required"
    GEOMETRY = "geometry"
    SYSTEM_FIELD_MISMATCH = "system_field_mismatch"
