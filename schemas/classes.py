# ============================================================================
# FEATURE SCHEMA CLASSES
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Schemas - Concrete feature classes
# PURPOSE: Station, platform, railway, buildings and landmark features
# CREATED: 19 OCT 2026
# ============================================================================
"""
Feature Schema Classes

    Key        Code  Mode      Geometry    Default y
    默认        -     any       coords      -
    车站        STA   point     coordinate  -
    站台        PLF   point     coordinate  -
    铁路        RLE   polyline  PLpoints    -63
    车站建筑    STB   polygon   Conpoints   0
    建筑        BUD   polygon   Conpoints   0
    地物点      ISP   point     coordinate  -
    地物线      ISL   polyline  PLpoints    64
    地物面      ISG   polygon   Conpoints   64

Every class is registered at import time.
"""

from typing import Any, ClassVar, Dict, List, Optional, Tuple

from core.contracts import DrawMode, FeatureKey, Operation
from core.models.geometry import WorldPoint, is_point_object
from core.models.validation import StructuralError
from schemas.base import BuildContext, HydratedForm, SchemaClass
from schemas.fields import (
    GroupDef,
    NumberField,
    SelectField,
    SelectOption,
    TextField,
)
from schemas.registry import register_schema


def _label_fields() -> List[Any]:
    return [
        NumberField(key=f"labelL{i}", label=f"Label {i}", optional=True)
        for i in (1, 2, 3)
    ]


def _bool_select(key: str, label: str, default: bool) -> SelectField:
    return SelectField(
        key=key,
        label=label,
        default=default,
        options=[
            SelectOption(label="true", value=True),
            SelectOption(label="false", value=False),
        ],
    )


# ============================================================================
# GEOMETRY BASES
# ============================================================================

class PointSchema(SchemaClass):
    MODE = DrawMode.POINT
    GEOMETRY_KEY = "coordinate"


class LineSchema(SchemaClass):
    MODE = DrawMode.POLYLINE
    GEOMETRY_KEY = "PLpoints"


class PolygonSchema(SchemaClass):
    MODE = DrawMode.POLYGON
    GEOMETRY_KEY = "Conpoints"


# ============================================================================
# DEFAULT (IDENTITY)
# ============================================================================

@register_schema
class DefaultSchema(SchemaClass):
    """
    Identity class used before a feature class is chosen.

    No fields, no groups, no system fields; build echoes the geometry.
    """
    KEY = FeatureKey.DEFAULT
    LABEL = "Default"
    GEOMETRY_KEY = "coords"
    VALIDATION_EXEMPT = True

    @property
    def modes(self) -> Tuple[DrawMode, ...]:
        return (DrawMode.POINT, DrawMode.POLYLINE, DrawMode.POLYGON)

    def build(
        self,
        op: Operation,
        mode: DrawMode,
        coords: List[WorldPoint],
        values: Dict[str, Any],
        groups: Dict[str, List[Dict[str, Any]]],
        ctx: BuildContext,
    ) -> Dict[str, Any]:
        return {"type": mode.value, "coords": [p.to_object() for p in coords]}

    def hydrate(self, payload: Dict[str, Any]) -> HydratedForm:
        return HydratedForm()

    def coords_from_payload(self, payload: Dict[str, Any]) -> List[WorldPoint]:
        raw = (payload or {}).get("coords")
        if not isinstance(raw, list):
            return []
        return [WorldPoint.from_object(p) for p in raw if is_point_object(p)]

    def validate_import(self, item: Any, item_index: Optional[int] = None) -> List[StructuralError]:
        return [StructuralError("items without a feature class cannot be imported", item_index)]


# ============================================================================
# RAIL NETWORK
# ============================================================================

@register_schema
class StationSchema(PointSchema):
    KEY = FeatureKey.STATION
    LABEL = "Station"
    CLASS_CODE = "STA"
    PRIMARY_ID_FIELD = "stationID"
    PRIMARY_NAME_FIELD = "stationName"

    FIELDS = [
        TextField(key="stationID", label="Station ID"),
        TextField(key="stationName", label="Station name"),
        NumberField(key="height", label="Height (y)", optional=True),
        *_label_fields(),
    ]
    GROUPS = [
        GroupDef(
            key="platforms",
            label="Platforms",
            optional=True,
            fields=[
                TextField(key="ID", label="Platform ID"),
                NumberField(key="condistance", label="Merge ratio"),
            ],
        ),
    ]


@register_schema
class PlatformSchema(PointSchema):
    KEY = FeatureKey.PLATFORM
    LABEL = "Platform"
    CLASS_CODE = "PLF"
    PRIMARY_ID_FIELD = "platformID"
    PRIMARY_NAME_FIELD = "platformName"

    FIELDS = [
        TextField(key="platformID", label="Platform ID"),
        TextField(key="platformName", label="Platform name"),
        NumberField(key="height", label="Height (y)", optional=True),
        *_label_fields(),
    ]
    GROUPS = [
        GroupDef(
            key="lines",
            label="Lines served",
            optional=False,
            min_items=1,
            fields=[
                TextField(key="ID", label="Line ID"),
                NumberField(key="stationCode", label="Station code", optional=True),
                NumberField(key="distance", label="Distance", optional=True),
                _bool_select("NotAvaliable", "Availability", True),
                _bool_select("Overtaking", "Overtaking", False),
            ],
        ),
    ]


@register_schema
class RailwaySchema(LineSchema):
    KEY = FeatureKey.RAILWAY
    LABEL = "Railway"
    CLASS_CODE = "RLE"
    DEFAULT_Y = -63
    PRIMARY_ID_FIELD = "LineID"
    PRIMARY_NAME_FIELD = "LineName"

    FIELDS = [
        TextField(key="LineID", label="Line ID"),
        TextField(key="LineName", label="Line name"),
        NumberField(key="Kind", label="Grade", optional=True),
        TextField(key="bureau", label="Bureau code", optional=True),
        TextField(key="line", label="Line number", optional=True),
        SelectField(
            key="direction",
            label="Direction",
            default=2,
            options=[SelectOption(label=str(v), value=v) for v in (0, 1, 2, 3)],
        ),
        TextField(key="startplf", label="Start platform ID", optional=True),
        TextField(key="endplf", label="End platform ID", optional=True),
        *_label_fields(),
    ]

    def _validate_class_specific(self, item: Dict[str, Any], item_index: Optional[int]) -> List[StructuralError]:
        errors = []
        for key in ("startplf", "endplf"):
            value = item.get(key)
            if value is not None and not isinstance(value, str):
                errors.append(StructuralError(f"{key} must be a platform ID string", item_index))
        return errors


@register_schema
class StationBuildingSchema(PolygonSchema):
    KEY = FeatureKey.STATION_BUILDING
    LABEL = "Station building"
    CLASS_CODE = "STB"
    DEFAULT_Y = 0
    PRIMARY_ID_FIELD = "staBuildingID"
    PRIMARY_NAME_FIELD = "staBuildingName"

    FIELDS = [
        TextField(key="staBuildingID", label="Station building ID"),
        TextField(key="staBuildingName", label="Station building name"),
        NumberField(key="heightH", label="Height", optional=True),
        *_label_fields(),
    ]
    GROUPS = [
        GroupDef(
            key="platforms",
            label="Platforms / levels",
            optional=True,
            fields=[
                NumberField(key="condistance", label="Merge ratio"),
                TextField(key="BuildingLevelID", label="Building level ID"),
            ],
        ),
    ]


@register_schema
class BuildingSchema(PolygonSchema):
    KEY = FeatureKey.BUILDING
    LABEL = "Building"
    CLASS_CODE = "BUD"
    DEFAULT_Y = 0
    PRIMARY_ID_FIELD = "BuildingID"
    PRIMARY_NAME_FIELD = "BuildingName"

    FIELDS = [
        TextField(key="BuildingID", label="Building ID"),
        TextField(key="BuildingName", label="Building name"),
        NumberField(key="heightH", label="Height", optional=True),
        *_label_fields(),
    ]


# ============================================================================
# GENERAL LANDMARKS (Kind / SKind / SKind2 triplets)
# ============================================================================

def _kind_fields(prefix: str) -> List[Any]:
    return [
        TextField(key="ID", label="ID"),
        TextField(key="Name", label="Name"),
        TextField(key=f"{prefix}Kind", label="Kind"),
        TextField(key=f"{prefix}SKind", label="Sub-kind", optional=True),
        TextField(key=f"{prefix}SKind2", label="Sub-kind 2", optional=True),
    ]


@register_schema
class LandmarkPointSchema(PointSchema):
    KEY = FeatureKey.LANDMARK_POINT
    LABEL = "Landmark point"
    CLASS_CODE = "ISP"
    PRIMARY_ID_FIELD = "ID"
    PRIMARY_NAME_FIELD = "Name"

    FIELDS = _kind_fields("Point") + [
        NumberField(key="height", label="Height (y)", optional=True),
    ]


@register_schema
class LandmarkLineSchema(LineSchema):
    KEY = FeatureKey.LANDMARK_LINE
    LABEL = "Landmark line"
    CLASS_CODE = "ISL"
    DEFAULT_Y = 64
    PRIMARY_ID_FIELD = "ID"
    PRIMARY_NAME_FIELD = "Name"

    FIELDS = _kind_fields("PLine")


@register_schema
class AreaSchema(PolygonSchema):
    KEY = FeatureKey.AREA
    LABEL = "Area"
    CLASS_CODE = "ISG"
    DEFAULT_Y = 64
    PRIMARY_ID_FIELD = "ID"
    PRIMARY_NAME_FIELD = "Name"

    FIELDS = _kind_fields("PGon") + [
        NumberField(key="heightH", label="Height", optional=True),
    ]


__all__ = [
    "PointSchema",
    "LineSchema",
    "PolygonSchema",
    "DefaultSchema",
    "StationSchema",
    "PlatformSchema",
    "RailwaySchema",
    "StationBuildingSchema",
    "BuildingSchema",
    "LandmarkPointSchema",
    "LandmarkLineSchema",
    "AreaSchema",
]
