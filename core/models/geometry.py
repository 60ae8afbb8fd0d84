# ============================================================================
# WORLD POINT MODEL
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Domain model - Horizontal coordinate with optional elevation
# PURPOSE: The single point type passed between snapping, session and store
# CREATED: 19 OCT 2026
# ============================================================================
"""
WorldPoint Model

A world point lives on the horizontal (x, z) plane with an optional
elevation ``y``. Equality is exact: two points compare equal only when
every coordinate is identical. There is no implicit tolerance anywhere.

Payload shapes:
    point classes      -> {"x": 1, "z": 2}  or  {"x": 1, "y": 64, "z": 2}
    line/polygon       -> [x, y, z]
"""

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field


def _clean(value: float) -> Any:
    """Emit integral floats as ints so payloads read 10 rather than 10.0."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


class WorldPoint(BaseModel):
    """Immutable world coordinate."""

    x: float = Field(..., description="East-west coordinate")
    z: float = Field(..., description="North-south coordinate")
    y: Optional[float] = Field(default=None, description="Elevation, if known")

    model_config = {"frozen": True}

    def xz(self) -> Tuple[float, float]:
        return (self.x, self.z)

    def with_y(self, y: Optional[float]) -> "WorldPoint":
        return WorldPoint(x=self.x, z=self.z, y=y)

    def with_xz(self, x: float, z: float) -> "WorldPoint":
        """Move horizontally, keeping elevation."""
        return WorldPoint(x=x, z=z, y=self.y)

    def to_object(self) -> Dict[str, Any]:
        """``{x, z[, y]}`` payload object."""
        out: Dict[str, Any] = {"x": _clean(self.x), "z": _clean(self.z)}
        if self.y is not None:
            out["y"] = _clean(self.y)
        return out

    def to_triple(self, default_y: float) -> List[Any]:
        """``[x, y, z]`` payload triple using ``default_y`` when y is unknown."""
        y = self.y if self.y is not None else default_y
        return [_clean(self.x), _clean(y), _clean(self.z)]

    @classmethod
    def from_object(cls, obj: Dict[str, Any]) -> "WorldPoint":
        y = obj.get("y")
        return cls(x=float(obj["x"]), z=float(obj["z"]), y=None if y is None else float(y))

    @classmethod
    def from_triple(cls, triple: Sequence[Any]) -> "WorldPoint":
        return cls(x=float(triple[0]), y=float(triple[1]), z=float(triple[2]))

    def __repr__(self) -> str:
        if self.y is None:
            return f"WorldPoint({self.x}, {self.z})"
        return f"WorldPoint({self.x}, {self.z}, y={self.y})"


def is_numeric(value: Any) -> bool:
    """True for real numbers (bools excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_point_object(value: Any) -> bool:
    """True for a ``{x, z[, y]}`` mapping with numeric coordinates."""
    if not isinstance(value, dict):
        return False
    if not (is_numeric(value.get("x")) and is_numeric(value.get("z"))):
        return False
    return value.get("y") is None or is_numeric(value.get("y"))


def is_point_triple(value: Any) -> bool:
    """True for an ``[x, y, z]`` list of numbers."""
    return (
        isinstance(value, (list, tuple))
        and len(value) == 3
        and all(is_numeric(v) for v in value)
    )


__all__ = [
    "WorldPoint",
    "is_numeric",
    "is_point_object",
    "is_point_triple",
]
